"""
Object storage backends.

The pipeline only depends on the `ObjectStore` protocol. `S3ObjectStore`
talks to S3 (or any S3-compatible endpoint) through boto3;
`InMemoryObjectStore` backs tests and local runs.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, Optional, Protocol, Tuple

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from . import config

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for record-scoped storage failures."""

    def __init__(self, container: str, key: str, reason: str) -> None:
        super().__init__(f"{container}/{key}: {reason}")
        self.container = container
        self.key = key
        self.reason = reason


class FetchError(StorageError):
    pass


class StoreError(StorageError):
    pass


class StoreSetupError(RuntimeError):
    """Raised when the storage client cannot be constructed."""


class ObjectStore(Protocol):
    def fetch(self, container: str, key: str) -> bytes:
        ...

    def store(self, container: str, key: str, data: bytes) -> str:
        ...


def _describe_client_error(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message") or str(exc)
        return f"{code}: {message}"
    return str(exc)


def build_s3_client(settings: Optional[config.Settings] = None):
    settings = settings or config.get_settings()
    try:
        session = boto3.session.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )
        return session.client(
            service_name="s3",
            endpoint_url=settings.s3_endpoint_url,
            config=BotoConfig(signature_version="s3v4"),
        )
    except (BotoCoreError, ValueError) as exc:
        raise StoreSetupError(f"Could not create S3 client: {exc}") from exc


class S3ObjectStore:
    """ObjectStore over a boto3 S3 client. boto3 clients are thread-safe."""

    def __init__(self, client, content_type: str = "image/png") -> None:
        self._client = client
        self._content_type = content_type

    def fetch(self, container: str, key: str) -> bytes:
        logger.info("get file bucket %s, key %s", container, key)
        try:
            response = self._client.get_object(Bucket=container, Key=key)
            data = response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            reason = _describe_client_error(exc)
            logger.info("Error from S3 when downloading: %s", reason)
            raise FetchError(container, key, reason) from exc
        logger.info("Object is downloaded, size is %d", len(data))
        return data

    def store(self, container: str, key: str, data: bytes) -> str:
        logger.info("put file bucket %s, key %s", container, key)
        try:
            self._client.put_object(
                Bucket=container,
                Key=key,
                Body=data,
                ContentType=self._content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(container, key, _describe_client_error(exc)) from exc
        return f"Uploaded a file with key {key} into {container}"


class InMemoryObjectStore:
    """Dict-backed ObjectStore, safe to share between worker threads."""

    def __init__(self, objects: Optional[Dict[Tuple[str, str], bytes]] = None) -> None:
        self._objects: Dict[Tuple[str, str], bytes] = dict(objects or {})
        self._lock = Lock()

    def fetch(self, container: str, key: str) -> bytes:
        with self._lock:
            try:
                return self._objects[(container, key)]
            except KeyError:
                raise FetchError(container, key, "NoSuchKey: object does not exist") from None

    def store(self, container: str, key: str, data: bytes) -> str:
        with self._lock:
            self._objects[(container, key)] = bytes(data)
        return f"Uploaded a file with key {key} into {container}"

    def get(self, container: str, key: str) -> Optional[bytes]:
        with self._lock:
            return self._objects.get((container, key))

    def keys(self):
        with self._lock:
            return sorted(self._objects)

"""Test doubles and payload builders shared by the test modules."""

from __future__ import annotations

from io import BytesIO
from typing import List, Optional, Tuple

from PIL import Image

from thumbs_service.storage import FetchError, InMemoryObjectStore, StoreError
from thumbs_service.thumbnail import TransformError, TransformErrorKind


def make_image_bytes(size: Tuple[int, int] = (64, 32), fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 255)[: len(mode)] if mode in {"RGB", "RGBA"} else 128
    image = Image.new(mode, size, color)
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


class RecordingStore(InMemoryObjectStore):
    """In-memory store that remembers every call made to it."""

    def __init__(self, *args, fail_fetch_for: Optional[set] = None, fail_store: bool = False, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fetch_calls: List[Tuple[str, str]] = []
        self.store_calls: List[Tuple[str, str, bytes]] = []
        self._fail_fetch_for = fail_fetch_for or set()
        self._fail_store = fail_store

    def fetch(self, container: str, key: str) -> bytes:
        self.fetch_calls.append((container, key))
        if (container, key) in self._fail_fetch_for:
            raise FetchError(container, key, "AccessDenied: denied")
        return super().fetch(container, key)

    def store(self, container: str, key: str, data: bytes) -> str:
        self.store_calls.append((container, key, data))
        if self._fail_store:
            raise StoreError(container, key, "NoSuchBucket: missing")
        return super().store(container, key, data)


class FakeTransform:
    """Maps b"IMAGE" to b"THUMBNAIL" and rejects everything else."""

    def __init__(self) -> None:
        self.calls: List[Tuple[bytes, int]] = []

    def apply(self, data: bytes, target_size: int) -> bytes:
        self.calls.append((data, target_size))
        if data == b"IMAGE":
            return b"THUMBNAIL"
        raise TransformError(TransformErrorKind.UNDECODABLE_INPUT, "Input is not IMAGE")


def s3_record(event_name: Optional[str] = "ObjectCreated:Put", bucket: Optional[str] = "photos", key: Optional[str] = "a.png") -> dict:
    record: dict = {"s3": {"bucket": {}, "object": {}}}
    if event_name is not None:
        record["eventName"] = event_name
    if bucket is not None:
        record["s3"]["bucket"]["name"] = bucket
    if key is not None:
        record["s3"]["object"]["key"] = key
    return record

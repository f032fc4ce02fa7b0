"""
Notification records and reference extraction.

Raw storage notifications are untrusted: they may describe deletions,
metadata updates, or be partially filled in. `extract_reference` turns one
record into an `ObjectReference` or a `Rejection` without doing any I/O.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union
from urllib.parse import unquote_plus

logger = logging.getLogger(__name__)

CREATED_EVENT_PREFIX = "ObjectCreated"
THUMBS_SUFFIX = "-thumbs"


class MalformedEventError(ValueError):
    """Raised when the batch envelope itself cannot be read."""


class RejectReason(str, enum.Enum):
    WRONG_EVENT_TYPE = "wrong event type"
    MISSING_CONTAINER = "no bucket name"
    MISSING_KEY = "no object key"
    MALFORMED_KEY = "object key is not valid percent-encoded UTF-8"


@dataclass(frozen=True)
class NotificationRecord:
    event_name: Optional[str] = None
    container: Optional[str] = None
    key: Optional[str] = None
    malformed_key: bool = False

    @classmethod
    def from_event(cls, raw: Mapping[str, Any]) -> "NotificationRecord":
        """Read `eventName`, `s3.bucket.name` and `s3.object.key` from one S3 record."""
        if not isinstance(raw, Mapping):
            return cls()
        s3 = _as_mapping(raw.get("s3"))
        key = _as_str(_as_mapping(s3.get("object")).get("key"))
        malformed_key = False
        if key is not None:
            # S3 url-encodes keys in notifications ("my photo.png" -> "my+photo.png").
            try:
                key = unquote_plus(key, errors="strict")
            except UnicodeDecodeError:
                logger.warning("Object key %r is not valid percent-encoded UTF-8", key)
                malformed_key = True
        return cls(
            event_name=_as_str(raw.get("eventName")),
            container=_as_str(_as_mapping(s3.get("bucket")).get("name")),
            key=key,
            malformed_key=malformed_key,
        )


@dataclass(frozen=True)
class ObjectReference:
    container: str
    key: str

    def __post_init__(self) -> None:
        if not self.container:
            raise ValueError("container must be a non-empty string")
        if not self.key:
            raise ValueError("key must be a non-empty string")


@dataclass(frozen=True)
class DestinationReference:
    container: str
    key: str


@dataclass(frozen=True)
class Rejection:
    reason: RejectReason

    def __str__(self) -> str:
        return self.reason.value


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def parse_event(event: Mapping[str, Any]) -> List[NotificationRecord]:
    """
    Convert a raw notification payload into records.

    A payload without `Records` is an empty batch. A `Records` value that is
    not a list means the envelope is malformed and nothing can be processed.
    """
    if not isinstance(event, Mapping):
        raise MalformedEventError("event payload must be a JSON object")
    raw_records = event.get("Records", [])
    if not isinstance(raw_records, list):
        raise MalformedEventError("event 'Records' must be a list")
    return [NotificationRecord.from_event(raw) for raw in raw_records]


def extract_reference(
    record: NotificationRecord,
    event_prefix: str = CREATED_EVENT_PREFIX,
) -> Union[ObjectReference, Rejection]:
    if not record.event_name or not record.event_name.startswith(event_prefix):
        return Rejection(RejectReason.WRONG_EVENT_TYPE)
    if not record.container:
        return Rejection(RejectReason.MISSING_CONTAINER)
    if not record.key:
        return Rejection(RejectReason.MISSING_KEY)
    if record.malformed_key:
        return Rejection(RejectReason.MALFORMED_KEY)
    return ObjectReference(container=record.container, key=record.key)


def destination_for(reference: ObjectReference, suffix: str = THUMBS_SUFFIX) -> DestinationReference:
    """Thumbnails land in `<bucket><suffix>` under the unchanged source key."""
    return DestinationReference(container=reference.container + suffix, key=reference.key)

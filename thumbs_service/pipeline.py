"""
Batch thumbnail pipeline.

`process_batch` is the main entry point used by the Lambda handler and the
local test script. Each record runs independently:
record -> reference -> fetch -> thumbnail -> store.

A failing record is logged and abandoned; it never stops its siblings and
never turns the batch into a failure.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

from .records import (
    CREATED_EVENT_PREFIX,
    THUMBS_SUFFIX,
    DestinationReference,
    NotificationRecord,
    ObjectReference,
    Rejection,
    destination_for,
    extract_reference,
)
from .storage import FetchError, ObjectStore, StoreError
from .thumbnail import ThumbnailTransform, TransformError

logger = logging.getLogger(__name__)


class RecordStatus(str, enum.Enum):
    STORED = "stored"
    SKIPPED = "skipped"
    FETCH_FAILED = "fetch_failed"
    TRANSFORM_FAILED = "transform_failed"
    STORE_FAILED = "store_failed"


@dataclass(frozen=True)
class RecordOutcome:
    status: RecordStatus
    reference: Optional[ObjectReference] = None
    destination: Optional[DestinationReference] = None
    reason: str = ""


@dataclass(frozen=True)
class BatchOutcome:
    accepted: bool
    records: int


def process_record(
    record: NotificationRecord,
    target_size: int,
    store: ObjectStore,
    transform: ThumbnailTransform,
    *,
    event_prefix: str = CREATED_EVENT_PREFIX,
    suffix: str = THUMBS_SUFFIX,
) -> RecordOutcome:
    """Run one record through the pipeline and report how far it got."""
    reference = extract_reference(record, event_prefix=event_prefix)
    if isinstance(reference, Rejection):
        logger.info("Record skipped with reason: %s", reference)
        return RecordOutcome(RecordStatus.SKIPPED, reason=str(reference))

    try:
        image = store.fetch(reference.container, reference.key)
    except FetchError as exc:
        logger.info("Can not get file from S3: %s", exc.reason)
        return RecordOutcome(RecordStatus.FETCH_FAILED, reference, reason=exc.reason)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error fetching %s/%s", reference.container, reference.key)
        return RecordOutcome(RecordStatus.FETCH_FAILED, reference, reason=str(exc))

    try:
        thumbnail = transform.apply(image, target_size)
    except TransformError as exc:
        logger.info("Can not create thumbnail for %s/%s: %s", reference.container, reference.key, exc)
        return RecordOutcome(RecordStatus.TRANSFORM_FAILED, reference, reason=str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error creating thumbnail for %s/%s", reference.container, reference.key)
        return RecordOutcome(RecordStatus.TRANSFORM_FAILED, reference, reason=str(exc))

    # The destination bucket must already exist and accept writes from this process.
    destination = destination_for(reference, suffix=suffix)
    try:
        message = store.store(destination.container, destination.key, thumbnail)
    except StoreError as exc:
        logger.info("Can not upload thumbnail: %s", exc.reason)
        return RecordOutcome(RecordStatus.STORE_FAILED, reference, destination, reason=exc.reason)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error uploading %s/%s", destination.container, destination.key)
        return RecordOutcome(RecordStatus.STORE_FAILED, reference, destination, reason=str(exc))

    logger.info("%s", message)
    return RecordOutcome(RecordStatus.STORED, reference, destination)


def process_batch(
    records: Sequence[NotificationRecord],
    target_size: int,
    store: ObjectStore,
    transform: ThumbnailTransform,
    *,
    event_prefix: str = CREATED_EVENT_PREFIX,
    suffix: str = THUMBS_SUFFIX,
    max_workers: int = 1,
) -> BatchOutcome:
    """
    Process every record of a notification batch.

    Records run in input order when `max_workers` is 1. With more workers
    they run on a thread pool and thumbnails may be written in any order.
    The batch is always accepted; per-record results only reach the logs.

    Raises:
        ValueError: when `target_size` or `max_workers` is not positive.
    """
    if target_size <= 0:
        raise ValueError("target_size must be a positive integer")
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    def run(record: NotificationRecord) -> RecordOutcome:
        return process_record(
            record,
            target_size,
            store,
            transform,
            event_prefix=event_prefix,
            suffix=suffix,
        )

    if max_workers == 1 or len(records) <= 1:
        for record in records:
            run(record)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            # Drain the iterator so every record finishes before returning.
            for _ in executor.map(run, records):
                pass

    logger.info("Batch processed: %d record(s)", len(records))
    return BatchOutcome(accepted=True, records=len(records))

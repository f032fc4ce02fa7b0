"""
AWS Lambda entry point.

The handler
 - listens to object creation notifications,
 - downloads each created PNG,
 - creates a square thumbnail from it,
 - uploads the thumbnail to the bucket "<source bucket>-thumbs" under the same key.

The "-thumbs" bucket must already exist and this function needs permission
to put objects into it.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, Mapping, Optional

from . import config
from .pipeline import process_batch
from .records import parse_event
from .storage import ObjectStore, S3ObjectStore, build_s3_client
from .thumbnail import PngThumbnailTransform, ThumbnailTransform

logger = logging.getLogger(__name__)

_STORE: Optional[S3ObjectStore] = None
_LOCK = Lock()


def _configure_logging(settings: config.Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)
    # The Lambda runtime installs its own root handler, so basicConfig may be a no-op.
    logging.getLogger().setLevel(level)


def get_store(settings: Optional[config.Settings] = None) -> S3ObjectStore:
    """
    Return the process-wide S3 store.

    The client is built on first use and reused by warm invocations.
    Raises `StoreSetupError` when the client cannot be created.
    """
    global _STORE
    if _STORE is not None:
        return _STORE

    with _LOCK:
        if _STORE is None:
            settings = settings or config.get_settings()
            _STORE = S3ObjectStore(build_s3_client(settings), content_type=PngThumbnailTransform.content_type)
            logger.info("S3 client ready (endpoint=%s)", settings.s3_endpoint_url or "default")
    return _STORE


def handle_event(
    event: Mapping[str, Any],
    store: ObjectStore,
    transform: ThumbnailTransform,
    settings: config.Settings,
) -> Dict[str, Any]:
    records = parse_event(event)
    logger.info("Received %d record(s)", len(records))
    outcome = process_batch(
        records,
        settings.thumbnail_size,
        store,
        transform,
        event_prefix=settings.created_event_prefix,
        suffix=settings.thumbs_bucket_suffix,
        max_workers=settings.max_workers,
    )
    return {"status": "ok", "records": outcome.records}


def lambda_handler(event: Mapping[str, Any], context: Any) -> Dict[str, Any]:
    settings = config.get_settings()
    _configure_logging(settings)
    store = get_store(settings)
    return handle_event(event, store, PngThumbnailTransform(), settings)

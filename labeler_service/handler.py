"""
AWS Lambda entry point.

Receives an S3 event notification, turns it into notification records and
hands them to the batch worker.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import unquote_plus

from . import config
from .pipeline import NotificationRecord, PipelineOptions
from .queue_worker import process_batch
from .storage import StorageGateway, get_s3_client

logger = logging.getLogger(__name__)


def configure_logging(settings: Optional[config.Settings] = None) -> None:
    settings = settings or config.get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)
    # Lambda installs its own root handler, so basicConfig alone is a no-op there.
    logging.getLogger().setLevel(level)


def records_from_event(event: Dict[str, Any]) -> List[NotificationRecord]:
    """Extract (bucket, key) pairs from an S3 event; keys arrive URL-encoded."""
    records = []
    for raw in event.get("Records", []):
        try:
            s3 = raw["s3"]
            bucket = s3["bucket"]["name"]
            key = s3["object"]["key"]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed S3 event record: {raw!r}") from exc
        records.append(NotificationRecord(bucket=bucket, key=unquote_plus(key)))
    return records


def _batch_timeout(context: Any, settings: config.Settings) -> Optional[float]:
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if get_remaining is None:
        return None
    return max(get_remaining() / 1000.0 - settings.timeout_safety_margin_seconds, 0.0)


def lambda_handler(event: Dict[str, Any], context: Any = None, gateway: Optional[StorageGateway] = None):
    settings = config.get_settings()
    configure_logging(settings)
    logger.info("Handler start..")

    records = records_from_event(event)
    logger.info("Reading s3 records.. %d received", len(records))

    gateway = gateway or StorageGateway(get_s3_client(settings))
    report = process_batch(
        records,
        gateway,
        options=PipelineOptions.from_settings(settings),
        timeout=_batch_timeout(context, settings),
    )
    return report.to_dict()

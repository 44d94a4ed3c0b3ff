"""
Per-record labeling pipeline.

`process_record` is what every batch worker runs for its own record:
classify -> fetch -> decode -> annotate -> encode -> store.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Optional, Tuple

from . import classifier, codec
from .annotator import DEFAULT_COLOR, GlyphFace, annotate, placement_point
from .config import Settings, get_settings
from .errors import BatchCancelled, FormatMismatchError
from .storage import StorageGateway

logger = logging.getLogger(__name__)

LABELED = "labeled"
SKIPPED = "skipped"
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class NotificationRecord:
    bucket: str
    key: str


@dataclass
class PipelineOptions:
    label: str = "This is watermark"
    color: Tuple[int, int, int, int] = DEFAULT_COLOR
    output_prefix: str = classifier.DEFAULT_OUTPUT_PREFIX
    strict_format_check: bool = True
    max_workers: int = 8
    failure_policy: str = "skip"
    face: Optional[GlyphFace] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PipelineOptions":
        settings = settings or get_settings()
        return cls(
            label=settings.label_text,
            color=tuple(settings.label_color),
            output_prefix=settings.output_prefix,
            strict_format_check=settings.strict_format_check,
            max_workers=settings.max_workers,
            failure_policy=settings.failure_policy,
        )


@dataclass
class RecordResult:
    record: NotificationRecord
    status: str
    output_key: Optional[str] = None
    anchor: Optional[Tuple[int, int]] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status in (LABELED, SKIPPED)


def _check_cancelled(cancel_event: Optional[threading.Event], key: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise BatchCancelled("batch cancelled", key=key)


def process_record(
    record: NotificationRecord,
    gateway: StorageGateway,
    options: Optional[PipelineOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RecordResult:
    """
    Label one object and write it back to the same bucket.

    Unsupported keys are skipped without any I/O. Failures raise the typed
    errors from `errors`; nothing is stored for a failed record since the
    write is the last step.
    """
    options = options or PipelineOptions()
    key = record.key
    logger.info("start to process %s", key)

    is_image, ext = classifier.classify(key)
    if not is_image:
        logger.info("skipping %s: not a supported image", key)
        return RecordResult(record=record, status=SKIPPED)

    _check_cancelled(cancel_event, key)
    data = gateway.get(record.bucket, key)

    _check_cancelled(cancel_event, key)
    image, format_name = codec.decode(data, key=key)
    if options.strict_format_check and not codec.format_matches(format_name, ext):
        raise FormatMismatchError(
            f"{key} has extension .{ext} but contains {format_name} data", key=key
        )

    x, y = placement_point(image.size)
    labeled = annotate(image, x, y, options.label, color=options.color, face=options.face)
    logger.info("add label to %s (%dx%d) at point %d, %d", key, image.width, image.height, x, y)

    body = codec.encode(labeled, ext, key=key)

    _check_cancelled(cancel_event, key)
    dest = classifier.output_key(key, prefix=options.output_prefix)
    logger.info("saving %s to s3://%s/%s", key, record.bucket, dest)
    gateway.put(record.bucket, dest, body, classifier.content_type(ext))
    return RecordResult(record=record, status=LABELED, output_key=dest, anchor=(x, y))

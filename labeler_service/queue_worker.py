"""
Batch worker: fans a batch of notification records out to a thread pool.

Each record gets its own task running `process_record`; the batch call
blocks until every task has finished and returns one result per record.
Failures come back as values so one bad image does not stop its siblings,
unless the abort policy is selected.
"""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
import logging
import threading
import time
from typing import Dict, Iterable, List, Optional

from .errors import BatchAborted, BatchCancelled, LabelerError
from .pipeline import (
    CANCELLED,
    FAILED,
    LABELED,
    SKIPPED,
    NotificationRecord,
    PipelineOptions,
    RecordResult,
    process_record,
)
from .storage import StorageGateway

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    results: List[RecordResult] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def labeled(self) -> int:
        return self._count(LABELED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def cancelled(self) -> int:
        return self._count(CANCELLED)

    @property
    def failures(self) -> List[RecordResult]:
        return [r for r in self.results if r.status == FAILED]

    def to_dict(self) -> dict:
        return {
            "labeled": self.labeled,
            "skipped": self.skipped,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "failures": [
                {"key": r.record.key, "error": str(r.error)} for r in self.failures
            ],
        }


def _run_worker(
    record: NotificationRecord,
    gateway: StorageGateway,
    options: PipelineOptions,
    cancel_event: threading.Event,
) -> RecordResult:
    if cancel_event.is_set():
        return RecordResult(record=record, status=CANCELLED)
    try:
        return process_record(record, gateway, options, cancel_event=cancel_event)
    except BatchCancelled as exc:
        logger.info("cancelled while processing %s", record.key)
        return RecordResult(record=record, status=CANCELLED, error=exc)
    except LabelerError as exc:
        logger.error("failed to process %s: %s", record.key, exc)
        return RecordResult(record=record, status=FAILED, error=exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("unexpected failure processing %s: %s", record.key, exc)
        return RecordResult(record=record, status=FAILED, error=exc)


def _cancel_pending(pending: Iterable[Future]) -> None:
    for future in pending:
        future.cancel()


def process_batch(
    records: Iterable[NotificationRecord],
    gateway: StorageGateway,
    options: Optional[PipelineOptions] = None,
    cancel_event: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
) -> BatchReport:
    """
    Process a batch of records concurrently and wait for all of them.

    `options.max_workers` bounds the pool; 0 starts one thread per record.
    Once `cancel_event` is set or `timeout` seconds have elapsed, records
    that have not started are reported as cancelled and in-flight workers
    stop at their next stage boundary.

    Raises:
        BatchAborted: under the "abort" failure policy, after the first
            failure and once in-flight workers have finished.
    """
    records = list(records)
    options = options or PipelineOptions()
    cancel_event = cancel_event or threading.Event()
    results: List[Optional[RecordResult]] = [None] * len(records)
    if not records:
        return BatchReport()

    max_workers = options.max_workers or len(records)
    max_workers = min(max_workers, len(records))
    deadline = time.monotonic() + timeout if timeout is not None else None
    abort_cause: Optional[BaseException] = None

    logger.info("processing %d records with %d workers", len(records), max_workers)
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="labeler") as executor:
        future_to_index: Dict[Future, int] = {
            executor.submit(_run_worker, record, gateway, options, cancel_event): idx
            for idx, record in enumerate(records)
        }
        pending = set(future_to_index)
        while pending:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
            if not done:
                logger.warning("batch timed out after %.1fs; cancelling remaining records", timeout)
                cancel_event.set()
                _cancel_pending(pending)
                deadline = None
                continue

            for future in done:
                idx = future_to_index[future]
                if future.cancelled():
                    results[idx] = RecordResult(record=records[idx], status=CANCELLED)
                    continue
                result = future.result()
                results[idx] = result
                if (
                    result.status == FAILED
                    and options.failure_policy == "abort"
                    and abort_cause is None
                ):
                    abort_cause = result.error
                    logger.error("aborting batch after failure on %s", result.record.key)
                    cancel_event.set()

            if cancel_event.is_set():
                _cancel_pending(pending)

    report = BatchReport(results=[r for r in results if r is not None])
    logger.info(
        "batch done: labeled=%d skipped=%d failed=%d cancelled=%d",
        report.labeled,
        report.skipped,
        report.failed,
        report.cancelled,
    )
    if abort_cause is not None:
        raise BatchAborted(report, abort_cause)
    return report

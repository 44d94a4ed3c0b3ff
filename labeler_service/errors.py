"""Exception types raised by the labeling pipeline."""

from __future__ import annotations

from typing import Optional


class LabelerError(Exception):
    """Base error for a single record; `key` names the offending object."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class FetchError(LabelerError):
    pass


class DecodeError(LabelerError):
    pass


class FormatMismatchError(LabelerError):
    pass


class EncodeError(LabelerError):
    pass


class StoreError(LabelerError):
    pass


class BatchCancelled(LabelerError):
    """Raised inside a worker once the batch has been cancelled."""


class BatchAborted(Exception):
    """Raised by `process_batch` under the abort failure policy."""

    def __init__(self, report, cause: BaseException) -> None:
        super().__init__(f"batch aborted after failure: {cause}")
        self.report = report
        self.cause = cause

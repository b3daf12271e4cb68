"""Batch-level failures raised by the attendance pipeline."""
from typing import Any, Dict, Optional


class AttendanceError(ValueError):
    """Base class for errors that make a whole upload unusable.

    `message` is meant for the person who uploaded the file.
    """

    def __init__(self, message: str, diagnostics: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.diagnostics = diagnostics or {}


class InvalidMonthError(AttendanceError):
    pass


class SpreadsheetError(AttendanceError):
    pass


class NoUsableDataError(AttendanceError):
    pass


class StoreUnavailableError(AttendanceError):
    pass

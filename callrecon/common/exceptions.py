"""CallRecon exceptions."""

from typing import Any


class CallReconError(Exception):
    """Base CallRecon exception."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class HistoryParseError(CallReconError):
    """An event history or raw_data payload could not be decoded."""

    pass


class RecordShapeError(CallReconError):
    """A call record is not a mapping or lacks a usable structure."""

    pass

"""Closed error taxonomy for the customer sync pipeline.

Every exception observed while syncing maps to exactly one ``ErrorKind``;
retry decisions are made on the kind, never on ad-hoc exception matching.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    FETCH = "fetch"
    INVALID_RECORD = "invalid_record"
    TRANSPORT = "transport"
    REMOTE_REJECTED = "remote_rejected"
    UNCLASSIFIED = "unclassified"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset({ErrorKind.TRANSPORT, ErrorKind.REMOTE_REJECTED})


class SyncError(Exception):
    """Base class for failures raised by the sync pipeline."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED


class FetchError(SyncError):
    """The pending-customer query failed."""

    kind = ErrorKind.FETCH


class InvalidRecordError(SyncError):
    """A pending record could not be mapped into a CRM payload."""

    kind = ErrorKind.INVALID_RECORD

    def __init__(self, message: str, *, raw_value: Any = None) -> None:
        super().__init__(message)
        self.raw_value = raw_value


class TransportError(SyncError):
    """The CRM service could not be reached (connect, timeout, I/O)."""

    kind = ErrorKind.TRANSPORT


class RemoteRejectedError(SyncError):
    """The CRM service answered with a non-success status code."""

    kind = ErrorKind.REMOTE_REJECTED

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnclassifiedError(SyncError):
    """Wraps an unexpected exception so it can be reported uniformly."""

    kind = ErrorKind.UNCLASSIFIED

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause) or cause.__class__.__name__)
        self.cause = cause


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, SyncError):
        return exc.kind
    return ErrorKind.UNCLASSIFIED


def error_name(exc: BaseException) -> str:
    """Exception kind as shown in logs; unwraps ``UnclassifiedError``."""

    if isinstance(exc, UnclassifiedError):
        return exc.cause.__class__.__name__
    return exc.__class__.__name__


__all__ = [
    "ErrorKind",
    "SyncError",
    "FetchError",
    "InvalidRecordError",
    "TransportError",
    "RemoteRejectedError",
    "UnclassifiedError",
    "classify_error",
    "error_name",
]

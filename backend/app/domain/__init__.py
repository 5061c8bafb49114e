"""Domain types and the sync error taxonomy."""

from .errors import (
    ErrorKind,
    FetchError,
    InvalidRecordError,
    RemoteRejectedError,
    SyncError,
    TransportError,
    UnclassifiedError,
    classify_error,
    error_name,
)
from .models import DeliveryOutcome, PendingRecord

__all__ = [
    "DeliveryOutcome",
    "ErrorKind",
    "FetchError",
    "InvalidRecordError",
    "PendingRecord",
    "RemoteRejectedError",
    "SyncError",
    "TransportError",
    "UnclassifiedError",
    "classify_error",
    "error_name",
]

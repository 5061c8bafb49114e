"""Typed domain representations shared by the fetch, mapping and delivery steps."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

# One row returned by the pending-customer query, keyed by column name.
PendingRecord = Mapping[str, Any]


class DeliveryOutcome(str, Enum):
    """Terminal state of one item's pipeline."""

    DELIVERED = "delivered"
    FAILED_HANDLED = "failed_handled"

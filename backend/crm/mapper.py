"""Turn pending customer rows into CRM payloads."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from app.domain import InvalidRecordError, PendingRecord
from app.schemas import CustomerPayload

ID_COLUMN = "id"
FIRST_NAME_COLUMN = "first_name"
LAST_NAME_COLUMN = "last_name"
EMAIL_COLUMN = "email"

_DECIMAL_ID = re.compile(r"[+-]?[0-9]+")


def parse_customer_id(value: Any) -> int:
    """Coerce a raw id column into an integer or raise ``InvalidRecordError``."""

    if isinstance(value, bool):
        raise InvalidRecordError(f"Invalid numeric value for id: {value!r}", raw_value=value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            integral = int(value)
        except (ValueError, OverflowError) as exc:
            raise InvalidRecordError(
                f"Invalid numeric value for id: {value!r}", raw_value=value
            ) from exc
        if integral != value:
            raise InvalidRecordError(f"Invalid numeric value for id: {value!r}", raw_value=value)
        return integral
    if isinstance(value, str):
        candidate = value.strip()
        if not _DECIMAL_ID.fullmatch(candidate):
            raise InvalidRecordError(f"Invalid numeric value for id: {value!r}", raw_value=value)
        return int(candidate, 10)
    if value is None:
        raise InvalidRecordError("Customer row has no id", raw_value=value)
    raise InvalidRecordError(
        f"Unsupported type {type(value).__name__} for id: {value!r}", raw_value=value
    )


def coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def map_customer_row(
    record: PendingRecord,
    *,
    on_customer_id: Callable[[int], None] | None = None,
) -> CustomerPayload:
    """Build the CRM payload for one pending customer row.

    ``on_customer_id`` receives the parsed id before the remaining columns are
    read, so callers can attribute later failures to the customer.
    """

    if not isinstance(record, Mapping):
        raise InvalidRecordError(
            f"Expected a customer row mapping but got {type(record).__name__}",
            raw_value=record,
        )

    customer_id = parse_customer_id(record.get(ID_COLUMN))
    if on_customer_id is not None:
        on_customer_id(customer_id)

    return CustomerPayload(
        id=customer_id,
        first_name=coerce_optional_str(record.get(FIRST_NAME_COLUMN)),
        last_name=coerce_optional_str(record.get(LAST_NAME_COLUMN)),
        email=coerce_optional_str(record.get(EMAIL_COLUMN)),
    )

"""Customer data access for the sync pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models import Customer


class CustomerRepository:
    """Read pending customers and record successful deliveries."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch_unsynced(self) -> list[dict[str, Any]]:
        """Return unsynced customers as plain column-name keyed rows, ordered by id."""

        query = (
            select(
                Customer.id,
                Customer.first_name,
                Customer.last_name,
                Customer.email,
            )
            .where(Customer.synced.is_(False))
            .order_by(Customer.id)
        )
        rows = self._session.execute(query).mappings().all()
        return [dict(row) for row in rows]

    def mark_synced(self, customer_id: int, *, synced_at: datetime | None = None) -> bool:
        statement = (
            update(Customer)
            .where(Customer.id == customer_id)
            .values(synced=True, synced_at=synced_at or datetime.now(timezone.utc))
        )
        result = self._session.execute(statement)
        return bool(result.rowcount)

    def add_customer(
        self,
        *,
        customer_id: int | None = None,
        first_name: str | None,
        last_name: str | None,
        email: str | None,
    ) -> Customer:
        customer = Customer(
            id=customer_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            synced=False,
        )
        self._session.add(customer)
        self._session.flush()
        return customer

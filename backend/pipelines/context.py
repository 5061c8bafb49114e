from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from uuid import uuid4

from loguru import logger


@dataclass(slots=True, frozen=True)
class RunContext:
    """Correlation data for one scheduled sync run."""

    run_id: str
    started_at: datetime

    @classmethod
    def start(cls, *, now: datetime | None = None) -> "RunContext":
        return cls(run_id=str(uuid4()), started_at=now or datetime.now(timezone.utc))

    def item(self) -> "ItemContext":
        return ItemContext(run_id=self.run_id)

    def log(self):
        return logger.bind(run_id=self.run_id, customer_id="-")


@dataclass(slots=True, frozen=True)
class ItemContext:
    """Correlation data for one customer within a run."""

    run_id: str
    customer_id: int | None = None

    def with_customer(self, customer_id: int) -> "ItemContext":
        return replace(self, customer_id=customer_id)

    @property
    def customer_label(self) -> str:
        return str(self.customer_id) if self.customer_id is not None else "unknown"

    def log(self):
        return logger.bind(run_id=self.run_id, customer_id=self.customer_label)

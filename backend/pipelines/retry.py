"""Bounded redelivery of CRM sends.

An item moves through ``Attempting(n)`` until it reaches ``DELIVERED`` or
``FAILED_HANDLED``. Transport failures and remote rejections are redelivered
after a fixed delay up to ``max_retries`` times; every other error fails the
item immediately. Nothing raised by ``send`` escapes ``deliver``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from app.core.config import Settings
from app.domain import (
    DeliveryOutcome,
    SyncError,
    UnclassifiedError,
    classify_error,
    error_name,
)
from app.schemas import CustomerPayload

from .context import ItemContext

Sender = Callable[[CustomerPayload], None]


def report_unhandled_failure(exc: BaseException, item: ItemContext) -> DeliveryOutcome:
    """Log a non-retryable item failure and mark the item handled.

    Exceptions outside the sync taxonomy are reported as ``UnclassifiedError``.
    """

    error = exc if isinstance(exc, SyncError) else UnclassifiedError(exc)
    item.log().error(
        "Unhandled exception during customer sync runId={} customerId={}. "
        "Exception={}, kind={}, message={}",
        item.run_id,
        item.customer_label,
        error_name(error),
        classify_error(error).value,
        error,
    )
    return DeliveryOutcome.FAILED_HANDLED


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    max_retries: int = 3
    retry_delay: float = 2.0
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")

    @classmethod
    def from_settings(
        cls, settings: Settings, *, sleep: Callable[[float], None] = time.sleep
    ) -> "RetryPolicy":
        return cls(
            max_retries=settings.crm_max_retries,
            retry_delay=settings.crm_retry_delay_seconds,
            sleep=sleep,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def deliver(
        self, send: Sender, payload: CustomerPayload, item: ItemContext
    ) -> DeliveryOutcome:
        log = item.log()
        redeliveries = 0
        while True:
            try:
                send(payload)
            except Exception as exc:  # noqa: BLE001
                kind = classify_error(exc)
                if not kind.retryable:
                    return report_unhandled_failure(exc, item)

                if redeliveries >= self.max_retries:
                    log.error(
                        "CRM sync failed for customerId={} after {} attempts ({} retries). "
                        "Exception={}, message={}",
                        item.customer_label,
                        self.max_attempts,
                        self.max_retries,
                        error_name(exc),
                        exc,
                    )
                    return DeliveryOutcome.FAILED_HANDLED

                redeliveries += 1
                log.warning(
                    "CRM send failed for customerId={} (retry {}/{} in {}s): {}: {}",
                    item.customer_label,
                    redeliveries,
                    self.max_retries,
                    self.retry_delay,
                    error_name(exc),
                    exc,
                )
                self.sleep(self.retry_delay)
                continue

            log.info(
                "Successfully synced customerId={} during runId={}",
                item.customer_label,
                item.run_id,
            )
            return DeliveryOutcome.DELIVERED

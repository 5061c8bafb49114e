"""Scheduled job that pushes unsynced customers to the CRM service."""

from __future__ import annotations

import argparse
import json
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.db import init_db, session_scope
from app.domain import DeliveryOutcome, FetchError, PendingRecord
from app.repositories import CustomerRepository
from crm.client import CrmClient
from crm.mapper import ID_COLUMN, map_customer_row

from .context import ItemContext, RunContext
from .retry import RetryPolicy, report_unhandled_failure
from .scheduler import PeriodicScheduler


@dataclass(slots=True)
class SyncRunSummary:
    run_id: str
    started_at: datetime
    finished_at: datetime | None = None
    fetched: int = 0
    delivered: int = 0
    failed: int = 0
    fetch_failed: bool = False

    def record(self, outcome: DeliveryOutcome) -> None:
        if outcome is DeliveryOutcome.DELIVERED:
            self.delivered += 1
        else:
            self.failed += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "fetched": self.fetched,
            "delivered": self.delivered,
            "failed": self.failed,
            "fetch_failed": self.fetch_failed,
        }


class CustomerSyncPipeline:
    """Fetch unsynced customers and deliver each one to the CRM independently."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: CrmClient | None = None,
        session_factory: Callable[[], AbstractContextManager[Any]] | None = None,
        repository_factory: Callable[[Any], CustomerRepository] | None = None,
        retry_policy: RetryPolicy | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client or CrmClient(
            base_url=self.settings.crm_base_url,
            customers_path=self.settings.crm_customers_path,
            connect_timeout=self.settings.crm_connect_timeout_seconds,
            read_timeout=self.settings.crm_read_timeout_seconds,
        )
        self._session_factory = session_factory or session_scope
        self._repository_factory = repository_factory or (
            lambda session: CustomerRepository(session)
        )
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self._now = now or (lambda: datetime.now(timezone.utc))

    def run_once(self) -> SyncRunSummary:
        """Execute one sync run. Never raises; every failure ends up in the logs."""

        run = RunContext.start(now=self._now())
        log = run.log()
        summary = SyncRunSummary(run_id=run.run_id, started_at=run.started_at)
        log.info("Starting customer sync runId={}", run.run_id)

        try:
            records = self._fetch_pending()
            if not records:
                log.info("No customers to sync for runId={}", run.run_id)
            else:
                summary.fetched = len(records)
                log.info(
                    "Loaded {} customers to sync for runId={}", len(records), run.run_id
                )
                for outcome in self._process_batch(records, run):
                    summary.record(outcome)
        except FetchError as exc:
            summary.fetch_failed = True
            log.error(
                "Customer fetch failed for runId={}; unsynced rows will be retried next run: {}",
                run.run_id,
                exc,
            )
        except Exception:  # noqa: BLE001
            log.exception("Unexpected error during customer sync runId={}", run.run_id)
        finally:
            summary.finished_at = self._now()
            log.info(
                "Finished customer sync runId={} (fetched={}, delivered={}, failed={})",
                run.run_id,
                summary.fetched,
                summary.delivered,
                summary.failed,
            )
        return summary

    def process_item(self, record: PendingRecord, run: RunContext) -> DeliveryOutcome:
        """Map, send and log one customer. Returns its terminal state."""

        item = run.item()

        def _remember_customer(customer_id: int) -> None:
            nonlocal item
            item = item.with_customer(customer_id)

        try:
            raw_id = _raw_id(record)
            prepare_log = item.log()
            if raw_id is not None:
                prepare_log = prepare_log.bind(customer_id=str(raw_id))
            prepare_log.debug("Preparing CRM request for customerId={}", raw_id)
            payload = map_customer_row(record, on_customer_id=_remember_customer)
            outcome = self.retry_policy.deliver(self._client.send, payload, item)
        except Exception as exc:  # noqa: BLE001
            return report_unhandled_failure(exc, item)

        if outcome is DeliveryOutcome.DELIVERED and self.settings.crm_mark_synced_on_delivery:
            self._mark_synced(item)
        return outcome

    def close(self) -> None:
        self._client.close()

    def _fetch_pending(self) -> list[PendingRecord]:
        try:
            with self._session_factory() as session:
                rows = self._repository_factory(session).fetch_unsynced()
                return list(rows or [])
        except Exception as exc:  # noqa: BLE001
            raise FetchError(f"Pending customer query failed: {exc}") from exc

    def _process_batch(
        self, records: Sequence[PendingRecord], run: RunContext
    ) -> Iterable[DeliveryOutcome]:
        workers = min(self.settings.crm_sync_max_workers, len(records))
        if workers <= 1:
            return [self._isolated_item(record, run) for record in records]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="crm-sync") as executor:
            futures = [executor.submit(self._isolated_item, record, run) for record in records]
            return [future.result() for future in futures]

    def _isolated_item(self, record: PendingRecord, run: RunContext) -> DeliveryOutcome:
        try:
            return self.process_item(record, run)
        except Exception:  # noqa: BLE001
            run.log().exception(
                "Customer item escaped its error handling during runId={}", run.run_id
            )
            return DeliveryOutcome.FAILED_HANDLED

    def _mark_synced(self, item: ItemContext) -> None:
        try:
            with self._session_factory() as session:
                self._repository_factory(session).mark_synced(item.customer_id)
        except Exception as exc:  # noqa: BLE001
            item.log().warning(
                "Delivered customerId={} but could not flag it as synced: {}",
                item.customer_label,
                exc,
            )


def _raw_id(record: Any) -> Any:
    return record.get(ID_COLUMN) if isinstance(record, Mapping) else None


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Synchronize unsynced customers to the CRM service",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Execute a single sync run and exit instead of scheduling runs",
    )
    parser.add_argument(
        "--period-ms",
        type=int,
        default=settings.customer_sync_period_ms,
        help="Interval between scheduled runs in milliseconds",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=settings.crm_sync_max_workers,
        help="Number of customers delivered concurrently within a run",
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Write the JSON summary of a --once run to the specified path",
    )
    return parser.parse_args(argv)


def _write_summary(path: Path, summary: SyncRunSummary) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(summary.to_dict(), indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def main(argv: Sequence[str] | None = None) -> SyncRunSummary | None:
    args = _parse_args(argv)
    settings = get_settings().model_copy(
        update={
            "customer_sync_period_ms": args.period_ms,
            "crm_sync_max_workers": max(1, args.max_workers),
        }
    )
    configure_logging(settings)
    init_db()

    pipeline = CustomerSyncPipeline(settings)
    try:
        if args.once:
            summary = pipeline.run_once()
            if args.summary_path:
                _write_summary(args.summary_path, summary)
                logger.info("Wrote customer sync summary to {}", args.summary_path)
            return summary

        scheduler = PeriodicScheduler(
            pipeline.run_once,
            period_seconds=settings.customer_sync_period_seconds,
        )
        scheduler.run_forever()
        return None
    finally:
        pipeline.close()


if __name__ == "__main__":
    main()

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

# Keep module-level engines in memory and the API from scheduling runs.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CUSTOMER_SYNC_SCHEDULER_ENABLED", "false")

import pytest
from loguru import logger

from app.core.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        crm_base_url="http://crm.test/api",
        crm_max_retries=3,
        crm_retry_delay_ms=2000,
        crm_sync_max_workers=1,
        crm_mark_synced_on_delivery=False,
        customer_sync_scheduler_enabled=False,
    )


@pytest.fixture
def sample_customer_row() -> dict[str, Any]:
    return {"id": 1, "first_name": "Ann", "last_name": "Lee", "email": "a@x.com"}


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps) -> Callable[[float], None]:
    return sleeps.append


@pytest.fixture
def log_records():
    records: list[dict[str, Any]] = []
    handler_id = logger.add(
        lambda message: records.append(message.record),
        level="TRACE",
        format="{message}",
    )
    yield records
    logger.remove(handler_id)

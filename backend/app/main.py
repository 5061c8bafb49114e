from __future__ import annotations

from fastapi import Depends, FastAPI, HTTPException, status

from . import schemas
from .core.config import settings
from .core.logging import configure_logging
from .db import init_db
from pipelines.customer_sync import CustomerSyncPipeline
from pipelines.scheduler import PeriodicScheduler

app = FastAPI(title="Customer CRM Sync", version="0.1.0", debug=settings.debug)

_pipeline: CustomerSyncPipeline | None = None
_scheduler: PeriodicScheduler | None = None


def _sync_pipeline() -> CustomerSyncPipeline:
    if _pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Customer sync pipeline is not initialised",
        )
    return _pipeline


@app.on_event("startup")
def on_startup() -> None:
    """Initialize logging and the database, then start the periodic sync."""

    global _pipeline, _scheduler
    configure_logging(settings)
    init_db()
    _pipeline = CustomerSyncPipeline(settings)
    if settings.customer_sync_scheduler_enabled:
        _scheduler = PeriodicScheduler(
            _pipeline.run_once,
            period_seconds=settings.customer_sync_period_seconds,
        )
        _scheduler.start()


@app.on_event("shutdown")
def on_shutdown() -> None:
    global _pipeline, _scheduler
    if _scheduler is not None:
        _scheduler.stop()
        _scheduler = None
    if _pipeline is not None:
        _pipeline.close()
        _pipeline = None


@app.get("/healthz", tags=["system"], response_model=schemas.HealthResponse)
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


@app.post("/sync/runs", tags=["sync"], response_model=schemas.SyncRunResponse)
def trigger_sync_run(pipeline: CustomerSyncPipeline = Depends(_sync_pipeline)) -> schemas.SyncRunResponse:
    """Run one customer sync immediately and report its outcome."""

    summary = pipeline.run_once()
    return schemas.SyncRunResponse.model_validate(summary)

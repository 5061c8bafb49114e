"""Loguru sink configuration shared by the API, the scheduler and the CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from .config import Settings

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | "
    "{message} | runId={extra[run_id]} customerId={extra[customer_id]}"
)


def configure_logging(settings: Settings) -> None:
    """Replace the default loguru sink with the configured ones.

    Records that were not bound to a run get ``-`` placeholders so the format
    string never fails on missing extras.
    """

    logger.remove()
    logger.configure(extra={"run_id": "-", "customer_id": "-"})
    logger.add(sys.stderr, level=settings.log_level, format=LOG_FORMAT, enqueue=False)

    if settings.log_file:
        log_path = Path(settings.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=settings.log_level,
            format=LOG_FORMAT,
            rotation="1 day",
            retention="30 days",
        )

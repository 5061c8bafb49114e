from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode and SQL echo")
    database_url: str = Field(
        default="sqlite:///./data/customer_sync.db",
        description="SQLAlchemy compatible database URL holding the customers table",
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level emitted by the stderr log sink",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path of a rotating log file (leave blank to disable)",
    )
    customer_sync_period_ms: int = Field(
        default=60_000,
        description="Interval between scheduled customer sync runs in milliseconds",
        gt=0,
    )
    customer_sync_scheduler_enabled: bool = Field(
        default=True,
        description="Start the periodic scheduler when the API boots",
    )
    crm_base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the CRM service; customers are POSTed to {base}/customers",
    )
    crm_customers_path: str = Field(
        default="/customers",
        description="Relative path of the CRM customer endpoint",
    )
    crm_connect_timeout_ms: int = Field(
        default=5_000,
        description="Connect timeout for CRM requests in milliseconds",
        gt=0,
    )
    crm_read_timeout_ms: int = Field(
        default=5_000,
        description="Read/response timeout for CRM requests in milliseconds",
        gt=0,
    )
    crm_max_retries: int = Field(
        default=3,
        description="Number of redeliveries after the first failed CRM send",
        ge=0,
    )
    crm_retry_delay_ms: int = Field(
        default=2_000,
        description="Fixed delay between CRM redelivery attempts in milliseconds",
        ge=0,
    )
    crm_sync_max_workers: int = Field(
        default=1,
        description="Number of customers delivered concurrently within a run (1 = sequential)",
        ge=1,
    )
    crm_mark_synced_on_delivery: bool = Field(
        default=False,
        description="Flag customers as synced in the database after a successful delivery",
    )

    @field_validator("crm_base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("crm_base_url must not be empty")
        if "://" not in candidate:
            # Accept host:port/path style values and assume plain HTTP.
            candidate = "http://" + candidate
        return candidate.rstrip("/")

    @field_validator("crm_customers_path")
    @classmethod
    def _normalize_customers_path(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("crm_customers_path must not be empty")
        return candidate if candidate.startswith("/") else "/" + candidate

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"log_level must be one of {', '.join(sorted(allowed))}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def _blank_log_file(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def customer_sync_period_seconds(self) -> float:
        return self.customer_sync_period_ms / 1000.0

    @property
    def crm_connect_timeout_seconds(self) -> float:
        return self.crm_connect_timeout_ms / 1000.0

    @property
    def crm_read_timeout_seconds(self) -> float:
        return self.crm_read_timeout_ms / 1000.0

    @property
    def crm_retry_delay_seconds(self) -> float:
        return self.crm_retry_delay_ms / 1000.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

from __future__ import annotations

import httpx
from loguru import logger

from app.core.config import settings
from app.domain import RemoteRejectedError, TransportError
from app.schemas import CustomerPayload

_JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
_MAX_ERROR_BODY_CHARS = 500


class CrmClient:
    """Thin wrapper around the CRM customer endpoint."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        customers_path: str | None = None,
        connect_timeout: float | None = None,
        read_timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.crm_base_url).rstrip("/")
        self.customers_path = customers_path or settings.crm_customers_path
        connect = (
            connect_timeout
            if connect_timeout is not None
            else settings.crm_connect_timeout_seconds
        )
        read = read_timeout if read_timeout is not None else settings.crm_read_timeout_seconds
        self.timeout = httpx.Timeout(read, connect=connect)
        self.client = httpx.Client(
            timeout=self.timeout,
            transport=transport,
        )

    @property
    def customers_url(self) -> str:
        return f"{self.base_url}{self.customers_path}"

    def send(self, payload: CustomerPayload) -> None:
        """POST one customer; returns nothing on any 2xx response."""

        body = payload.to_json()
        try:
            response = self.client.post(
                self.customers_url,
                content=body.encode("utf-8"),
                headers=_JSON_HEADERS,
            )
        except httpx.TransportError as exc:
            raise TransportError(
                f"CRM request to {self.customers_url} failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        if not response.is_success:
            detail = response.text[:_MAX_ERROR_BODY_CHARS]
            raise RemoteRejectedError(
                f"CRM responded {response.status_code} for customer {payload.id}: {detail}",
                status_code=response.status_code,
            )
        logger.trace("CRM accepted customer {} with status {}", payload.id, response.status_code)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "CrmClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

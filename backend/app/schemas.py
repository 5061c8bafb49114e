from datetime import datetime

from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel


class CustomerPayload(BaseModel):
    """Customer document POSTed to the CRM; independent of the database row shape."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: StrictInt
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SyncRunResponse(BaseModel):
    run_id: str
    started_at: datetime
    finished_at: datetime | None = None
    fetched: int
    delivered: int
    failed: int
    fetch_failed: bool

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str

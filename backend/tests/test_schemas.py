from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.schemas import CustomerPayload, SyncRunResponse
from pipelines.customer_sync import SyncRunSummary


def test_customer_payload_serializes_camel_case_keys():
    """Verify that the CRM body uses camelCase keys in a fixed order."""
    payload = CustomerPayload(id=1, first_name="Ann", last_name="Lee", email="a@x.com")
    assert payload.to_json() == '{"id":1,"firstName":"Ann","lastName":"Lee","email":"a@x.com"}'


def test_customer_payload_keeps_null_fields():
    """Verify that absent values are sent as explicit nulls."""
    body = json.loads(CustomerPayload(id=7).to_json())
    assert body == {"id": 7, "firstName": None, "lastName": None, "email": None}


def test_customer_payload_accepts_aliases():
    payload = CustomerPayload.model_validate({"id": 2, "firstName": "Bo", "lastName": "Kim"})
    assert payload.first_name == "Bo"
    assert payload.last_name == "Kim"


def test_customer_payload_requires_integer_id():
    with pytest.raises(ValidationError):
        CustomerPayload(id="12")


def test_customer_payload_is_immutable():
    payload = CustomerPayload(id=3)
    with pytest.raises(ValidationError):
        payload.email = "x@y.com"


def test_sync_run_response_reads_summary_attributes():
    """Verify that the API response is built straight from a run summary."""
    summary = SyncRunSummary(
        run_id="abc",
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        fetched=2,
        delivered=1,
        failed=1,
    )
    response = SyncRunResponse.model_validate(summary)
    assert response.run_id == "abc"
    assert response.finished_at is None
    assert (response.fetched, response.delivered, response.failed) == (2, 1, 1)
    assert response.fetch_failed is False

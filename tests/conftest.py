"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytest

from contactlink.logger import StructuredLogger
from contactlink.models import Customer, Invoice, Submission
from contactlink.repositories.json_store import json_stores
from contactlink.repositories.sql_store import sql_stores


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger without handlers, for metric assertions."""
    return StructuredLogger(name="contactlink.test", enable_console=False)


@pytest.fixture(params=["json", "sql"])
def stores(request, tmp_path):
    """The same tests run against the flat-file and the SQL backend."""
    if request.param == "json":
        return json_stores(tmp_path / "data")
    return sql_stores("sqlite://")


@pytest.fixture
def contact_form() -> List[Dict[str, Any]]:
    """Typical service-request form."""
    return [
        {"id": "f1", "label": "Customer Name", "type": "text"},
        {"id": "f2", "label": "Email Address", "type": "email"},
        {"id": "f3", "label": "Phone", "type": "phone"},
        {"id": "f4", "label": "Property Address", "type": "text"},
        {"id": "f5", "label": "City", "type": "text"},
        {"id": "f6", "label": "State", "type": "text"},
        {"id": "f7", "label": "Zip Code", "type": "text"},
        {"id": "f8", "label": "Hours Requested", "type": "number"},
    ]


@pytest.fixture
def contact_values() -> Dict[str, Any]:
    return {
        "f1": "Jane Doe",
        "f2": "jane@example.com",
        "f3": "(555) 123-4567",
        "f4": "12 Oak Street",
        "f5": "Springfield",
        "f6": "IL",
        "f7": "62701",
        "f8": 3,
    }


def make_customer(customer_id: str, tenant_id: str = "T", **fields) -> Customer:
    created = fields.pop("created_at", datetime(2024, 1, 1, 12, 0, 0))
    return Customer(
        id=customer_id,
        tenant_id=tenant_id,
        name=fields.pop("name", f"Customer {customer_id}"),
        created_at=created,
        updated_at=fields.pop("updated_at", created),
        **fields,
    )


def make_submission(submission_id: str, customer_id: str, tenant_id: str = "T") -> Submission:
    return Submission(id=submission_id, tenant_id=tenant_id, customer_id=customer_id, form_id="form-1")


def make_invoice(invoice_id: str, customer_id: str, tenant_id: str = "T", **fields) -> Invoice:
    return Invoice(id=invoice_id, tenant_id=tenant_id, customer_id=customer_id, **fields)

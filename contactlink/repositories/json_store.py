"""
Flat-file JSON repositories.

Each collection lives in its own file shaped as
`{"<collection>": {"<tenant_id>": {"<record_id>": {...}}}}`.
Every call re-reads the file, so several processes can share a data
directory as long as writes are serialized per tenant.
"""

import json
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..errors import StorageError
from ..models import Customer, Invoice, Submission
from .base import CustomerStore, InvoiceStore, Stores, SubmissionStore

T = TypeVar("T")


def load_store(path: Path, collection: str) -> Dict[str, Any]:
    if not path.exists():
        return {collection: {}}
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
    except OSError as e:
        raise StorageError(f"Cannot read store {path}: {e}", details={"path": str(path)}) from e
    if not content:
        return {collection: {}}
    try:
        store = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageError(f"Corrupt store {path}: {e}", details={"path": str(path)}) from e
    if not isinstance(store, dict):
        raise StorageError(f"Corrupt store {path}: top level must be an object", details={"path": str(path)})
    store.setdefault(collection, {})
    return store


def save_store(path: Path, store: Dict[str, Any]) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(store, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageError(f"Cannot write store {path}: {e}", details={"path": str(path)}) from e


class _JsonCollection:
    collection = ""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _records(self, tenant_id: str) -> Dict[str, Dict[str, Any]]:
        store = load_store(self.path, self.collection)
        return store[self.collection].get(tenant_id, {})

    def _mutate(self, tenant_id: str, change: Callable[[Dict[str, Dict[str, Any]]], T]) -> T:
        with self._lock:
            store = load_store(self.path, self.collection)
            records = store[self.collection].setdefault(tenant_id, {})
            result = change(records)
            if not records:
                del store[self.collection][tenant_id]
            save_store(self.path, store)
            return result


class JsonCustomerStore(_JsonCollection, CustomerStore):
    collection = "customers"

    def list(self, tenant_id: str) -> List[Customer]:
        return [Customer.from_dict(data) for data in self._records(tenant_id).values()]

    def get_by_id(self, tenant_id: str, customer_id: str) -> Optional[Customer]:
        data = self._records(tenant_id).get(customer_id)
        return Customer.from_dict(data) if data is not None else None

    def put(self, customer: Customer) -> Customer:
        def change(records):
            records[customer.id] = customer.to_dict()

        self._mutate(customer.tenant_id, change)
        return customer

    def delete(self, tenant_id: str, customer_id: str) -> bool:
        return self._mutate(tenant_id, lambda records: records.pop(customer_id, None) is not None)

    def owner_tenants(self, customer_id: str) -> List[str]:
        tenants = load_store(self.path, self.collection)[self.collection]
        return [tenant_id for tenant_id, records in tenants.items() if customer_id in records]


class _JsonDependentStore(_JsonCollection):
    record_type: Any = None

    def list_by_customer(self, tenant_id: str, customer_id: str):
        return [
            self.record_type.from_dict(data)
            for data in self._records(tenant_id).values()
            if data.get("customer_id") == customer_id
        ]

    def get_by_id(self, tenant_id: str, record_id: str):
        data = self._records(tenant_id).get(record_id)
        return self.record_type.from_dict(data) if data is not None else None

    def add(self, record):
        def change(records):
            if record.id in records:
                raise StorageError(
                    f"{self.collection[:-1]} {record.id} already exists",
                    details={"tenant_id": record.tenant_id, "id": record.id},
                )
            records[record.id] = record.to_dict()

        self._mutate(record.tenant_id, change)
        return record

    def update(self, record):
        def change(records):
            if record.id not in records:
                raise StorageError(
                    f"{self.collection[:-1]} {record.id} does not exist",
                    details={"tenant_id": record.tenant_id, "id": record.id},
                )
            records[record.id] = record.to_dict()

        self._mutate(record.tenant_id, change)
        return record


class JsonSubmissionStore(_JsonDependentStore, SubmissionStore):
    collection = "submissions"
    record_type = Submission


class JsonInvoiceStore(_JsonDependentStore, InvoiceStore):
    collection = "invoices"
    record_type = Invoice


def json_stores(data_dir: Path) -> Stores:
    data_dir = Path(data_dir)
    return Stores(
        customers=JsonCustomerStore(data_dir / "customers.json"),
        submissions=JsonSubmissionStore(data_dir / "submissions.json"),
        invoices=JsonInvoiceStore(data_dir / "invoices.json"),
    )

"""
Repository interfaces.

Responsibilities:
- Tenant-scoped CRUD for customers, submissions and invoices.

Non-Responsibilities:
- No matching or merge decisions.

Invariant:
Repositories must not encode domain decisions. Every I/O failure surfaces
as StorageError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..models import Customer, Invoice, Submission


class CustomerStore(ABC):

    @abstractmethod
    def list(self, tenant_id: str) -> List[Customer]:
        """All customers of a tenant, oldest first."""

    @abstractmethod
    def get_by_id(self, tenant_id: str, customer_id: str) -> Optional[Customer]:
        ...

    @abstractmethod
    def put(self, customer: Customer) -> Customer:
        """Insert or replace a customer keyed by (tenant_id, id)."""

    @abstractmethod
    def delete(self, tenant_id: str, customer_id: str) -> bool:
        """Returns False when nothing was deleted."""

    @abstractmethod
    def owner_tenants(self, customer_id: str) -> List[str]:
        """Tenants holding a customer with this id; used only to tell AccessDenied from NotFound."""


class SubmissionStore(ABC):

    @abstractmethod
    def list_by_customer(self, tenant_id: str, customer_id: str) -> List[Submission]:
        ...

    @abstractmethod
    def get_by_id(self, tenant_id: str, submission_id: str) -> Optional[Submission]:
        ...

    @abstractmethod
    def add(self, submission: Submission) -> Submission:
        ...

    @abstractmethod
    def update(self, submission: Submission) -> Submission:
        ...


class InvoiceStore(ABC):

    @abstractmethod
    def list_by_customer(self, tenant_id: str, customer_id: str) -> List[Invoice]:
        ...

    @abstractmethod
    def get_by_id(self, tenant_id: str, invoice_id: str) -> Optional[Invoice]:
        ...

    @abstractmethod
    def add(self, invoice: Invoice) -> Invoice:
        ...

    @abstractmethod
    def update(self, invoice: Invoice) -> Invoice:
        ...


@dataclass
class Stores:
    customers: CustomerStore
    submissions: SubmissionStore
    invoices: InvoiceStore

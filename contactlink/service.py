"""
contactlink public API.

CORE:
    classify(schema, values)                                  - Extract a ContactRecord
    ContactLinkService.resolve_customer_for_submission(...)   - Find-or-create customer
    ContactLinkService.merge_customers(...)                   - Merge two customers

CONVENIENCE:
    record_submission, list_customers, get_customer, customer_submissions,
    update_customer, delete_customer
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .classifier import classify
from .errors import NotFound, StorageError, ValidationError
from .locks import TenantLocks
from .logger import StructuredLogger, get_logger
from .merge import MergeCoordinator, load_customer
from .models import CONTACT_FIELDS, Customer, MergeResult, Submission
from .normalize import is_blank
from .repositories.base import Stores
from .resolver import IdentityResolver
from .schema import SchemaInput, load_schema_strict

UPDATABLE_FIELDS = set(CONTACT_FIELDS) | {"notes"}


class ContactLinkService:
    """Wires the resolver and merge coordinator to one set of stores and one lock registry."""

    def __init__(
        self,
        stores: Stores,
        locks: Optional[TenantLocks] = None,
        clock: Callable[[], datetime] = datetime.now,
        max_retries: int = 2,
        retry_delay: float = 0.1,
        logger: Optional[StructuredLogger] = None,
    ):
        self.stores = stores
        self.locks = locks or TenantLocks()
        self.clock = clock
        self.logger = logger or get_logger()
        self.resolver = IdentityResolver(
            stores.customers,
            locks=self.locks,
            clock=clock,
            logger=self.logger,
        )
        self.merger = MergeCoordinator(
            stores.customers,
            stores.submissions,
            stores.invoices,
            locks=self.locks,
            clock=clock,
            max_retries=max_retries,
            retry_delay=retry_delay,
            logger=self.logger,
        )

    # ======================================================================
    # CORE API
    # ======================================================================

    @staticmethod
    def classify(schema: SchemaInput, values: Optional[Mapping[str, Any]]):
        return classify(schema, values)

    def resolve_customer_for_submission(
        self,
        tenant_id: str,
        schema: SchemaInput,
        values: Optional[Mapping[str, Any]],
    ) -> Optional[Customer]:
        """Classify one submission and link it to a customer; None when it carries no identity."""
        _require_tenant(tenant_id)
        contact = classify(schema, values)
        return self.resolver.resolve(tenant_id, contact)

    def merge_customers(self, tenant_id: str, source_id: str, target_id: str) -> MergeResult:
        _require_tenant(tenant_id)
        return self.merger.merge(tenant_id, source_id, target_id)

    # ======================================================================
    # CONVENIENCE API
    # ======================================================================

    def record_submission(
        self,
        tenant_id: str,
        form_id: Optional[str],
        schema: SchemaInput,
        values: Optional[Mapping[str, Any]],
        submission_id: Optional[str] = None,
        strict: bool = False,
    ) -> Submission:
        """
        Store a submission linked to its customer.

        A failure to link never drops the submission: it is stored with
        customer_id None and the error is logged. With `strict`, a malformed
        schema raises ValidationError and nothing is stored.
        """
        _require_tenant(tenant_id)
        if strict:
            load_schema_strict(schema)
        customer = None
        try:
            customer = self.resolve_customer_for_submission(tenant_id, schema, values)
        except StorageError as e:
            self.logger.error("Error linking customer to submission", tenant_id=tenant_id, error=str(e))
            self.logger.record_error(e)

        submission = Submission(
            id=submission_id or uuid.uuid4().hex,
            tenant_id=tenant_id,
            customer_id=customer.id if customer else None,
            form_id=form_id,
            data=dict(values or {}),
            submitted_at=self.clock(),
        )
        return self.stores.submissions.add(submission)

    def list_customers(self, tenant_id: str) -> List[Customer]:
        _require_tenant(tenant_id)
        return self.stores.customers.list(tenant_id)

    def get_customer(self, tenant_id: str, customer_id: str) -> Customer:
        _require_tenant(tenant_id)
        return load_customer(self.stores.customers, tenant_id, customer_id)

    def customer_submissions(self, tenant_id: str, customer_id: str) -> List[Submission]:
        customer = self.get_customer(tenant_id, customer_id)
        return self.stores.submissions.list_by_customer(tenant_id, customer.id)

    def update_customer(self, tenant_id: str, customer_id: str, **fields) -> Customer:
        """Update contact fields and notes; empty values never blank a populated field."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown customer fields",
                details={"fields": sorted(unknown)},
            )
        with self.locks.hold(tenant_id):
            customer = self.get_customer(tenant_id, customer_id)
            for key, value in fields.items():
                if not is_blank(value):
                    setattr(customer, key, value)
            customer.updated_at = self.clock()
            self.stores.customers.put(customer)
        return customer

    def delete_customer(self, tenant_id: str, customer_id: str) -> None:
        """Administrative delete. Dependents keep their customer_id."""
        with self.locks.hold(tenant_id):
            self.get_customer(tenant_id, customer_id)
            if not self.stores.customers.delete(tenant_id, customer_id):
                raise NotFound(f"Customer '{customer_id}' not found")
        self.logger.info("Deleted customer", tenant_id=tenant_id, customer_id=customer_id)


def _require_tenant(tenant_id: str) -> None:
    if is_blank(tenant_id):
        raise ValidationError("Tenant id is required")

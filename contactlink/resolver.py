"""
Identity Resolver.

Responsibilities:
- Decide whether a ContactRecord carries enough identity to link.
- Find the tenant's existing customer, or create one.
- Fill forward new contact details onto a matched customer.

Non-Responsibilities:
- No field extraction.
- No merging of existing customers.

Invariant:
At most one customer is written per call, and none when the contact has
neither a usable name nor an email.
"""

import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .locks import TenantLocks
from .logger import StructuredLogger, get_logger
from .models import CONTACT_FIELDS, ContactRecord, Customer
from .normalize import email_local_part, is_blank, looks_like_phone, same_phone, same_text
from .repositories.base import CustomerStore

UNKNOWN_CUSTOMER = "Unknown Customer"


def valid_name(contact: ContactRecord) -> Optional[str]:
    """The contact's name when it can identify someone: present and not a phone number."""
    if is_blank(contact.name) or looks_like_phone(contact.name):
        return None
    return contact.name.strip()


def has_identity(contact: ContactRecord) -> bool:
    """A phone number alone never establishes an identity."""
    return valid_name(contact) is not None or not is_blank(contact.email)


def match_reasons(customer: Customer, contact: ContactRecord) -> List[str]:
    reasons = []
    if same_text(customer.email, contact.email):
        reasons.append("email")
    if same_text(customer.name, valid_name(contact)):
        reasons.append("name")
    if same_phone(customer.phone, contact.phone):
        reasons.append("phone")
    return reasons


def _new_customer_id() -> str:
    return uuid.uuid4().hex


class IdentityResolver:
    """Find-or-create of the canonical customer behind a submission."""

    def __init__(
        self,
        customers: CustomerStore,
        locks: Optional[TenantLocks] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_customer_id,
        logger: Optional[StructuredLogger] = None,
    ):
        self.customers = customers
        self.locks = locks or TenantLocks()
        self.clock = clock
        self.id_factory = id_factory
        self.logger = logger or get_logger()

    def resolve(self, tenant_id: str, contact: ContactRecord) -> Optional[Customer]:
        """
        Link a contact to a customer of the tenant.

        Args:
            tenant_id: Tenant that owns the submission
            contact: Output of the classifier

        Returns:
            The updated or newly created Customer, or None when the contact
            carries no identity (nothing is written in that case)
        """
        if not has_identity(contact):
            self.logger.info("No identity in submission, skipping customer link", tenant_id=tenant_id)
            self.logger.record("identity_skipped")
            return None

        with self.locks.hold(tenant_id):
            for _ in range(2):
                match = self.find_match(tenant_id, contact)
                if match is None:
                    return self._create(tenant_id, contact)
                # re-read: a merge may have removed the match since it was listed
                current = self.customers.get_by_id(tenant_id, match.id)
                if current is not None:
                    return self._fill_forward(current, contact)
                self.logger.warning("Matched customer vanished, matching again", tenant_id=tenant_id, customer_id=match.id)
            return self._create(tenant_id, contact)

    def find_match(self, tenant_id: str, contact: ContactRecord) -> Optional[Customer]:
        """
        First customer in store order matching on email, name or phone digits.

        A match on a source customer whose merge has not finished resolves
        to the merge target, so nothing new is written to the source.
        """
        customers = self.customers.list(tenant_id)
        absorbed_by = {source_id: c for c in customers for source_id in c.merged_from}

        candidates: Dict[str, Tuple[Customer, List[str]]] = {}
        for customer in customers:
            reasons = match_reasons(customer, contact)
            if not reasons:
                continue
            if customer.id in absorbed_by:
                self.logger.info(
                    "Matched customer is being merged, using merge target",
                    tenant_id=tenant_id,
                    customer_id=customer.id,
                    target_id=absorbed_by[customer.id].id,
                )
                customer = absorbed_by[customer.id]
            candidates.setdefault(customer.id, (customer, []))[1].extend(reasons)

        if not candidates:
            return None
        if len(candidates) > 1:
            self.logger.warning(
                "Ambiguous identity match, using first candidate",
                tenant_id=tenant_id,
                candidates={customer_id: reasons for customer_id, (_, reasons) in candidates.items()},
            )
            self.logger.record("ambiguous_matches")
        return next(iter(candidates.values()))[0]

    def _fill_forward(self, customer: Customer, contact: ContactRecord) -> Customer:
        incoming = contact.as_dict()
        incoming["name"] = valid_name(contact)
        changed = []
        for field in CONTACT_FIELDS:
            value = incoming[field]
            if is_blank(value):
                continue
            value = value.strip()
            if getattr(customer, field) != value:
                setattr(customer, field, value)
                changed.append(field)

        now = self.clock()
        customer.submission_count += 1
        customer.last_submission_at = now
        customer.updated_at = now
        self.customers.put(customer)

        self.logger.info(
            "Updated existing customer",
            tenant_id=customer.tenant_id,
            customer_id=customer.id,
            changed=changed,
            submission_count=customer.submission_count,
        )
        self.logger.record("customers_matched")
        return customer

    def _create(self, tenant_id: str, contact: ContactRecord) -> Customer:
        name = valid_name(contact)
        if name is None and not is_blank(contact.email):
            name = email_local_part(contact.email) or None

        now = self.clock()
        values = {
            field: (getattr(contact, field).strip() if not is_blank(getattr(contact, field)) else None)
            for field in CONTACT_FIELDS
            if field != "name"
        }
        customer = Customer(
            id=self.id_factory(),
            tenant_id=tenant_id,
            name=name or UNKNOWN_CUSTOMER,
            submission_count=1,
            created_at=now,
            updated_at=now,
            last_submission_at=now,
            **values,
        )
        self.customers.put(customer)

        self.logger.info("Created new customer", tenant_id=tenant_id, customer_id=customer.id, name=customer.name)
        self.logger.record("customers_created")
        return customer

"""
Merge Coordinator.

Responsibilities:
- Fold a source customer into a target customer of the same tenant.
- Repoint every submission and invoice from the source to the target.
- Delete the source once nothing references it.

Non-Responsibilities:
- No duplicate detection (operators pick the pair).
- No authorization beyond requiring both customers in the given tenant.

Invariant:
Commit order is validate, write target, repoint submissions, repoint
invoices, delete source. A retried merge never double counts and never
re-processes a record that already points at the target.
"""

from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .errors import AccessDenied, NotFound, PartialFailure, ValidationError
from .locks import TenantLocks
from .logger import StructuredLogger, get_logger
from .models import Customer, Invoice, MergeResult
from .normalize import is_blank
from .repositories.base import CustomerStore, InvoiceStore, SubmissionStore
from .retry import RetryError, call_with_retry

BACKFILL_FIELDS = ("name", "email", "phone", "address")
INVOICE_DISPLAY_FIELDS = (
    ("customer_name", "name"),
    ("customer_email", "email"),
    ("customer_phone", "phone"),
)


def merge_notes(target: Customer, source: Customer) -> Optional[str]:
    if not is_blank(target.notes) and not is_blank(source.notes):
        return f"{target.notes}\n\n--- Merged from {source.name} ---\n{source.notes}"
    return target.notes if not is_blank(target.notes) else source.notes


def merge_fields(target: Customer, source: Customer, now: datetime) -> Customer:
    """Target wins; the source only fills what the target leaves empty."""
    for field in BACKFILL_FIELDS:
        if is_blank(getattr(target, field)):
            setattr(target, field, getattr(source, field))
    target.notes = merge_notes(target, source)
    target.submission_count = (target.submission_count or 0) + (source.submission_count or 0)
    target.created_at = min(target.created_at, source.created_at)
    if target.last_submission_at and source.last_submission_at:
        target.last_submission_at = max(target.last_submission_at, source.last_submission_at)
    else:
        target.last_submission_at = target.last_submission_at or source.last_submission_at
    target.updated_at = now
    target.merged_from.append(source.id)
    return target


def load_customer(customers: CustomerStore, tenant_id: str, customer_id: str) -> Customer:
    """The tenant's customer, or AccessDenied/NotFound explaining why not."""
    customer = customers.get_by_id(tenant_id, customer_id)
    if customer is not None:
        return customer
    if any(owner != tenant_id for owner in customers.owner_tenants(customer_id)):
        raise AccessDenied(
            "Customer belongs to another tenant",
            details={"tenant_id": tenant_id, "customer_id": customer_id},
        )
    raise NotFound(
        f"Customer '{customer_id}' not found",
        details={"tenant_id": tenant_id, "customer_id": customer_id},
    )


class MergeCoordinator:

    def __init__(
        self,
        customers: CustomerStore,
        submissions: SubmissionStore,
        invoices: InvoiceStore,
        locks: Optional[TenantLocks] = None,
        clock: Callable[[], datetime] = datetime.now,
        max_retries: int = 2,
        retry_delay: float = 0.1,
        logger: Optional[StructuredLogger] = None,
    ):
        self.customers = customers
        self.submissions = submissions
        self.invoices = invoices
        self.locks = locks or TenantLocks()
        self.clock = clock
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = logger or get_logger()

    def merge(self, tenant_id: str, source_id: str, target_id: str) -> MergeResult:
        """
        Merge customer `source_id` into `target_id`.

        Raises:
            ValidationError: ids missing or equal
            NotFound: an id does not resolve in the tenant
            AccessDenied: an id belongs to another tenant
            PartialFailure: some dependents could not be repointed; the
                source is kept and the call can be repeated
        """
        if not source_id or not target_id:
            raise ValidationError("Both source and target customer ids are required")
        if source_id == target_id:
            raise ValidationError(
                "Cannot merge customer into itself",
                details={"customer_id": source_id},
            )

        with self.locks.hold(tenant_id):
            source = load_customer(self.customers, tenant_id, source_id)
            target = load_customer(self.customers, tenant_id, target_id)

            if source_id in target.merged_from:
                self.logger.info(
                    "Resuming merge, target already holds source fields",
                    tenant_id=tenant_id,
                    source_id=source_id,
                    target_id=target_id,
                )
            else:
                target = merge_fields(target, source, self.clock())
                self.customers.put(target)

            submissions_done, failed_submissions = self._repoint_submissions(tenant_id, source_id, target_id)
            invoices_done, failed_invoices = self._repoint_invoices(tenant_id, source_id, target)

            if failed_submissions or failed_invoices:
                self.logger.error(
                    "Merge incomplete, source customer kept",
                    tenant_id=tenant_id,
                    source_id=source_id,
                    target_id=target_id,
                    failed_submissions=failed_submissions,
                    failed_invoices=failed_invoices,
                )
                self.logger.record("merges_partial")
                raise PartialFailure(failed_submissions, failed_invoices, submissions_done, invoices_done)

            self.customers.delete(tenant_id, source_id)

        self.logger.info(
            f"Merged customer {source_id} into {target_id}",
            tenant_id=tenant_id,
            repointed_submissions=submissions_done,
            repointed_invoices=invoices_done,
        )
        self.logger.record("merges_completed")
        return MergeResult(
            target=target,
            repointed_submissions=submissions_done,
            repointed_invoices=invoices_done,
        )

    def _save(self, update: Callable, record) -> bool:
        try:
            call_with_retry(
                update,
                record,
                max_retries=self.max_retries,
                base_delay=self.retry_delay,
                on_retry=lambda attempt, e, delay: self.logger.warning(
                    "Retrying repoint", record_id=record.id, attempt=attempt, error=str(e), delay=delay
                ),
            )
        except RetryError as e:
            self.logger.error("Repoint failed", record_id=record.id, error=str(e.__cause__ or e))
            self.logger.record("repoint_failures")
            self.logger.record_error(e.__cause__ or e)
            return False
        self.logger.record("records_repointed")
        return True

    def _repoint_submissions(self, tenant_id: str, source_id: str, target_id: str) -> Tuple[int, List[str]]:
        done, failed = 0, []
        for submission in self.submissions.list_by_customer(tenant_id, source_id):
            submission.customer_id = target_id
            if self._save(self.submissions.update, submission):
                done += 1
            else:
                failed.append(submission.id)
        return done, failed

    def _repoint_invoices(self, tenant_id: str, source_id: str, target: Customer) -> Tuple[int, List[str]]:
        done, failed = 0, []
        for invoice in self.invoices.list_by_customer(tenant_id, source_id):
            self._point_invoice(invoice, target)
            if self._save(self.invoices.update, invoice):
                done += 1
            else:
                failed.append(invoice.id)
        return done, failed

    def _point_invoice(self, invoice: Invoice, target: Customer) -> None:
        invoice.customer_id = target.id
        for display_field, customer_field in INVOICE_DISPLAY_FIELDS:
            value = getattr(target, customer_field)
            if not is_blank(value):
                setattr(invoice, display_field, value)
        invoice.updated_at = self.clock()

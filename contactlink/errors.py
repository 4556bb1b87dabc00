"""
Error taxonomy for contactlink.

Business-rule errors need corrective input from the caller and are never
retried blindly. Storage errors wrap I/O failures and are safe to retry.
"""

from typing import Any, Dict, List, Optional


class ContactLinkError(Exception):
    """Base error. `code` is stable and meant for callers to branch on."""

    code = "CONTACTLINK_ERROR"
    retryable = False

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        self.message = message or self.code
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class BusinessRuleError(ContactLinkError):
    code = "BUSINESS_RULE"


class ValidationError(BusinessRuleError):
    code = "VALIDATION_ERROR"


class NotFound(BusinessRuleError):
    code = "CUSTOMER_NOT_FOUND"


class AccessDenied(BusinessRuleError):
    code = "ACCESS_DENIED"


class StorageError(ContactLinkError):
    """A store could not be read or written."""

    code = "STORAGE_ERROR"
    retryable = True


class PartialFailure(ContactLinkError):
    """
    Some dependent records could not be repointed during a merge.

    The source customer is kept so the merge can be invoked again; records
    already repointed are skipped on the next attempt.
    """

    code = "MERGE_PARTIAL_FAILURE"
    retryable = True

    def __init__(
        self,
        failed_submission_ids: List[str],
        failed_invoice_ids: List[str],
        repointed_submissions: int = 0,
        repointed_invoices: int = 0,
    ):
        self.failed_submission_ids = list(failed_submission_ids)
        self.failed_invoice_ids = list(failed_invoice_ids)
        self.repointed_submissions = repointed_submissions
        self.repointed_invoices = repointed_invoices
        total = len(self.failed_submission_ids) + len(self.failed_invoice_ids)
        super().__init__(
            f"{total} dependent record(s) failed to repoint; source customer kept",
            details={
                "failed_submission_ids": self.failed_submission_ids,
                "failed_invoice_ids": self.failed_invoice_ids,
                "repointed_submissions": repointed_submissions,
                "repointed_invoices": repointed_invoices,
            },
        )

    @property
    def failed_ids(self) -> List[str]:
        return self.failed_submission_ids + self.failed_invoice_ids

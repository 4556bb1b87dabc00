"""
contactlink - customer identity resolution for form submissions.

Usage:
    from contactlink import classify, ContactLinkService
    from contactlink.config import Settings, build_stores

    contact = classify(form["fields"], submission["data"])

    service = ContactLinkService(build_stores(Settings.from_env()))
    customer = service.resolve_customer_for_submission("tenant-1", fields, values)
    result = service.merge_customers("tenant-1", source_id, target_id)
"""

from .classifier import classify
from .errors import (
    AccessDenied,
    BusinessRuleError,
    ContactLinkError,
    NotFound,
    PartialFailure,
    StorageError,
    ValidationError,
)
from .models import ContactRecord, Customer, Invoice, MergeResult, Submission
from .service import ContactLinkService

__version__ = "0.1.0"

__all__ = [
    "classify",
    "ContactLinkService",
    "ContactRecord",
    "Customer",
    "Submission",
    "Invoice",
    "MergeResult",
    "ContactLinkError",
    "BusinessRuleError",
    "ValidationError",
    "NotFound",
    "AccessDenied",
    "PartialFailure",
    "StorageError",
]

"""
Repositories for customers and their dependent records.

The resolver and merge coordinator depend only on the interfaces in
`base`; `json_store` and `sql_store` are interchangeable implementations
chosen once at start-up (see contactlink.config.build_stores).
"""

from .base import CustomerStore, InvoiceStore, Stores, SubmissionStore

__all__ = ["CustomerStore", "SubmissionStore", "InvoiceStore", "Stores"]

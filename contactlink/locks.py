"""Tenant-scoped locks shared by the identity resolver and the merge coordinator."""

from contextlib import contextmanager
from threading import RLock
from typing import Dict, Iterator


class TenantLocks:
    """
    One re-entrant lock per tenant.

    Work for different tenants never waits on each other; work for the same
    tenant runs one read-modify-write sequence at a time.

    Locks are never evicted: the registry holds one RLock per tenant the
    process has seen.
    """

    def __init__(self):
        self._guard = RLock()
        self._locks: Dict[str, RLock] = {}

    def lock_for(self, tenant_id: str) -> RLock:
        with self._guard:
            lock = self._locks.get(tenant_id)
            if lock is None:
                lock = self._locks[tenant_id] = RLock()
            return lock

    @contextmanager
    def hold(self, tenant_id: str) -> Iterator[None]:
        lock = self.lock_for(tenant_id)
        with lock:
            yield

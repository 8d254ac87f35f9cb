"""Per-account serialization of mutating operations."""

import logging
import os
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from cashrecon.domain.errors import ConcurrencyConflict, lock_timeout

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


def lock_timeout_from_env() -> float:
    """Read CASHRECON_LOCK_TIMEOUT, falling back to the default."""
    raw = os.environ.get("CASHRECON_LOCK_TIMEOUT")
    if raw is None:
        return DEFAULT_LOCK_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid CASHRECON_LOCK_TIMEOUT=%r", raw)
        return DEFAULT_LOCK_TIMEOUT


class AccountLockRegistry:
    """Hands out one lock per account id.

    Mutations on the same account are serialized; different accounts proceed
    in parallel. Locks are reentrant so a reconciliation holding the account
    lock can call the transaction store's own locked operations.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else lock_timeout_from_env()
        self._guard = threading.Lock()
        self._locks: dict[int, threading.RLock] = {}

    def _lock_for(self, account_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[account_id] = lock
            return lock

    @contextmanager
    def hold(self, account_id: int) -> Iterator[None]:
        """Hold the account lock for the duration of the block.

        Raises:
            ConcurrencyConflict: If the lock is not acquired within the timeout
        """
        lock = self._lock_for(account_id)
        if not lock.acquire(timeout=self.timeout):
            logger.warning("Lock wait exceeded for account %s", account_id)
            raise ConcurrencyConflict(lock_timeout(account_id, self.timeout))
        try:
            yield
        finally:
            lock.release()

"""Caller-supplied cancellation for store queries."""

import threading
import time
from typing import Optional

from cashrecon.domain.errors import OperationCancelled


class CancellationToken:
    """Signals that the caller no longer wants a result.

    A token fires when ``cancel()`` is called or, if a timeout was given, once
    the deadline passes. Queries check the token before running and again
    before handing back results, so a cancelled caller never receives a
    partial aggregate.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        """Raise OperationCancelled if the token has fired."""
        if self.cancelled:
            raise OperationCancelled(f"{operation} was cancelled")


def check_cancelled(token: Optional[CancellationToken], operation: str) -> None:
    """Raise if ``token`` is set and has fired; no-op for ``None``."""
    if token is not None:
        token.raise_if_cancelled(operation)

"""Cooperative cancellation for long-running reads and exports.

A token is shared between the caller (who may cancel it, or give it a
deadline) and the worker, which checks it at every chunk boundary.
"""

from __future__ import annotations

import threading
import time


class OperationCancelledError(Exception):
    """Raised at a chunk boundary once a token is cancelled or expired."""

    def __init__(self, reason: str = "operation cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


class CancellationToken:
    pass

    def __init__(self, timeout: float | None = None) -> None:
        super().__init__()
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason = "operation cancelled"

    def cancel(self, reason: str = "operation cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "operation timed out"
            self._event.set()
            return True
        return False

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError(self._reason)


def check_cancelled(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()

"""Cancellation tokens for in-flight attempts and whole fetches.

A ``CancellationToken`` is owned by whoever may cancel: the caller owns the
token for a whole fetch, the executor owns one ``DeadlineToken`` per attempt.
Tokens are single-use; once cancelled they stay cancelled.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class CancelReason(str, Enum):
    """Why a token fired"""

    DEADLINE = "deadline"  # per-attempt timeout elapsed
    CALLER = "caller"  # the caller cancelled the whole fetch


class AttemptCancelled(Exception):
    """Raised when a token fires before the transport call completes"""

    def __init__(self, reason: CancelReason, message: Optional[str] = None):
        super().__init__(message or f"Request cancelled ({reason.value})")
        self.reason = reason


class CancellationToken:
    """Thread-safe, single-use cancellation signal"""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[CancelReason] = None
        self._sealed = False  # sealed tokens ignore cancel()
        self._callbacks: List[Callable[[CancelReason], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[CancelReason]:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.CALLER) -> bool:
        """Fire the token.

        Returns:
            True if this call fired it, False if it had already fired
        """
        with self._lock:
            if self._event.is_set() or self._sealed:
                return False
            self._reason = reason
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            callback(reason)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the token fires or ``timeout`` elapses.

        Returns:
            True if the token fired
        """
        return self._event.wait(timeout)

    def add_callback(self, callback: Callable[[CancelReason], None]) -> Callable[[], None]:
        """Run ``callback(reason)`` when the token fires (immediately if it already has).

        Returns:
            A function that unregisters the callback
        """
        with self._lock:
            fired = self._event.is_set()
            if not fired:
                self._callbacks.append(callback)

        if fired:
            callback(self._reason)
            return lambda: None

        def remove() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return remove

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise AttemptCancelled(self._reason)


class DeadlineToken(CancellationToken):
    """Token that fires with ``DEADLINE`` after ``timeout`` seconds.

    When linked to a caller token, caller cancellation propagates as
    ``CALLER``. ``retire()`` disarms the timer and unlinks the parent; a
    retired token never fires afterwards.
    """

    def __init__(self, timeout: float, parent: Optional[CancellationToken] = None) -> None:
        super().__init__()
        self.timeout = timeout
        self._timer = threading.Timer(timeout, self._expire)
        self._timer.daemon = True
        self._unlink: Callable[[], None] = lambda: None

        if parent is not None:
            self._unlink = parent.add_callback(lambda _reason: self.cancel(CancelReason.CALLER))
        if not self.cancelled:
            self._timer.start()

    def _expire(self) -> None:
        if self.cancel(CancelReason.DEADLINE):
            logger.debug(f"Attempt deadline of {self.timeout}s elapsed")

    def retire(self) -> None:
        """Disarm the timer and detach from the parent token"""
        with self._lock:
            self._sealed = True
            self._callbacks.clear()
        self._timer.cancel()
        self._unlink()

    def __enter__(self) -> "DeadlineToken":
        return self

    def __exit__(self, *exc_info) -> None:
        self.retire()

"""
Cooperative cancellation for long directory/table walks.

A :class:`CancelToken` is handed to a worker's walk, which checks it between
members.  It trips either when :meth:`CancelToken.cancel` is called or when
its deadline passes.
"""

from __future__ import annotations

import threading
import time

from datainspect.errors import ProfilingCancelled

__all__ = ["CancelToken"]


class CancelToken:
    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    @property
    def remaining(self) -> float | None:
        """Seconds left before the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ProfilingCancelled("Profiling walk cancelled")

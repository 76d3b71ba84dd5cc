"""
Cancellable, deadline-bounded request context.

Every blocking provider call takes a RequestContext. Children created with
``with_timeout`` inherit the parent's deadline and cancellation, so
cancelling the caller's context stops a whole fallback chain.
"""

import threading
import time
from typing import Optional

from .errors import GenerationCancelled, GenerationTimeout


class RequestContext:
    """Deadline and cancellation flag shared down a call chain."""

    def __init__(self, timeout_s: Optional[float] = None, parent: Optional["RequestContext"] = None):
        self._parent = parent
        self._cancelled = threading.Event()

        deadline = time.monotonic() + timeout_s if timeout_s is not None else None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

    @classmethod
    def background(cls) -> "RequestContext":
        """A context that never expires and is only cancelled explicitly."""
        return cls()

    def with_timeout(self, timeout_s: float) -> "RequestContext":
        """Derive a child bounded by ``timeout_s`` and by this context's deadline."""
        return RequestContext(timeout_s=timeout_s, parent=self)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent.cancelled if self._parent is not None else False

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def timeout(self, default: float) -> float:
        """Effective timeout for a single call: ``default`` capped by the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    def check(self, provider: str = "context") -> None:
        """
        Raise if the context can no longer be used.

        Raises:
            GenerationCancelled: If cancelled
            GenerationTimeout: If the deadline has passed
        """
        if self.cancelled:
            raise GenerationCancelled()
        if self.expired:
            raise GenerationTimeout(provider, "deadline exceeded")

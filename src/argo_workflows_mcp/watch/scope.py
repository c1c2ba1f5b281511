"""Cancellable request scope with an optional deadline.

A scope is the single stop signal for a blocking watch: both a timeout and an
explicit cancellation complete it, and anything blocked on the scope is woken
through its done callbacks.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from types import TracebackType

logger = logging.getLogger(__name__)


class DoneReason(str, Enum):
    DEADLINE_EXCEEDED = "deadline_exceeded"
    CANCELLED = "cancelled"


class ScopeDone(Exception):
    """Raised by blocking operations interrupted by their scope."""


class DeadlineExceeded(ScopeDone):
    pass


class Cancelled(ScopeDone):
    pass


class RequestScope:
    """A cancellation scope, optionally bounded by a deadline.

    Scopes nest: a child completes when its parent does (with the parent's
    reason), never the other way round.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        parent: RequestScope | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._reason: DoneReason | None = None
        self._callbacks: list[Callable[[], None]] = []
        self._timer: threading.Timer | None = None
        self._parent = parent

        self._deadline: float | None = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout
        if parent is not None and parent.deadline is not None:
            if self._deadline is None or parent.deadline < self._deadline:
                self._deadline = parent.deadline

        if parent is not None:
            parent.add_done_callback(self._on_parent_done)

        if timeout is not None and not self.done:
            if timeout <= 0:
                self._finish(DoneReason.DEADLINE_EXCEEDED)
            else:
                self._timer = threading.Timer(
                    timeout, self._finish, args=(DoneReason.DEADLINE_EXCEEDED,)
                )
                self._timer.daemon = True
                self._timer.start()

    @property
    def deadline(self) -> float | None:
        """Deadline on the `time.monotonic()` clock, if any."""

        return self._deadline

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def reason(self) -> DoneReason | None:
        return self._reason

    @property
    def deadline_exceeded(self) -> bool:
        return self._reason is DoneReason.DEADLINE_EXCEEDED

    def cancel(self) -> None:
        self._finish(DoneReason.CANCELLED)

    def raise_if_done(self) -> None:
        if self._reason is DoneReason.DEADLINE_EXCEEDED:
            raise DeadlineExceeded("request scope deadline exceeded")
        if self._reason is DoneReason.CANCELLED:
            raise Cancelled("request scope cancelled")

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        """Run `callback` once the scope completes (immediately if it already has)."""

        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_done_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def _on_parent_done(self) -> None:
        assert self._parent is not None
        self._finish(self._parent.reason or DoneReason.CANCELLED)

    def _finish(self, reason: DoneReason) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._reason = reason
            self._done.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        if self._timer is not None:
            self._timer.cancel()
        if self._parent is not None:
            self._parent.remove_done_callback(self._on_parent_done)

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Request scope callback failed")

    def __enter__(self) -> RequestScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()

"""Cancellation and deadline scopes for store calls.

A Context travels with every repository call down to the store. Stores check
it before running a statement and register a watcher that interrupts the
in-flight statement when the context is cancelled or its deadline passes.

Example:
    ctx, cancel = Context.background().with_cancel()
    users = repo.with_context(ctx.with_timeout(2.0)).find().all()

Contexts are immutable apart from their cancellation flag; deriving a new
scope never changes the parent.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from .exceptions import CancelledError, DeadlineExceededError, StoreError


class Context:
    """Cancellation/deadline scope for a chain of store calls."""

    def __init__(
        self,
        deadline: float | None = None,
        parent: "Context | None" = None,
        cancellable: bool = False,
    ) -> None:
        """Initialize a context.

        Args:
            deadline: Absolute time.monotonic() deadline, or None.
            parent: Context this one derives from. Cancelling the parent
                cancels this context too.
            cancellable: Whether cancel() may be called on this context.
        """
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline
        self._parent = parent
        self._cancellable = cancellable
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @classmethod
    def background(cls) -> "Context":
        """Return the shared root context, which is never done."""
        return _BACKGROUND

    @property
    def deadline(self) -> float | None:
        """Effective monotonic deadline, inherited from parents."""
        return self._deadline

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a context that expires after the given number of seconds."""
        return Context(deadline=time.monotonic() + seconds, parent=self)

    def with_deadline(self, deadline: float) -> "Context":
        """Derive a context that expires at a time.monotonic() deadline."""
        return Context(deadline=deadline, parent=self)

    def with_cancel(self) -> tuple["Context", Callable[[], None]]:
        """Derive a cancellable context.

        Returns:
            Tuple of (context, cancel) where calling cancel() aborts any
            in-flight call running under the context.
        """
        ctx = Context(parent=self, cancellable=True)
        return ctx, ctx._cancel

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def done(self) -> bool:
        """Whether the context has been cancelled or has expired."""
        return self.err() is not None

    def err(self) -> StoreError | None:
        """Return the cancellation error for this context, if any."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._cancelled.is_set():
                return CancelledError("context cancelled")
            ctx = ctx._parent

        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            return DeadlineExceededError("context deadline exceeded")
        return None

    def check(self) -> None:
        """Raise the cancellation error if the context is done."""
        if (error := self.err()) is not None:
            raise error

    def watch(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call callback once, from another thread, when the context ends.

        Args:
            callback: Invoked on cancellation or when the deadline passes.

        Returns:
            A stop() function that disarms the watcher. Always call it once
            the watched operation has finished.
        """
        fired = threading.Event()

        def fire() -> None:
            if not fired.is_set():
                fired.set()
                callback()

        registered: list[Context] = []
        ctx: Context | None = self
        while ctx is not None:
            if ctx._cancellable:
                ctx._add_callback(fire)
                registered.append(ctx)
            ctx = ctx._parent

        timer: threading.Timer | None = None
        remaining = self.remaining()
        if remaining is not None:
            timer = threading.Timer(max(remaining, 0.0), fire)
            timer.daemon = True
            timer.start()

        def stop() -> None:
            fired.set()
            if timer is not None:
                timer.cancel()
            for owner in registered:
                owner._remove_callback(fire)

        return stop

    def _add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            already = self._cancelled.is_set()
            if not already:
                self._callbacks.append(callback)
        if already:
            callback()

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def __repr__(self) -> str:
        remaining = self.remaining()
        return f"Context(remaining={remaining!r}, done={self.done()})"


_BACKGROUND = Context()

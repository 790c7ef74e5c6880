"""Execution-context values that steer call routing.

ReentrancyGuard marks "this call is the real execution requested by the call
activity" so that the router does not intercept it again. RoutingContext
holds the run id that calls made in the current context belong to.

Both wrap a ``contextvars.ContextVar`` created per instance. Worker threads
start from an empty context, so a value set in an activity thread is never
visible from the agent thread that is waiting on it.
"""

import contextvars
import itertools
from contextlib import contextmanager
from typing import Iterator, Optional

_instance_ids = itertools.count()


class ReentrancyGuard:
    """Flag set for the duration of a real call execution."""

    def __init__(self) -> None:
        self._active: contextvars.ContextVar[bool] = contextvars.ContextVar(
            f"durable_call_guard_{next(_instance_ids)}", default=False
        )

    def is_active(self) -> bool:
        return self._active.get()

    @contextmanager
    def activate(self) -> Iterator[None]:
        """Set the flag, and restore the previous value on every exit path."""
        token = self._active.set(True)
        try:
            yield
        finally:
            self._active.reset(token)


class RoutingContext:
    """Run id that routed calls in the current context are attributed to."""

    def __init__(self) -> None:
        self._run_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
            f"durable_run_id_{next(_instance_ids)}", default=None
        )

    def get_run_id(self) -> Optional[str]:
        return self._run_id.get()

    def set_run_id(self, run_id: Optional[str]) -> None:
        self._run_id.set(run_id)

    def clear(self) -> None:
        self._run_id.set(None)

    @contextmanager
    def bind(self, run_id: Optional[str]) -> Iterator[None]:
        """Attribute calls to ``run_id`` inside the block."""
        token = self._run_id.set(run_id)
        try:
            yield
        finally:
            self._run_id.reset(token)

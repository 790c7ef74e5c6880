"""Per-run table of intercepted calls awaiting durable execution.

Each routed tool or model call is registered here under a call id before its
event is raised to the run workflow. The call activity later looks the entry
up, performs the real operation and completes it, which unblocks the caller.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from durable_agents.runtime.result_slot import ResultSlot

logger = logging.getLogger(__name__)


@dataclass
class PendingCall:
    """An intercepted call: the target, what to call on it, and its result slot."""

    call_id: str
    target: Any
    operation: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    slot: ResultSlot = field(default_factory=ResultSlot)

    def invoke(self) -> Any:
        """Perform the captured operation on the captured target."""
        return getattr(self.target, self.operation)(*self.args, **self.kwargs)


class PendingCallTable:
    """Thread-safe map from call id to PendingCall for one run.

    The caller thread registers, the activity thread completes. Completion
    removes the entry; completing a missing entry is a no-op so that
    duplicate or late completions are harmless.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self._calls: Dict[str, PendingCall] = {}
        self._lock = threading.Lock()

    def register(
        self,
        call_id: str,
        target: Any,
        operation: str,
        args: Tuple[Any, ...] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> ResultSlot:
        """Register a pending call.

        Args:
            call_id: Identifier unique within this run.
            target: Object the operation is invoked on.
            operation: Name of the method to invoke.
            args: Positional arguments.
            kwargs: Keyword arguments.

        Returns:
            The slot the caller blocks on.

        Raises:
            ValueError: If the call id is already registered.
        """
        pending = PendingCall(
            call_id=call_id,
            target=target,
            operation=operation,
            args=tuple(args),
            kwargs=dict(kwargs or {}),
        )
        with self._lock:
            if call_id in self._calls:
                raise ValueError(
                    f"Call id {call_id} is already pending in run {self.run_id}"
                )
            self._calls[call_id] = pending
        return pending.slot

    def get(self, call_id: str) -> Optional[PendingCall]:
        with self._lock:
            return self._calls.get(call_id)

    def complete(self, call_id: str, result: Any) -> bool:
        """Complete a pending call with its result.

        Returns:
            True if the call was pending, False if there was nothing to complete.
        """
        with self._lock:
            pending = self._calls.pop(call_id, None)
        if pending is None:
            logger.debug(
                f"[AgentRun:{self.run_id}] Ignoring completion of unknown call {call_id}"
            )
            return False
        return pending.slot.set_result(result)

    def fail(self, call_id: str, error: BaseException) -> bool:
        """Fail a pending call; the caller re-raises ``error``.

        Returns:
            True if the call was pending, False if there was nothing to fail.
        """
        with self._lock:
            pending = self._calls.pop(call_id, None)
        if pending is None:
            logger.debug(
                f"[AgentRun:{self.run_id}] Ignoring failure of unknown call {call_id}"
            )
            return False
        return pending.slot.set_exception(error)

    def call_ids(self) -> List[str]:
        with self._lock:
            return list(self._calls)

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)

    def __contains__(self, call_id: object) -> bool:
        with self._lock:
            return call_id in self._calls

"""Registries of live runs and live orchestration planners.

Both registries are ordinary instances owned by the composition root
(``DurableAgentsRuntime``) and passed to the components that need them.
"""

import logging
import threading
from typing import TYPE_CHECKING, Dict, Generic, List, Optional, TypeVar

from durable_agents.runtime.pending_calls import PendingCallTable

if TYPE_CHECKING:
    from durable_agents.runtime.planner import OrchestrationPlanner

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Registry(Generic[T]):
    """Thread-safe id -> entry map."""

    kind = "entry"

    def __init__(self) -> None:
        self._entries: Dict[str, T] = {}
        self._lock = threading.Lock()

    def register(self, key: str, entry: T) -> None:
        with self._lock:
            self._entries[key] = entry
        logger.debug(f"Registered {self.kind} {key}")

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            return self._entries.get(key)

    def unregister(self, key: str) -> Optional[T]:
        """Remove an entry.

        Returns:
            The removed entry, or None if it was not registered.
        """
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is not None:
            logger.debug(f"Unregistered {self.kind} {key}")
        return entry

    def registered_ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RunRegistry(_Registry[PendingCallTable]):
    """Map from run id to the run's PendingCallTable."""

    kind = "run"

    def create(self, run_id: str) -> PendingCallTable:
        """Create and register an empty table for a run."""
        table = PendingCallTable(run_id)
        self.register(run_id, table)
        return table


class PlannerRegistry(_Registry["OrchestrationPlanner"]):
    """Map from planner id to its OrchestrationPlanner."""

    kind = "planner"

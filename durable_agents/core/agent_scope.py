"""Shared state for a multi-agent invocation.

This module provides the AgentScope class that holds the state agents share
during one invocation. Sub-agents read their inputs from it and write their
outputs to it, and loop exit conditions and conditional predicates are
evaluated against it.
"""

import threading
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, PrivateAttr


class AgentScope(BaseModel):
    """Shared state container for agents taking part in one invocation.

    Parallel sub-agents run on different threads and may write concurrently,
    so reads and writes go through a lock.

    Attributes:
        state: Mapping of state keys to values.
        metadata: Additional metadata about the invocation.
    """

    state: Dict[str, Any] = Field(
        default_factory=dict,
        description="State shared between agents",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata about the invocation",
    )

    _lock: Any = PrivateAttr(default_factory=threading.RLock)

    def write_state(self, key: str, value: Any) -> None:
        """Store a value in the shared state.

        Args:
            key: The key to store the value under.
            value: The value to store.
        """
        with self._lock:
            self.state[key] = value

    def read_state(self, key: str, default: Any = None) -> Any:
        """Retrieve a value from the shared state.

        Args:
            key: The key to retrieve the value for.
            default: Default value to return if key is not found.

        Returns:
            The value associated with the key, or the default value if not found.
        """
        with self._lock:
            return self.state.get(key, default)

    def has_state(self, key: str) -> bool:
        with self._lock:
            return key in self.state

    def snapshot(self) -> Dict[str, Any]:
        """Return a shallow copy of the shared state."""
        with self._lock:
            return dict(self.state)

    @classmethod
    def of(cls, state: Optional[Dict[str, Any]] = None, **values: Any) -> "AgentScope":
        """Create a scope pre-populated with state values."""
        initial = dict(state or {})
        initial.update(values)
        return cls(state=initial)

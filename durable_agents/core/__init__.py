"""Core agent infrastructure.

This module provides the foundational classes for the agent system:
- AgentBase: Base class for all agents
- AgentConfig: Configuration model for agents
- AgentScope: Shared state for one multi-agent invocation
- Errors raised by the runtime
"""

from .agent_base import AgentBase, AgentConfig
from .agent_scope import AgentScope
from .errors import CallExecutionError, DurableAgentsError, PlannerStateError

__all__ = [
    "AgentBase",
    "AgentConfig",
    "AgentScope",
    "CallExecutionError",
    "DurableAgentsError",
    "PlannerStateError",
]

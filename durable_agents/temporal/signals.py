"""Signal definitions for Temporal workflows.

The in-process side talks to a running agent-run workflow through a single
signal carrying an AgentEvent: tool-call and model-call events ask the
workflow to execute a pending call, and the done event ends the run.
"""

from durable_agents.contracts.events import AgentEvent, AgentEventType

# Signal names (used in workflow.signal decorators)
SIGNAL_AGENT_EVENT = "agent-event"

__all__ = ["SIGNAL_AGENT_EVENT", "AgentEvent", "AgentEventType"]

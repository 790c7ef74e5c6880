"""Interface between the in-process runtime and the workflow engine.

The runtime only needs to start workflow instances and raise events into
them. ``durable_agents.temporal.client.TemporalWorkflowGateway`` is the
production implementation.
"""

from typing import Protocol

from pydantic import BaseModel

from durable_agents.contracts.events import AgentEvent


class WorkflowGateway(Protocol):
    """Synchronous view of the workflow engine used by agent threads."""

    def schedule_new_workflow(
        self, workflow: str, payload: BaseModel, instance_id: str
    ) -> None:
        """Start a workflow instance asynchronously.

        Args:
            workflow: Registered workflow type name.
            payload: Workflow input.
            instance_id: Workflow id.
        """
        ...

    def raise_event(self, instance_id: str, event: AgentEvent) -> None:
        """Deliver an AgentEvent to a running workflow instance."""
        ...

"""Query definitions and schemas for Temporal workflows.

Queries are the externally observable progress of a workflow. An agent-run
workflow exposes its RunOutput transcript after every event; orchestration
workflows expose which steps have completed.

All queries use Pydantic models for type safety and validation.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from durable_agents.contracts.orchestration_io import (ExecutionActivityOutput,
                                                       OrchestrationTopology)


class WorkflowStatus(str, Enum):
    """Enumeration of workflow execution statuses."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RunStatusQueryResult(BaseModel):
    """Result of a run status query.

    Attributes:
        run_id: Run identifier.
        agent_name: Name of the tracked agent.
        status: Current run status.
        completed_calls: Number of calls executed so far.
        queued_events: Events received but not yet processed.
        current_call_id: Call currently being executed, if any.
    """

    run_id: str = Field(..., description="Run identifier")
    agent_name: str = Field(..., description="Name of the tracked agent")
    status: WorkflowStatus = Field(..., description="Current run status")
    completed_calls: int = Field(default=0, description="Calls executed so far")
    queued_events: int = Field(default=0, description="Events waiting to be processed")
    current_call_id: Optional[str] = Field(
        default=None, description="Call currently being executed"
    )


class OrchestrationStatusQueryResult(BaseModel):
    """Result of an orchestration status query."""

    planner_id: str = Field(..., description="Planner identifier")
    topology: Optional[OrchestrationTopology] = Field(
        default=None, description="Pipeline shape"
    )
    status: WorkflowStatus = Field(..., description="Current orchestration status")
    current_iteration: int = Field(default=0, description="Current loop iteration")
    completed_steps: List[ExecutionActivityOutput] = Field(
        default_factory=list, description="Agent steps completed so far"
    )
    skipped_agents: List[int] = Field(
        default_factory=list, description="Conditional agents that were skipped"
    )
    error: Optional[str] = Field(default=None, description="Failure message, if any")


# Query names (used in workflow.query decorators)
QUERY_RUN_OUTPUT = "run_output"
QUERY_RUN_STATUS = "run_status"
QUERY_ORCHESTRATION_STATUS = "orchestration_status"

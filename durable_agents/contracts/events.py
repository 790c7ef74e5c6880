"""Event contracts exchanged between the in-process side and a run workflow.

An agent thread that intercepts a tool or model call raises an AgentEvent
into the run's workflow instance. The workflow consumes events strictly in
arrival order, which is what makes its published RunOutput a faithful
transcript of the run.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AgentEventType(str, Enum):
    """Enumeration of agent event types."""

    TOOL_CALL = "tool-call"
    MODEL_CALL = "model-call"
    DONE = "done"


class AgentEvent(BaseModel):
    """Event sent into a running agent-run workflow.

    Attributes:
        type: Kind of event. ``done`` is terminal.
        call_id: Identifier of the pending call. Absent for ``done``.
        operation_name: Name of the intercepted operation.
        payload: Human-readable rendering of the call input.
    """

    type: AgentEventType = Field(..., description="Kind of event")
    call_id: Optional[str] = Field(
        default=None, description="Pending call identifier, unique within the run"
    )
    operation_name: Optional[str] = Field(
        default=None, description="Name of the intercepted tool or model operation"
    )
    payload: Optional[str] = Field(
        default=None, description="Text rendering of the call input"
    )

    @property
    def is_terminal(self) -> bool:
        return self.type == AgentEventType.DONE

    @classmethod
    def done(cls) -> "AgentEvent":
        """Create the terminal event that completes a run."""
        return cls(type=AgentEventType.DONE)

    @classmethod
    def tool_call(
        cls, call_id: str, operation_name: str, payload: Optional[str] = None
    ) -> "AgentEvent":
        return cls(
            type=AgentEventType.TOOL_CALL,
            call_id=call_id,
            operation_name=operation_name,
            payload=payload,
        )

    @classmethod
    def model_call(
        cls, call_id: str, operation_name: str, payload: Optional[str] = None
    ) -> "AgentEvent":
        return cls(
            type=AgentEventType.MODEL_CALL,
            call_id=call_id,
            operation_name=operation_name,
            payload=payload,
        )


class AgentRunInput(BaseModel):
    """Input for an agent-run workflow.

    Attributes:
        run_id: Run identifier, also used as the workflow id.
        agent_name: Name of the agent being tracked.
        user_message: Optional user prompt the run was started with.
        system_message: Optional system prompt the run was started with.
    """

    run_id: str = Field(..., description="Run identifier (workflow id)")
    agent_name: str = Field(..., description="Name of the tracked agent")
    user_message: Optional[str] = Field(
        default=None, description="User prompt the run was started with"
    )
    system_message: Optional[str] = Field(
        default=None, description="System prompt the run was started with"
    )

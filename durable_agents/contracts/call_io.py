"""Input/output contracts for durable call execution.

CallActivityInput and CallActivityOutput travel through workflow history
for every routed tool or model call. RunOutput is the aggregated transcript
a run workflow republishes after each event.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from durable_agents.contracts.events import AgentEventType


class CallActivityInput(BaseModel):
    """Input for the ``execute_call`` activity."""

    run_id: str = Field(..., description="Run the pending call belongs to")
    call_id: str = Field(..., description="Pending call identifier")
    operation_name: str = Field(..., description="Name of the operation to execute")
    payload: Optional[str] = Field(
        default=None, description="Text rendering of the call input"
    )


class CallActivityOutput(BaseModel):
    """Durable history record returned by the ``execute_call`` activity."""

    operation_name: str = Field(..., description="Name of the executed operation")
    payload: Optional[str] = Field(
        default=None, description="Text rendering of the call input"
    )
    result_text: Optional[str] = Field(
        default=None, description="Text rendering of the call result"
    )


class CallRecord(BaseModel):
    """One completed call in a run transcript."""

    kind: AgentEventType = Field(..., description="tool-call or model-call")
    operation_name: str = Field(..., description="Name of the executed operation")
    input: Optional[str] = Field(default=None, description="Call input text")
    output: Optional[str] = Field(default=None, description="Call result text")

    @classmethod
    def from_activity_output(
        cls, kind: AgentEventType, output: CallActivityOutput
    ) -> "CallRecord":
        return cls(
            kind=kind,
            operation_name=output.operation_name,
            input=output.payload,
            output=output.result_text,
        )


class RunOutput(BaseModel):
    """Ordered transcript of the calls completed by one run.

    Attributes:
        run_id: Run identifier.
        agent_name: Name of the tracked agent.
        calls: Completed calls in the order their events arrived.
    """

    run_id: str = Field(default="", description="Run identifier")
    agent_name: str = Field(default="", description="Name of the tracked agent")
    calls: List[CallRecord] = Field(
        default_factory=list, description="Completed calls in arrival order"
    )

    @property
    def tool_calls(self) -> List[CallRecord]:
        return [c for c in self.calls if c.kind == AgentEventType.TOOL_CALL]

    @property
    def model_calls(self) -> List[CallRecord]:
        return [c for c in self.calls if c.kind == AgentEventType.MODEL_CALL]

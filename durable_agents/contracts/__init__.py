"""Data contracts shared by the in-process runtime and Temporal workflows.

Everything here is a plain pydantic model or constant so that workflow
modules can import it inside the workflow sandbox.
"""

from .call_io import CallActivityInput, CallActivityOutput, CallRecord, RunOutput
from .chat import (ChatMessage, ChatRequest, ChatResponse, ToolCallRequest,
                   ToolSpecification)
from .events import AgentEvent, AgentEventType, AgentRunInput
from .orchestration_io import (UNBOUNDED_ITERATIONS, ConditionCheckInput,
                               ExecutionActivityInput, ExecutionActivityOutput,
                               ExitConditionCheckInput, OrchestrationInput,
                               OrchestrationResult, OrchestrationTopology)

__all__ = [
    "AgentEvent",
    "AgentEventType",
    "AgentRunInput",
    "CallActivityInput",
    "CallActivityOutput",
    "CallRecord",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ConditionCheckInput",
    "ExecutionActivityInput",
    "ExecutionActivityOutput",
    "ExitConditionCheckInput",
    "OrchestrationInput",
    "OrchestrationResult",
    "OrchestrationTopology",
    "RunOutput",
    "ToolCallRequest",
    "ToolSpecification",
    "UNBOUNDED_ITERATIONS",
]

"""Input/output contracts for multi-agent orchestration workflows."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

# Largest signed 32-bit integer, used as "no loop limit".
UNBOUNDED_ITERATIONS = 2**31 - 1


class OrchestrationTopology(str, Enum):
    """Shapes a multi-agent pipeline can take."""

    SEQUENCE = "sequence"
    PARALLEL = "parallel"
    LOOP = "loop"
    CONDITIONAL = "conditional"


class OrchestrationInput(BaseModel):
    """Input for an orchestration workflow.

    Attributes:
        planner_id: Identifier of the in-process planner (and workflow id).
        topology: Pipeline shape driven by the workflow.
        agent_count: Number of sub-agents.
        max_iterations: Loop limit, only used by the loop topology.
        test_exit_at_loop_end: Loop only. Evaluate the exit condition once per
            iteration instead of after every agent.
    """

    planner_id: str = Field(..., description="Planner identifier (workflow id)")
    topology: OrchestrationTopology = Field(..., description="Pipeline shape")
    agent_count: int = Field(..., ge=0, description="Number of sub-agents")
    max_iterations: int = Field(
        default=UNBOUNDED_ITERATIONS, ge=1, description="Loop iteration limit"
    )
    test_exit_at_loop_end: bool = Field(
        default=False,
        description="Evaluate the loop exit condition only at the end of an iteration",
    )


class ExecutionActivityInput(BaseModel):
    """Input for the ``execute_agent_step`` activity.

    ``iteration`` is 0 outside loops and the 1-based loop iteration inside
    one, so that each loop pass gets its own run id.
    """

    planner_id: str = Field(..., description="Planner identifier")
    agent_index: int = Field(..., ge=0, description="Index of the sub-agent")
    iteration: int = Field(default=0, ge=0, description="Loop iteration, 0 if none")


class ExecutionActivityOutput(BaseModel):
    """Result of one orchestrated agent step."""

    agent_index: int = Field(..., description="Index of the sub-agent")
    agent_name: str = Field(..., description="Name of the sub-agent")
    run_id: str = Field(..., description="Run id of the nested agent-run workflow")


class ConditionCheckInput(BaseModel):
    """Input for the ``check_condition`` activity."""

    planner_id: str = Field(..., description="Planner identifier")
    agent_index: int = Field(..., ge=0, description="Index of the sub-agent")


class ExitConditionCheckInput(BaseModel):
    """Input for the ``check_exit_condition`` activity."""

    planner_id: str = Field(..., description="Planner identifier")
    iteration: int = Field(..., ge=1, description="1-based loop iteration")


class OrchestrationResult(BaseModel):
    """Final result of an orchestration workflow."""

    planner_id: str = Field(..., description="Planner identifier")
    topology: OrchestrationTopology = Field(..., description="Pipeline shape")
    steps: List[ExecutionActivityOutput] = Field(
        default_factory=list, description="Executed agent steps in completion order"
    )
    iterations: int = Field(default=0, description="Loop iterations performed")
    skipped_agents: List[int] = Field(
        default_factory=list, description="Conditional agents whose condition was false"
    )

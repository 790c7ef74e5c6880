"""Temporal workflows for durable agent runs and orchestration."""

from .agent_run import AgentRunWorkflow
from .orchestration import (ConditionalOrchestrationWorkflow,
                            LoopOrchestrationWorkflow,
                            ParallelOrchestrationWorkflow,
                            SequentialOrchestrationWorkflow)

__all__ = [
    "AgentRunWorkflow",
    "SequentialOrchestrationWorkflow",
    "ParallelOrchestrationWorkflow",
    "LoopOrchestrationWorkflow",
    "ConditionalOrchestrationWorkflow",
]

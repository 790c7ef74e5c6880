"""In-process runtime of durable agents.

This package contains the synchronous side of the rendezvous:
- PendingCallTable / RunRegistry / PlannerRegistry: shared call state
- ReentrancyGuard / RoutingContext: execution-context values
- CallRouter: interception of tool and model calls
- DurableToolProxy / DurableChatModel: wrappers applying the router
- AgentRunLifecycle: starting and finishing runs
- OrchestrationPlanner / PlanningLoop: lockstep multi-agent scheduling
- DurableAgentsRuntime: the composition root owning all of the above

Nothing here imports Temporal; the engine is reached through a
WorkflowGateway.
"""

from .agents_runtime import DurableAgentsRuntime
from .context import ReentrancyGuard, RoutingContext
from .gateway import WorkflowGateway
from .lifecycle import AgentRunLifecycle
from .orchestrated import OrchestratedAgent, WorkflowAgentsBuilder
from .pending_calls import PendingCall, PendingCallTable
from .planner import (ActionKind, AgentExchange, OrchestrationPlanner,
                      PlannerAction)
from .planning_loop import PlanningLoop
from .proxies import DurableChatModel, DurableToolProxy, tool
from .registry import PlannerRegistry, RunRegistry
from .result_slot import ResultSlot
from .router import CallRouter, RoutedCall

__all__ = [
    "ActionKind",
    "AgentExchange",
    "AgentRunLifecycle",
    "CallRouter",
    "DurableAgentsRuntime",
    "DurableChatModel",
    "DurableToolProxy",
    "OrchestratedAgent",
    "OrchestrationPlanner",
    "PendingCall",
    "PendingCallTable",
    "PlannerAction",
    "PlannerRegistry",
    "PlanningLoop",
    "ReentrancyGuard",
    "ResultSlot",
    "RoutedCall",
    "RoutingContext",
    "RunRegistry",
    "WorkflowAgentsBuilder",
    "WorkflowGateway",
    "tool",
]

"""Composition root for the in-process side of durable agents.

One DurableAgentsRuntime owns the run and planner registries, the guard, the
routing context, the run lifecycle and the router, and hands them to the
wrappers, planners and (through ``durable_agents.temporal.worker``) to the
activities. Everything that must see the same pending calls has to be built
from the same runtime instance.
"""

import logging
from typing import Any, Callable, Dict, Optional

from durable_agents.contracts.orchestration_io import (UNBOUNDED_ITERATIONS,
                                                       OrchestrationTopology)
from durable_agents.core.agent_base import AgentBase
from durable_agents.core.agent_scope import AgentScope
from durable_agents.llm.base import ChatModel
from durable_agents.runtime.context import ReentrancyGuard, RoutingContext
from durable_agents.runtime.gateway import WorkflowGateway
from durable_agents.runtime.lifecycle import AgentRunLifecycle
from durable_agents.runtime.orchestrated import WorkflowAgentsBuilder
from durable_agents.runtime.planner import (Condition, ExitCondition,
                                            OrchestrationPlanner)
from durable_agents.runtime.proxies import DurableChatModel, DurableToolProxy
from durable_agents.runtime.registry import PlannerRegistry, RunRegistry
from durable_agents.runtime.router import CallRouter

logger = logging.getLogger(__name__)


class DurableAgentsRuntime:
    """Owns the shared state of the rendezvous and builds wrapped objects.

    Example:
        ```python
        runtime = DurableAgentsRuntime(gateway)
        tools = runtime.wrap_tools(ResearchTools())
        model = runtime.wrap_chat_model(OpenAIChatModel())
        with runtime.request_scope("research"):
            tools.get_capital("France")  # recorded by an agent-run workflow
        ```
    """

    def __init__(self, gateway: WorkflowGateway):
        """Initialize the runtime.

        Args:
            gateway: Engine gateway used to start workflows and raise events.
        """
        self.gateway = gateway
        self.runs = RunRegistry()
        self.planners = PlannerRegistry()
        self.guard = ReentrancyGuard()
        self.routing = RoutingContext()
        self.lifecycle = AgentRunLifecycle(gateway, self.runs, self.routing)
        self.router = CallRouter(
            gateway, self.runs, self.guard, self.routing, lifecycle=self.lifecycle
        )

    def wrap_tools(self, target: Any) -> DurableToolProxy:
        """Wrap an object whose ``@tool`` methods should be routed."""
        return DurableToolProxy(target, self.router)

    def wrap_chat_model(self, model: ChatModel) -> DurableChatModel:
        """Wrap a chat model whose ``chat`` calls should be routed."""
        return DurableChatModel(model, self.router)

    def request_scope(self, agent_name: Optional[str] = None):
        """Open a scope in which the first routed call starts a run lazily."""
        return self.lifecycle.request_scope(agent_name)

    def durable_agent(
        self,
        name: Optional[str] = None,
        user_message: Optional[str] = None,
        system_message: Optional[str] = None,
    ) -> Callable:
        """Decorator putting each call of a function under its own run."""
        return self.lifecycle.durable_agent(name, user_message, system_message)

    def run_agent(self, agent: AgentBase, scope: Optional[AgentScope] = None) -> Any:
        """Run an agent under tracking.

        Args:
            agent: The agent.
            scope: Shared state. A new empty scope if not given.

        Returns:
            The agent's result.
        """
        return self.lifecycle.run_agent(agent, scope or AgentScope())

    def create_planner(
        self,
        topology: OrchestrationTopology,
        planner_id: Optional[str] = None,
        max_iterations: int = UNBOUNDED_ITERATIONS,
        exit_condition: Optional[ExitCondition] = None,
        test_exit_at_loop_end: bool = False,
        conditions: Optional[Dict[int, Condition]] = None,
    ) -> OrchestrationPlanner:
        return OrchestrationPlanner(
            topology,
            self.gateway,
            self.planners,
            self.routing,
            planner_id=planner_id,
            max_iterations=max_iterations,
            exit_condition=exit_condition,
            test_exit_at_loop_end=test_exit_at_loop_end,
            conditions=conditions,
        )

    def agents_builder(self) -> WorkflowAgentsBuilder:
        return WorkflowAgentsBuilder(self)

"""Multi-agent composites whose pacing is driven by an orchestration workflow.

An OrchestratedAgent is itself an agent: running it creates a fresh
OrchestrationPlanner, starts the topology's orchestration workflow and runs
the sub-agents through a PlanningLoop as the workflow hands them out.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from durable_agents.config import settings
from durable_agents.contracts.orchestration_io import (UNBOUNDED_ITERATIONS,
                                                       OrchestrationTopology)
from durable_agents.core.agent_base import AgentBase, AgentConfig
from durable_agents.core.agent_scope import AgentScope
from durable_agents.runtime.planner import Condition, ExitCondition
from durable_agents.runtime.planning_loop import PlanningLoop

if TYPE_CHECKING:
    from durable_agents.runtime.agents_runtime import DurableAgentsRuntime

logger = logging.getLogger(__name__)


class OrchestratedAgent(AgentBase):
    """Composite agent running sub-agents under an orchestration workflow."""

    def __init__(
        self,
        config: AgentConfig,
        topology: OrchestrationTopology,
        sub_agents: Sequence[AgentBase],
        runtime: "DurableAgentsRuntime",
        max_iterations: int = UNBOUNDED_ITERATIONS,
        exit_condition: Optional[ExitCondition] = None,
        test_exit_at_loop_end: bool = False,
        conditions: Optional[Dict[int, Condition]] = None,
        max_workers: Optional[int] = None,
    ):
        super().__init__(config)
        self.topology = topology
        self.sub_agents = list(sub_agents)
        self.max_iterations = max_iterations
        self.exit_condition = exit_condition
        self.test_exit_at_loop_end = test_exit_at_loop_end
        self.conditions = dict(conditions or {})
        self.max_workers = max_workers
        self._runtime = runtime

    def invoke(self, scope: AgentScope) -> Any:
        """Run the sub-agents and return the output key's value (or the state)."""
        planner = self._runtime.create_planner(
            self.topology,
            max_iterations=self.max_iterations,
            exit_condition=self.exit_condition,
            test_exit_at_loop_end=self.test_exit_at_loop_end,
            conditions=self.conditions,
        )
        planner.init(self.sub_agents, scope)
        logger.info(
            f"[Planner:{planner.planner_id}] Running {self.topology.value} agent {self.name}"
        )
        PlanningLoop(planner, self._runtime.routing, self.max_workers).run(scope)
        if self.output_key:
            return scope.read_state(self.output_key)
        return scope.snapshot()


class WorkflowAgentsBuilder:
    """Factory for orchestrated composites, one method per topology."""

    def __init__(self, runtime: "DurableAgentsRuntime"):
        self._runtime = runtime

    def sequence(
        self,
        name: str,
        sub_agents: Sequence[AgentBase],
        output_key: Optional[str] = None,
        description: str = "",
    ) -> OrchestratedAgent:
        """Run sub-agents one after another."""
        return self._build(
            OrchestrationTopology.SEQUENCE, name, sub_agents, output_key, description
        )

    def parallel(
        self,
        name: str,
        sub_agents: Sequence[AgentBase],
        output_key: Optional[str] = None,
        description: str = "",
        max_workers: Optional[int] = None,
    ) -> OrchestratedAgent:
        """Run all sub-agents concurrently.

        Every sub-agent's orchestration step holds one worker activity thread
        for as long as the agent runs, and the agents' own calls need free
        threads too. A fan-out that would occupy every thread can never make
        progress, so it is rejected.

        Raises:
            ValueError: If there are at least ``worker_max_concurrent_activities``
                sub-agents.
        """
        limit = settings.worker_max_concurrent_activities
        if len(sub_agents) >= limit:
            raise ValueError(
                f"Parallel agent {name} has {len(sub_agents)} sub-agent(s); the worker "
                f"runs at most {limit} activities at once and needs a spare thread "
                f"for their calls"
            )
        return self._build(
            OrchestrationTopology.PARALLEL,
            name,
            sub_agents,
            output_key,
            description,
            max_workers=max_workers,
        )

    def loop(
        self,
        name: str,
        sub_agents: Sequence[AgentBase],
        max_iterations: int = UNBOUNDED_ITERATIONS,
        exit_condition: Optional[ExitCondition] = None,
        test_exit_at_loop_end: bool = False,
        output_key: Optional[str] = None,
        description: str = "",
    ) -> OrchestratedAgent:
        """Repeat the sub-agent sequence until the exit condition or the limit.

        Args:
            exit_condition: ``(scope, iteration) -> bool``; iterations are 1-based.
            test_exit_at_loop_end: Check the condition only after a full pass.
        """
        return self._build(
            OrchestrationTopology.LOOP,
            name,
            sub_agents,
            output_key,
            description,
            max_iterations=max_iterations,
            exit_condition=exit_condition,
            test_exit_at_loop_end=test_exit_at_loop_end,
        )

    def conditional(
        self,
        name: str,
        sub_agents: Sequence[AgentBase],
        conditions: Dict[int, Condition],
        output_key: Optional[str] = None,
        description: str = "",
    ) -> OrchestratedAgent:
        """Run, in order, the sub-agents whose condition holds.

        Args:
            conditions: ``scope -> bool`` by sub-agent index. Agents without a
                condition always run.
        """
        return self._build(
            OrchestrationTopology.CONDITIONAL,
            name,
            sub_agents,
            output_key,
            description,
            conditions=conditions,
        )

    def _build(
        self,
        topology: OrchestrationTopology,
        name: str,
        sub_agents: Sequence[AgentBase],
        output_key: Optional[str],
        description: str,
        **options: Any,
    ) -> OrchestratedAgent:
        config = AgentConfig(name=name, description=description, output_key=output_key)
        return OrchestratedAgent(config, topology, sub_agents, self._runtime, **options)

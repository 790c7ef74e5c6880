"""In-process loop that runs the agents an OrchestrationPlanner hands out."""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional

from durable_agents.core.agent_base import AgentBase
from durable_agents.core.agent_scope import AgentScope
from durable_agents.runtime.context import RoutingContext
from durable_agents.runtime.planner import (ActionKind, OrchestrationPlanner,
                                            PlannerAction)

logger = logging.getLogger(__name__)


class PlanningLoop:
    """Drives a planner until the orchestration workflow signals completion.

    A single-agent batch runs on the calling thread, where the planner has
    already bound the agent's run id. A multi-agent batch runs on a thread
    pool, each worker binding its own agent's run id, and is acknowledged with
    one ``next_action`` per agent once every agent has finished.
    """

    def __init__(
        self,
        planner: OrchestrationPlanner,
        routing: RoutingContext,
        max_workers: Optional[int] = None,
    ):
        """Initialize the loop.

        Args:
            planner: Planner to drive. Must already be initialized.
            routing: Routing context used to bind run ids in worker threads.
            max_workers: Thread limit for parallel batches. Defaults to the
                batch size.
        """
        self._planner = planner
        self._routing = routing
        self._max_workers = max_workers

    def run(self, scope: AgentScope) -> AgentScope:
        """Run agents until done.

        Args:
            scope: Shared state the agents read and write.

        Returns:
            The same scope, after every agent has run.

        Raises:
            Exception: The first exception raised by an agent. The planner is
                aborted first so the orchestration step fails too.
        """
        action = self._planner.first_action()
        steps = 0
        while not action.is_done:
            if action.kind == ActionKind.NO_OP:
                action = self._planner.next_action()
                continue
            steps += len(action.agents)
            action = self._execute(action, scope)
        logger.info(
            f"[Planner:{self._planner.planner_id}] Planning loop finished after {steps} agent step(s)"
        )
        return scope

    def _execute(self, action: PlannerAction, scope: AgentScope) -> PlannerAction:
        if len(action.agents) == 1:
            try:
                action.agents[0].run(scope)
            except Exception as e:
                self._planner.abort(e)
                raise
            return self._planner.next_action()

        workers = self._max_workers or len(action.agents)
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="durable-agent"
        ) as pool:
            futures = [
                pool.submit(self._run_bound, agent, run_id, scope)
                for agent, run_id in zip(action.agents, action.run_ids)
            ]
            wait(futures)

        for future in futures:
            error = future.exception()
            if error is not None:
                self._planner.abort(error)
                raise error

        next_action = action
        for _ in action.agents:
            next_action = self._planner.next_action()
        return next_action

    def _run_bound(self, agent: AgentBase, run_id: Optional[str], scope: AgentScope) -> None:
        with self._routing.bind(run_id):
            agent.run(scope)

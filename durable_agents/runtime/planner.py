"""Lockstep scheduler between an orchestration workflow and the planning loop.

The orchestration workflow decides *which* agent runs next (sequence,
parallel, loop, conditional) and submits each step through the
``execute_agent_step`` activity, which calls ``execute_agent`` and blocks.
The in-process PlanningLoop asks ``first_action`` / ``next_action`` what to
run and actually runs it. The planner pairs the two: a queue carries agents
from the activities to the loop, and a per-agent continuation carries
"your turn is done" back.

Exchanges that are queued together when the loop looks for work form one
batch; that is how parallel fan-out happens. Every member of a batch must be
acknowledged with one ``next_action`` call before the planner looks at the
queue again.
"""

import logging
import queue
import threading
import uuid
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

from durable_agents.contracts.names import ORCHESTRATION_WORKFLOWS
from durable_agents.contracts.orchestration_io import (UNBOUNDED_ITERATIONS,
                                                       OrchestrationInput,
                                                       OrchestrationTopology)
from durable_agents.core.agent_base import AgentBase
from durable_agents.core.agent_scope import AgentScope
from durable_agents.core.errors import PlannerStateError
from durable_agents.runtime.context import RoutingContext
from durable_agents.runtime.gateway import WorkflowGateway
from durable_agents.runtime.registry import PlannerRegistry
from durable_agents.runtime.result_slot import ResultSlot

logger = logging.getLogger(__name__)

ExitCondition = Callable[[AgentScope, int], bool]
Condition = Callable[[AgentScope], bool]


class ActionKind(str, Enum):
    CALL = "call"
    NO_OP = "no_op"
    DONE = "done"


@dataclass(frozen=True)
class PlannerAction:
    """What the planning loop should do next."""

    kind: ActionKind
    agents: Tuple[AgentBase, ...] = ()
    run_ids: Tuple[Optional[str], ...] = ()

    @property
    def is_done(self) -> bool:
        return self.kind == ActionKind.DONE

    @classmethod
    def call(
        cls, agents: Sequence[AgentBase], run_ids: Sequence[Optional[str]]
    ) -> "PlannerAction":
        return cls(ActionKind.CALL, tuple(agents), tuple(run_ids))

    @classmethod
    def no_op(cls) -> "PlannerAction":
        return cls(ActionKind.NO_OP)

    @classmethod
    def done(cls) -> "PlannerAction":
        return cls(ActionKind.DONE)


@dataclass(frozen=True)
class AgentExchange:
    """An agent submitted by the orchestration, with its continuation.

    An exchange without an agent is the sentinel that ends the orchestration.
    """

    agent: Optional[AgentBase]
    continuation: Optional[ResultSlot]
    run_id: Optional[str]


@dataclass(frozen=True)
class AgentMetadata:
    agent_name: str
    user_message: Optional[str]
    system_message: Optional[str]


class OrchestrationPlanner:
    """Planner pacing an in-process planning loop from an orchestration workflow."""

    def __init__(
        self,
        topology: OrchestrationTopology,
        gateway: WorkflowGateway,
        planners: PlannerRegistry,
        routing: RoutingContext,
        planner_id: Optional[str] = None,
        max_iterations: int = UNBOUNDED_ITERATIONS,
        exit_condition: Optional[ExitCondition] = None,
        test_exit_at_loop_end: bool = False,
        conditions: Optional[Dict[int, Condition]] = None,
    ):
        """Initialize the planner.

        Args:
            topology: Pipeline shape, selects the orchestration workflow.
            gateway: Engine gateway used to start the orchestration workflow.
            planners: Registry the planner registers itself in on ``init``.
            routing: Routing context the active run id is bound in.
            planner_id: Planner id (and workflow id). A uuid4 if not given.
            max_iterations: Loop topology iteration limit.
            exit_condition: Loop topology predicate ``(scope, iteration)``.
            test_exit_at_loop_end: Loop topology. Check the exit condition
                once per iteration instead of after every agent.
            conditions: Conditional topology predicates by agent index.
        """
        self.topology = topology
        self.planner_id = planner_id or str(uuid.uuid4())
        self.max_iterations = max_iterations
        self.exit_condition = exit_condition
        self.test_exit_at_loop_end = test_exit_at_loop_end
        self.conditions: Dict[int, Condition] = dict(conditions or {})

        self._gateway = gateway
        self._planners = planners
        self._routing = routing

        self._agents: List[AgentBase] = []
        self._scope: Optional[AgentScope] = None
        self._exchanges: "queue.Queue[AgentExchange]" = queue.Queue()
        self._pending: Deque[ResultSlot] = deque()
        self._current: Optional[ResultSlot] = None
        self._outstanding = 0
        self._lock = threading.Lock()

    @property
    def agents(self) -> List[AgentBase]:
        return list(self._agents)

    @property
    def scope(self) -> AgentScope:
        if self._scope is None:
            raise PlannerStateError(f"Planner {self.planner_id} has not been initialized")
        return self._scope

    def init(self, agents: Sequence[AgentBase], scope: AgentScope) -> None:
        """Bind the sub-agents and shared scope, and register the planner."""
        self._agents = list(agents)
        self._scope = scope
        self._planners.register(self.planner_id, self)
        logger.info(
            f"[Planner:{self.planner_id}] Initialized {self.topology.value} "
            f"orchestration with {len(self._agents)} agent(s)"
        )

    # Called by orchestration activities

    def execute_agent(self, agent: AgentBase, run_id: Optional[str]) -> ResultSlot:
        """Submit an agent and return the continuation completed after its turn."""
        continuation: ResultSlot = ResultSlot()
        self._exchanges.put(AgentExchange(agent, continuation, run_id))
        logger.debug(f"[Planner:{self.planner_id}] Queued agent {agent.name} (run {run_id})")
        return continuation

    def signal_workflow_complete(self) -> None:
        """Tell the planning loop that the orchestration has finished."""
        self._exchanges.put(AgentExchange(None, None, None))
        logger.info(f"[Planner:{self.planner_id}] Orchestration workflow completed")

    def get_agent(self, agent_index: int) -> AgentBase:
        try:
            return self._agents[agent_index]
        except IndexError:
            raise PlannerStateError(
                f"Planner {self.planner_id} has no agent at index {agent_index} "
                f"({len(self._agents)} agent(s))"
            ) from None

    def get_agent_metadata(self, agent_index: int) -> AgentMetadata:
        agent = self.get_agent(agent_index)
        return AgentMetadata(
            agent_name=agent.name,
            user_message=agent.user_message,
            system_message=agent.system_message,
        )

    def check_exit_condition(self, iteration: int) -> bool:
        """Evaluate the loop exit condition; False when none is configured."""
        if self.exit_condition is None:
            return False
        return bool(self.exit_condition(self.scope, iteration))

    def check_condition(self, agent_index: int) -> bool:
        """Evaluate an agent's condition; True when none is configured."""
        condition = self.conditions.get(agent_index)
        if condition is None:
            return True
        return bool(condition(self.scope))

    # Called by the planning loop

    def first_action(self) -> PlannerAction:
        """Start the orchestration workflow and wait for the first batch."""
        try:
            self._gateway.schedule_new_workflow(
                ORCHESTRATION_WORKFLOWS[self.topology],
                OrchestrationInput(
                    planner_id=self.planner_id,
                    topology=self.topology,
                    agent_count=len(self._agents),
                    max_iterations=self.max_iterations,
                    test_exit_at_loop_end=self.test_exit_at_loop_end,
                ),
                self.planner_id,
            )
        except Exception as e:
            logger.error(
                f"[Planner:{self.planner_id}] Failed to schedule orchestration workflow: {e}"
            )
            self._cleanup()
            raise
        logger.info(f"[Planner:{self.planner_id}] Scheduled orchestration workflow")
        return self._next_step()

    def next_action(self) -> PlannerAction:
        """Acknowledge one finished agent, then return the next step."""
        self._routing.clear()
        with self._lock:
            finished = self._current
            self._current = self._pending.popleft() if self._pending else None
        if finished is not None:
            finished.set_result(None)
        return self._next_step()

    def abort(self, error: BaseException) -> None:
        """Fail every outstanding continuation and clean up.

        Used when an agent raised: the orchestration steps waiting on the
        current batch, and those queued behind it, fail with the agent's
        exception instead of waiting forever.
        """
        with self._lock:
            slots = ([self._current] if self._current is not None else []) + list(self._pending)
            self._current = None
            self._pending.clear()
            self._outstanding = 0
        while True:
            try:
                exchange = self._exchanges.get_nowait()
            except queue.Empty:
                break
            if exchange.continuation is not None:
                slots.append(exchange.continuation)
        for slot in slots:
            slot.set_exception(error)
        logger.error(f"[Planner:{self.planner_id}] Aborted: {error}")
        self._cleanup()

    def _next_step(self) -> PlannerAction:
        with self._lock:
            self._outstanding -= 1
            if self._outstanding > 0:
                return PlannerAction.no_op()

        batch = [self._exchanges.get()]
        while True:
            try:
                batch.append(self._exchanges.get_nowait())
            except queue.Empty:
                break

        if any(exchange.agent is None for exchange in batch):
            self._cleanup()
            return PlannerAction.done()

        with self._lock:
            self._outstanding = len(batch)
            self._pending.extend(e.continuation for e in batch)  # type: ignore[misc]
            self._current = self._pending.popleft()

        if len(batch) == 1 and batch[0].run_id is not None:
            self._routing.set_run_id(batch[0].run_id)

        logger.info(
            f"[Planner:{self.planner_id}] Dispatching batch of {len(batch)}: "
            f"{[e.agent.name for e in batch]}"  # type: ignore[union-attr]
        )
        return PlannerAction.call(
            [e.agent for e in batch],  # type: ignore[misc]
            [e.run_id for e in batch],
        )

    def _cleanup(self) -> None:
        self._routing.clear()
        self._planners.unregister(self.planner_id)
        logger.info(f"[Planner:{self.planner_id}] Cleaned up")

"""Pytest configuration and fixtures.

This module configures pytest to resolve imports from the durable_agents
package and provides an in-process stand-in for the workflow engine.
"""

import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from pydantic import BaseModel
from temporalio.testing import ActivityEnvironment

# Add the project root to Python path so durable_agents imports work
project_dir = Path(__file__).parent.parent
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))

from durable_agents.contracts.call_io import CallActivityInput, CallActivityOutput  # noqa: E402
from durable_agents.contracts.events import AgentEvent  # noqa: E402
from durable_agents.contracts.names import ORCHESTRATION_WORKFLOWS  # noqa: E402
from durable_agents.contracts.orchestration_io import (  # noqa: E402
    ConditionCheckInput, ExecutionActivityInput, ExitConditionCheckInput,
    OrchestrationInput, OrchestrationTopology)
from durable_agents.runtime.agents_runtime import DurableAgentsRuntime  # noqa: E402
from durable_agents.runtime.tracing import Tracer  # noqa: E402
from durable_agents.temporal.activities.calls import CallActivities  # noqa: E402
from durable_agents.temporal.activities.orchestration import (  # noqa: E402
    OrchestrationActivities)


class InlineWorkflowEngine:
    """WorkflowGateway that executes workflows itself.

    Every tool-call or model-call event is executed by the real
    ``execute_call`` activity, under ``ActivityEnvironment``, on a thread of
    its own, the way a Temporal worker would run it while the agent thread
    stays blocked. Orchestration workflows are played on a thread as well,
    driving the real orchestration activities in the workflow's order.
    """

    def __init__(self) -> None:
        self.started: List[Tuple[str, BaseModel, str]] = []
        self.events: List[Tuple[str, AgentEvent]] = []
        self.outputs: Dict[str, List[CallActivityOutput]] = {}
        self.failures: Dict[str, List[BaseException]] = {}
        self.calls: Optional[CallActivities] = None
        self.orchestration: Optional[OrchestrationActivities] = None
        self.orchestration_failures: List[BaseException] = []
        self.fail_events = False
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def attach(self, runtime: DurableAgentsRuntime) -> None:
        self.calls = CallActivities(runtime.runs, runtime.guard, tracer=Tracer(enabled=False))
        self.orchestration = OrchestrationActivities(runtime.planners, runtime.lifecycle)

    def schedule_new_workflow(self, workflow: str, payload: BaseModel, instance_id: str) -> None:
        with self._lock:
            self.started.append((workflow, payload, instance_id))
        if workflow in ORCHESTRATION_WORKFLOWS.values():
            self._spawn(self._orchestrate, payload)

    def raise_event(self, instance_id: str, event: AgentEvent) -> None:
        if self.fail_events:
            raise ConnectionError(f"Workflow {instance_id} is unreachable")
        with self._lock:
            self.events.append((instance_id, event))
        if event.is_terminal:
            return
        self._spawn(self._execute, instance_id, event)

    def _spawn(self, target: Any, *args: Any) -> threading.Thread:
        thread = threading.Thread(target=target, args=args, daemon=True)
        with self._lock:
            self._threads.append(thread)
        thread.start()
        return thread

    def _execute(self, run_id: str, event: AgentEvent) -> None:
        call_input = CallActivityInput(
            run_id=run_id,
            call_id=event.call_id,
            operation_name=event.operation_name,
            payload=event.payload,
        )
        try:
            output = ActivityEnvironment().run(self.calls.execute_call, call_input)
        except Exception as e:
            with self._lock:
                self.failures.setdefault(run_id, []).append(e)
        else:
            with self._lock:
                self.outputs.setdefault(run_id, []).append(output)

    def _orchestrate(self, orchestration_input: OrchestrationInput) -> None:
        """Play the orchestration workflow with the real orchestration activities."""
        try:
            self._drive(orchestration_input)
        except Exception as e:
            with self._lock:
                self.orchestration_failures.append(e)
        finally:
            ActivityEnvironment().run(
                self.orchestration.complete_orchestration, orchestration_input.planner_id
            )

    def _drive(self, orchestration_input: OrchestrationInput) -> None:
        planner_id = orchestration_input.planner_id
        indexes = range(orchestration_input.agent_count)

        def step(agent_index: int, iteration: int = 0) -> Any:
            return ActivityEnvironment().run(
                self.orchestration.execute_agent_step,
                ExecutionActivityInput(
                    planner_id=planner_id, agent_index=agent_index, iteration=iteration
                ),
            )

        def should_exit(iteration: int) -> bool:
            return ActivityEnvironment().run(
                self.orchestration.check_exit_condition,
                ExitConditionCheckInput(planner_id=planner_id, iteration=iteration),
            )

        topology = orchestration_input.topology
        if topology == OrchestrationTopology.PARALLEL:
            with ThreadPoolExecutor(max_workers=max(1, len(indexes))) as pool:
                list(pool.map(step, indexes))
        elif topology == OrchestrationTopology.LOOP:
            for iteration in range(1, orchestration_input.max_iterations + 1):
                for agent_index in indexes:
                    step(agent_index, iteration)
                    if not orchestration_input.test_exit_at_loop_end and should_exit(iteration):
                        return
                if orchestration_input.test_exit_at_loop_end and should_exit(iteration):
                    return
        else:
            for agent_index in indexes:
                if topology == OrchestrationTopology.CONDITIONAL and not ActivityEnvironment().run(
                    self.orchestration.check_condition,
                    ConditionCheckInput(planner_id=planner_id, agent_index=agent_index),
                ):
                    continue
                step(agent_index)

    def events_for(self, run_id: str) -> List[AgentEvent]:
        with self._lock:
            return [event for instance_id, event in self.events if instance_id == run_id]

    def started_ids(self) -> List[str]:
        with self._lock:
            return [instance_id for _, _, instance_id in self.started]

    def join(self, timeout: float = 5.0) -> None:
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)


@pytest.fixture
def engine() -> Any:
    """In-process workflow engine."""
    inline_engine = InlineWorkflowEngine()
    yield inline_engine
    inline_engine.join()


@pytest.fixture
def runtime(engine: InlineWorkflowEngine) -> DurableAgentsRuntime:
    """Runtime wired to the in-process engine."""
    durable_runtime = DurableAgentsRuntime(engine)
    engine.attach(durable_runtime)
    return durable_runtime

"""Orchestration workflows pacing an in-process planning loop.

Each workflow drives one pipeline shape over the sub-agents of an
orchestrated agent. It never sees the agents themselves: every step is an
``execute_agent_step`` activity addressed by planner id and agent index, and
predicates are evaluated by ``check_exit_condition`` / ``check_condition``
activities against the shared scope.

Workflow responsibilities:
- Decide which agent index runs next
- Decide execution order and parallelism
- Track completed steps
- Expose the orchestration status query

Every workflow ends with ``complete_orchestration``, also on failure, so the
planning loop is released.
"""

import asyncio
from datetime import timedelta
from typing import Awaitable, Callable, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from durable_agents.contracts.names import (ACTIVITY_CHECK_CONDITION,
                                                ACTIVITY_CHECK_EXIT_CONDITION,
                                                ACTIVITY_COMPLETE_ORCHESTRATION,
                                                ACTIVITY_EXECUTE_AGENT_STEP,
                                                ORCHESTRATION_WORKFLOWS)
    from durable_agents.contracts.orchestration_io import (
        ConditionCheckInput, ExecutionActivityInput, ExecutionActivityOutput,
        ExitConditionCheckInput, OrchestrationInput, OrchestrationResult,
        OrchestrationTopology)
    from durable_agents.temporal.queries import (QUERY_ORCHESTRATION_STATUS,
                                                 OrchestrationStatusQueryResult,
                                                 WorkflowStatus)

# A step lasts as long as the agent's whole turn, tool and model calls included.
AGENT_STEP_START_TO_CLOSE_TIMEOUT = timedelta(hours=1)
CHECK_START_TO_CLOSE_TIMEOUT = timedelta(seconds=30)
COMPLETE_START_TO_CLOSE_TIMEOUT = timedelta(seconds=30)

# An agent step cannot be resubmitted once the planner has consumed it.
AGENT_STEP_RETRY_POLICY = RetryPolicy(maximum_attempts=1)
CHECK_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    maximum_interval=timedelta(seconds=10),
    maximum_attempts=3,
)


class _OrchestrationWorkflow:
    """Shared state, activity helpers and status query of orchestration workflows."""

    def __init__(self) -> None:
        self._planner_id = ""
        self._topology: Optional[OrchestrationTopology] = None
        self._status = WorkflowStatus.PENDING
        self._current_iteration = 0
        self._steps: List[ExecutionActivityOutput] = []
        self._skipped: List[int] = []
        self._error: Optional[str] = None

    async def _orchestrate(
        self,
        orchestration_input: OrchestrationInput,
        drive: Callable[[OrchestrationInput], Awaitable[None]],
    ) -> OrchestrationResult:
        """Run ``drive`` and always release the planning loop afterwards."""
        self._planner_id = orchestration_input.planner_id
        self._topology = orchestration_input.topology
        self._status = WorkflowStatus.RUNNING
        workflow.logger.info(
            f"[Planner:{self._planner_id}] {ORCHESTRATION_WORKFLOWS[self._topology]} "
            f"started with {orchestration_input.agent_count} agent(s)"
        )

        try:
            await drive(orchestration_input)
            self._status = WorkflowStatus.COMPLETED
            workflow.logger.info(
                f"[Planner:{self._planner_id}] Orchestration completed after "
                f"{len(self._steps)} step(s)"
            )
            return OrchestrationResult(
                planner_id=self._planner_id,
                topology=self._topology,
                steps=list(self._steps),
                iterations=self._current_iteration,
                skipped_agents=list(self._skipped),
            )
        except Exception as e:
            self._status = WorkflowStatus.FAILED
            self._error = str(e)
            workflow.logger.error(f"[Planner:{self._planner_id}] Orchestration failed: {e}")
            raise
        finally:
            await workflow.execute_activity(
                ACTIVITY_COMPLETE_ORCHESTRATION,
                self._planner_id,
                start_to_close_timeout=COMPLETE_START_TO_CLOSE_TIMEOUT,
                retry_policy=CHECK_RETRY_POLICY,
            )

    async def _execute_step(self, agent_index: int, iteration: int = 0) -> ExecutionActivityOutput:
        step: ExecutionActivityOutput = await workflow.execute_activity(
            ACTIVITY_EXECUTE_AGENT_STEP,
            ExecutionActivityInput(
                planner_id=self._planner_id,
                agent_index=agent_index,
                iteration=iteration,
            ),
            result_type=ExecutionActivityOutput,
            start_to_close_timeout=AGENT_STEP_START_TO_CLOSE_TIMEOUT,
            retry_policy=AGENT_STEP_RETRY_POLICY,
        )
        self._steps.append(step)
        return step

    async def _check_exit_condition(self, iteration: int) -> bool:
        return await workflow.execute_activity(
            ACTIVITY_CHECK_EXIT_CONDITION,
            ExitConditionCheckInput(planner_id=self._planner_id, iteration=iteration),
            result_type=bool,
            start_to_close_timeout=CHECK_START_TO_CLOSE_TIMEOUT,
            retry_policy=CHECK_RETRY_POLICY,
        )

    async def _check_condition(self, agent_index: int) -> bool:
        return await workflow.execute_activity(
            ACTIVITY_CHECK_CONDITION,
            ConditionCheckInput(planner_id=self._planner_id, agent_index=agent_index),
            result_type=bool,
            start_to_close_timeout=CHECK_START_TO_CLOSE_TIMEOUT,
            retry_policy=CHECK_RETRY_POLICY,
        )

    @workflow.query(name=QUERY_ORCHESTRATION_STATUS)
    def query_orchestration_status(self) -> OrchestrationStatusQueryResult:
        """Query orchestration progress.

        Returns:
            OrchestrationStatusQueryResult with completed steps so far.
        """
        return OrchestrationStatusQueryResult(
            planner_id=self._planner_id,
            topology=self._topology,
            status=self._status,
            current_iteration=self._current_iteration,
            completed_steps=list(self._steps),
            skipped_agents=list(self._skipped),
            error=self._error,
        )


@workflow.defn(name=ORCHESTRATION_WORKFLOWS[OrchestrationTopology.SEQUENCE])
class SequentialOrchestrationWorkflow(_OrchestrationWorkflow):
    """Runs every agent once, in index order."""

    @workflow.run
    async def run(self, orchestration_input: OrchestrationInput) -> OrchestrationResult:
        return await self._orchestrate(orchestration_input, self._drive)

    async def _drive(self, orchestration_input: OrchestrationInput) -> None:
        for agent_index in range(orchestration_input.agent_count):
            await self._execute_step(agent_index)


@workflow.defn(name=ORCHESTRATION_WORKFLOWS[OrchestrationTopology.PARALLEL])
class ParallelOrchestrationWorkflow(_OrchestrationWorkflow):
    """Submits every agent at once and waits for all of them.

    The planner drains the agents that arrived together into one batch.
    """

    @workflow.run
    async def run(self, orchestration_input: OrchestrationInput) -> OrchestrationResult:
        return await self._orchestrate(orchestration_input, self._drive)

    async def _drive(self, orchestration_input: OrchestrationInput) -> None:
        await asyncio.gather(
            *(
                self._execute_step(agent_index)
                for agent_index in range(orchestration_input.agent_count)
            )
        )


@workflow.defn(name=ORCHESTRATION_WORKFLOWS[OrchestrationTopology.LOOP])
class LoopOrchestrationWorkflow(_OrchestrationWorkflow):
    """Repeats the agent sequence until the exit condition holds.

    Iterations are 1-based. The exit condition is checked after every agent,
    or only at the end of each iteration when ``test_exit_at_loop_end`` is set.
    The loop also stops after ``max_iterations``.
    """

    @workflow.run
    async def run(self, orchestration_input: OrchestrationInput) -> OrchestrationResult:
        return await self._orchestrate(orchestration_input, self._drive)

    async def _drive(self, orchestration_input: OrchestrationInput) -> None:
        iteration = 0
        while iteration < orchestration_input.max_iterations:
            iteration += 1
            self._current_iteration = iteration

            for agent_index in range(orchestration_input.agent_count):
                await self._execute_step(agent_index, iteration)
                if not orchestration_input.test_exit_at_loop_end:
                    if await self._check_exit_condition(iteration):
                        workflow.logger.info(
                            f"[Planner:{self._planner_id}] Exit condition met at "
                            f"iteration {iteration}, agent {agent_index}"
                        )
                        return

            if orchestration_input.test_exit_at_loop_end:
                if await self._check_exit_condition(iteration):
                    workflow.logger.info(
                        f"[Planner:{self._planner_id}] Exit condition met at end of "
                        f"iteration {iteration}"
                    )
                    return

        workflow.logger.info(
            f"[Planner:{self._planner_id}] Reached max iterations ({iteration})"
        )


@workflow.defn(name=ORCHESTRATION_WORKFLOWS[OrchestrationTopology.CONDITIONAL])
class ConditionalOrchestrationWorkflow(_OrchestrationWorkflow):
    """Runs, in index order, only the agents whose condition holds."""

    @workflow.run
    async def run(self, orchestration_input: OrchestrationInput) -> OrchestrationResult:
        return await self._orchestrate(orchestration_input, self._drive)

    async def _drive(self, orchestration_input: OrchestrationInput) -> None:
        for agent_index in range(orchestration_input.agent_count):
            if await self._check_condition(agent_index):
                await self._execute_step(agent_index)
            else:
                self._skipped.append(agent_index)
                workflow.logger.info(
                    f"[Planner:{self._planner_id}] Skipping agent {agent_index}"
                )

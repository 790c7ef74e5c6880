"""Temporal activities bridging orchestration workflows to in-process planners.

Orchestration workflows never see agents. They address a planner by id and
an agent by index, and these activities look both up in the runtime's
planner registry:

- ``execute_agent_step``: runs one agent step and blocks until the planning
  loop has finished that agent's turn
- ``check_exit_condition`` / ``check_condition``: evaluate loop and
  conditional predicates against the shared scope
- ``complete_orchestration``: tells the planning loop the workflow is done
"""

from temporalio import activity

from durable_agents.contracts.names import (ACTIVITY_CHECK_CONDITION,
                                            ACTIVITY_CHECK_EXIT_CONDITION,
                                            ACTIVITY_COMPLETE_ORCHESTRATION,
                                            ACTIVITY_EXECUTE_AGENT_STEP)
from durable_agents.contracts.orchestration_io import (ConditionCheckInput,
                                                       ExecutionActivityInput,
                                                       ExecutionActivityOutput,
                                                       ExitConditionCheckInput)
from durable_agents.core.errors import PlannerStateError
from durable_agents.runtime.lifecycle import AgentRunLifecycle
from durable_agents.runtime.planner import OrchestrationPlanner
from durable_agents.runtime.registry import PlannerRegistry
from durable_agents.temporal.activities.calls import bridge_state_error


def agent_step_run_id(planner_id: str, agent_index: int, iteration: int = 0) -> str:
    """Run id of an orchestrated agent step.

    Derived from the planner id and agent index so that the nested run's
    workflow id is predictable. Loop passes add the iteration, since a
    workflow id cannot be reused for a second pass while the first exists.
    """
    if iteration > 0:
        return f"{planner_id}:{agent_index}:{iteration}"
    return f"{planner_id}:{agent_index}"


class OrchestrationActivities:
    """Activities bound to one runtime's planner registry and run lifecycle."""

    def __init__(self, planners: PlannerRegistry, lifecycle: AgentRunLifecycle):
        self._planners = planners
        self._lifecycle = lifecycle

    def _planner(self, planner_id: str) -> OrchestrationPlanner:
        planner = self._planners.get(planner_id)
        if planner is None:
            message = (
                f"No planner found for ID: {planner_id}. "
                f"Registered IDs: {self._planners.registered_ids()}"
            )
            activity.logger.error(message)
            raise bridge_state_error(message)
        return planner

    @activity.defn(name=ACTIVITY_EXECUTE_AGENT_STEP)
    def execute_agent_step(
        self, step_input: ExecutionActivityInput
    ) -> ExecutionActivityOutput:
        """Run one orchestrated agent step.

        Starts a nested agent-run workflow for the step, submits the agent to
        the planner and blocks until the planning loop acknowledges it. The
        nested run is always finished, whether the agent succeeded or not.

        Args:
            step_input: Planner id, agent index and loop iteration.

        Returns:
            The agent's name and the nested run id.

        Raises:
            ApplicationError: Non-retryable, if the planner is not registered.
            Exception: Whatever the agent raised, if the planner was aborted.
        """
        planner = self._planner(step_input.planner_id)
        try:
            agent = planner.get_agent(step_input.agent_index)
        except PlannerStateError as e:
            activity.logger.error(str(e))
            raise bridge_state_error(str(e)) from e
        metadata = planner.get_agent_metadata(step_input.agent_index)
        run_id = agent_step_run_id(
            step_input.planner_id, step_input.agent_index, step_input.iteration
        )

        activity.logger.info(
            f"[Planner:{step_input.planner_id}] Executing agent {agent.name} "
            f"(index {step_input.agent_index}, run {run_id})"
        )
        self._lifecycle.start_run(
            metadata.agent_name,
            user_message=metadata.user_message,
            system_message=metadata.system_message,
            run_id=run_id,
        )
        try:
            planner.execute_agent(agent, run_id).result()
        finally:
            self._lifecycle.finish_run(run_id)

        activity.logger.info(f"[Planner:{step_input.planner_id}] Agent {agent.name} finished")
        return ExecutionActivityOutput(
            agent_index=step_input.agent_index,
            agent_name=agent.name,
            run_id=run_id,
        )

    @activity.defn(name=ACTIVITY_CHECK_EXIT_CONDITION)
    def check_exit_condition(self, check_input: ExitConditionCheckInput) -> bool:
        """Evaluate the loop exit condition after an agent or an iteration."""
        planner = self._planner(check_input.planner_id)
        should_exit = planner.check_exit_condition(check_input.iteration)
        activity.logger.info(
            f"[Planner:{check_input.planner_id}] Exit condition at iteration "
            f"{check_input.iteration}: {should_exit}"
        )
        return should_exit

    @activity.defn(name=ACTIVITY_CHECK_CONDITION)
    def check_condition(self, check_input: ConditionCheckInput) -> bool:
        """Evaluate whether a conditional agent should run."""
        planner = self._planner(check_input.planner_id)
        should_run = planner.check_condition(check_input.agent_index)
        activity.logger.info(
            f"[Planner:{check_input.planner_id}] Condition for agent "
            f"{check_input.agent_index}: {should_run}"
        )
        return should_run

    @activity.defn(name=ACTIVITY_COMPLETE_ORCHESTRATION)
    def complete_orchestration(self, planner_id: str) -> None:
        """Signal the planning loop that the orchestration workflow finished.

        A planner that is already gone was aborted by a failing agent and has
        nothing left to wake up.
        """
        planner = self._planners.get(planner_id)
        if planner is None:
            activity.logger.warning(
                f"[Planner:{planner_id}] Planner already unregistered, nothing to complete"
            )
            return
        planner.signal_workflow_complete()

"""Agent-run workflow: the durable record of one agent's calls.

The workflow owns one run. Agent threads raise ``agent-event`` signals; the
workflow consumes them one at a time, in arrival order, executing each
tool-call or model-call as an ``execute_call`` activity and appending the
result to the run transcript. The ``done`` event ends the run.

Workflow responsibilities:
- Consume events in order
- Schedule call activities
- Publish the transcript through queries

Activity failures are not caught here: a failing call fails the run, and
Temporal's failure policy decides what happens next.
"""

from collections import deque
from datetime import timedelta
from typing import Deque, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from durable_agents.contracts.call_io import (CallActivityInput,
                                                  CallActivityOutput, CallRecord,
                                                  RunOutput)
    from durable_agents.contracts.events import AgentEvent, AgentRunInput
    from durable_agents.contracts.names import (ACTIVITY_EXECUTE_CALL,
                                                WORKFLOW_AGENT_RUN)
    from durable_agents.temporal.queries import (QUERY_RUN_OUTPUT,
                                                 QUERY_RUN_STATUS,
                                                 RunStatusQueryResult,
                                                 WorkflowStatus)
    from durable_agents.temporal.signals import SIGNAL_AGENT_EVENT

# Calls block a live agent thread, so a generous timeout and no retries:
# a retried call would find its pending entry already failed and removed.
CALL_START_TO_CLOSE_TIMEOUT = timedelta(minutes=10)
CALL_RETRY_POLICY = RetryPolicy(maximum_attempts=1)


@workflow.defn(name=WORKFLOW_AGENT_RUN)
class AgentRunWorkflow:
    """Durable state machine recording one agent run.

    States: RUNNING until the ``done`` event arrives, then COMPLETED.
    """

    def __init__(self) -> None:
        """Initialize the workflow."""
        self._events: Deque[AgentEvent] = deque()
        self._output = RunOutput()
        self._status = WorkflowStatus.PENDING
        self._current_call_id: Optional[str] = None

    @workflow.run
    async def run(self, run_input: AgentRunInput) -> RunOutput:
        """Run until the ``done`` event.

        Args:
            run_input: Run id, agent name and optional prompts.

        Returns:
            The final RunOutput transcript.
        """
        self._output = RunOutput(run_id=run_input.run_id, agent_name=run_input.agent_name)
        self._status = WorkflowStatus.RUNNING
        workflow.logger.info(
            f"[AgentRun:{run_input.run_id}] Started for agent {run_input.agent_name}"
        )

        while True:
            await workflow.wait_condition(lambda: len(self._events) > 0)
            event = self._events.popleft()

            if event.is_terminal:
                break

            self._current_call_id = event.call_id
            result: CallActivityOutput = await workflow.execute_activity(
                ACTIVITY_EXECUTE_CALL,
                CallActivityInput(
                    run_id=run_input.run_id,
                    call_id=event.call_id,
                    operation_name=event.operation_name,
                    payload=event.payload,
                ),
                result_type=CallActivityOutput,
                start_to_close_timeout=CALL_START_TO_CLOSE_TIMEOUT,
                retry_policy=CALL_RETRY_POLICY,
            )
            self._current_call_id = None
            self._output.calls.append(CallRecord.from_activity_output(event.type, result))
            workflow.logger.info(
                f"[AgentRun:{run_input.run_id}] Recorded {event.type.value} "
                f"{event.operation_name} ({len(self._output.calls)} call(s))"
            )

        self._status = WorkflowStatus.COMPLETED
        workflow.logger.info(
            f"[AgentRun:{run_input.run_id}] Completed with {len(self._output.calls)} call(s)"
        )
        return self._output

    @workflow.signal(name=SIGNAL_AGENT_EVENT)
    def handle_agent_event(self, event: AgentEvent) -> None:
        """Queue an event for the run loop.

        Args:
            event: Tool-call, model-call or done event.
        """
        self._events.append(event)

    @workflow.query(name=QUERY_RUN_OUTPUT)
    def query_run_output(self) -> RunOutput:
        """Query the transcript so far.

        Returns:
            RunOutput with every call completed so far, in order.
        """
        return self._output

    @workflow.query(name=QUERY_RUN_STATUS)
    def query_run_status(self) -> RunStatusQueryResult:
        """Query run status.

        Returns:
            RunStatusQueryResult with current status.
        """
        return RunStatusQueryResult(
            run_id=self._output.run_id,
            agent_name=self._output.agent_name,
            status=self._status,
            completed_calls=len(self._output.calls),
            queued_events=len(self._events),
            current_call_id=self._current_call_id,
        )

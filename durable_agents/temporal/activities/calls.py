"""Temporal activity executing routed tool and model calls.

The agent-run workflow schedules ``execute_call`` for every tool-call or
model-call event. The activity finds the pending call the agent thread
registered, performs the real operation with the reentrancy guard set (so
the wrapped object's own router lets it through), and completes the pending
call, which unblocks the agent thread.

This is an execution adapter layer - it does not contain domain logic.
"""

from typing import Any, Optional

from temporalio import activity
from temporalio.exceptions import ApplicationError

from durable_agents.contracts.call_io import CallActivityInput, CallActivityOutput
from durable_agents.contracts.chat import ChatResponse
from durable_agents.contracts.names import ACTIVITY_EXECUTE_CALL
from durable_agents.core.errors import CallExecutionError
from durable_agents.runtime.context import ReentrancyGuard
from durable_agents.runtime.registry import RunRegistry
from durable_agents.runtime.tracing import Tracer, get_tracer

BRIDGE_STATE_ERROR = "BridgeStateError"


def bridge_state_error(message: str) -> ApplicationError:
    """Non-retryable failure for registry inconsistencies.

    A missing run, pending call or planner means the in-process state was torn
    down while the workflow still referenced it. Retrying cannot fix that.
    """
    return ApplicationError(message, type=BRIDGE_STATE_ERROR, non_retryable=True)


def original_cause(error: BaseException) -> BaseException:
    """Unwrap nested call-execution wrappers down to the operation's own error."""
    while isinstance(error, CallExecutionError) and error.__cause__ is not None:
        error = error.__cause__
    return error


def result_text(result: Any) -> Optional[str]:
    """Render a call result as text for workflow history."""
    if result is None:
        return None
    if isinstance(result, ChatResponse):
        return result.text
    return str(result)


class CallActivities:
    """Activities bound to one runtime's run registry and guard."""

    def __init__(
        self,
        runs: RunRegistry,
        guard: ReentrancyGuard,
        tracer: Optional[Tracer] = None,
    ):
        """Initialize the activities.

        Args:
            runs: Registry shared with the runtime's router.
            guard: Guard shared with the runtime's router.
            tracer: Tracer for call spans. Defaults to the default tracer.
        """
        self._runs = runs
        self._guard = guard
        self._tracer = tracer

    @property
    def tracer(self) -> Tracer:
        if self._tracer is None:
            self._tracer = get_tracer()
        return self._tracer

    @activity.defn(name=ACTIVITY_EXECUTE_CALL)
    def execute_call(self, call_input: CallActivityInput) -> CallActivityOutput:
        """Execute a pending call as a Temporal activity.

        Args:
            call_input: Run id, call id, operation name and payload.

        Returns:
            Durable history record of the call.

        Raises:
            ApplicationError: Non-retryable, if the run or the pending call
                is not registered.
            CallExecutionError: If the operation raised. The original
                exception is chained and was delivered to the caller.
        """
        run_id = call_input.run_id
        call_id = call_input.call_id

        table = self._runs.get(run_id)
        if table is None:
            message = (
                f"No pending-call table found for run: {run_id}. "
                f"Registered runs: {self._runs.registered_ids()}"
            )
            activity.logger.error(message)
            raise bridge_state_error(message)

        pending = table.get(call_id)
        if pending is None:
            message = f"No pending call found for call id: {call_id} in run: {run_id}"
            activity.logger.error(message)
            raise bridge_state_error(message)

        activity.logger.info(
            f"[AgentRun:{run_id}][Call:{call_id}] Executing {call_input.operation_name}"
        )
        with self.tracer.span(
            name=call_input.operation_name,
            run_id=run_id,
            metadata={"call_id": call_id, "payload": call_input.payload},
        ) as observation:
            with self._guard.activate():
                try:
                    result = pending.invoke()
                except Exception as e:
                    cause = original_cause(e)
                    activity.logger.error(
                        f"[AgentRun:{run_id}][Call:{call_id}] "
                        f"{call_input.operation_name} failed: {cause!r}"
                    )
                    table.fail(call_id, cause)
                    raise CallExecutionError(
                        call_input.operation_name, run_id, call_id
                    ) from cause
            # Release the caller before the result is rendered.
            table.complete(call_id, result)
            text = result_text(result)
            self.tracer.record_output(observation, text)

        activity.logger.info(
            f"[AgentRun:{run_id}][Call:{call_id}] {call_input.operation_name} completed"
        )
        return CallActivityOutput(
            operation_name=call_input.operation_name,
            payload=call_input.payload,
            result_text=text,
        )

"""Routing of intercepted tool and model calls through the run workflow.

The CallRouter is the interception logic every wrapped tool method and every
wrapped chat model goes through. It either performs the call directly or
turns it into a pending call that the run workflow executes as an activity,
blocking the caller until the activity completes it.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple, TypeVar

from durable_agents.contracts.events import AgentEvent, AgentEventType
from durable_agents.runtime.context import ReentrancyGuard, RoutingContext
from durable_agents.runtime.gateway import WorkflowGateway
from durable_agents.runtime.registry import RunRegistry

if TYPE_CHECKING:
    from durable_agents.runtime.lifecycle import AgentRunLifecycle

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RoutedCall:
    """Everything needed to route one call and to replay it later.

    Attributes:
        event_type: tool-call or model-call.
        target: Object the activity will invoke ``operation`` on.
        operation: Method name on ``target``.
        args: Positional arguments.
        kwargs: Keyword arguments.
        payload: Text rendering of the input recorded in workflow history.
        user_message: Prompt used if this call has to start a run lazily.
        system_message: System prompt used if this call has to start a run lazily.
    """

    event_type: AgentEventType
    target: Any
    operation: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    payload: Optional[str] = None
    user_message: Optional[str] = None
    system_message: Optional[str] = None


class CallRouter:
    """Decides whether a call runs directly or through the run workflow."""

    def __init__(
        self,
        gateway: WorkflowGateway,
        runs: RunRegistry,
        guard: ReentrancyGuard,
        routing: RoutingContext,
        lifecycle: Optional["AgentRunLifecycle"] = None,
    ):
        """Initialize the router.

        Args:
            gateway: Engine gateway used to raise events.
            runs: Registry of live runs.
            guard: Guard set by the call activity during real execution.
            routing: Context holding the active run id.
            lifecycle: Optional hook that starts a run lazily on the first
                call made inside a request scope.
        """
        self._gateway = gateway
        self._runs = runs
        self._guard = guard
        self._routing = routing
        self._lifecycle = lifecycle

    def route(self, call: RoutedCall, direct: Callable[[], T]) -> T:
        """Route a call.

        Args:
            call: Description of the call.
            direct: Zero-argument callable performing the real call.

        Returns:
            The call's result, whether executed directly or by the activity.

        Raises:
            Exception: Whatever the real call raised, unchanged.
        """
        if self._guard.is_active():
            return direct()

        run_id = self._active_run_id(call)
        if run_id is None:
            return direct()

        table = self._runs.get(run_id)
        if table is None:
            logger.debug(
                f"[AgentRun:{run_id}] No pending-call table registered, "
                f"executing {call.operation} directly"
            )
            return direct()

        call_id = str(uuid.uuid4())
        slot = table.register(call_id, call.target, call.operation, call.args, call.kwargs)
        if call.event_type == AgentEventType.MODEL_CALL:
            event = AgentEvent.model_call(call_id, call.operation, call.payload)
        else:
            event = AgentEvent.tool_call(call_id, call.operation, call.payload)

        logger.info(
            f"[AgentRun:{run_id}][Call:{call_id}] Routing {event.type.value} "
            f"{call.operation} through the run workflow"
        )
        try:
            self._gateway.raise_event(run_id, event)
        except Exception as e:
            logger.error(
                f"[AgentRun:{run_id}][Call:{call_id}] Failed to raise event: {e}"
            )
            table.fail(call_id, e)
            raise

        result = slot.result()
        logger.debug(f"[AgentRun:{run_id}][Call:{call_id}] Completed {call.operation}")
        return result

    def _active_run_id(self, call: RoutedCall) -> Optional[str]:
        run_id = self._routing.get_run_id()
        if run_id is None and self._lifecycle is not None:
            run_id = self._lifecycle.get_or_activate(
                user_message=call.user_message, system_message=call.system_message
            )
        return run_id

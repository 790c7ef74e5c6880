"""Exception types raised by the durable agents runtime."""


class DurableAgentsError(Exception):
    """Base class for errors raised by the runtime itself."""


class CallExecutionError(DurableAgentsError):
    """A routed operation failed while executing inside the call activity.

    Raised to Temporal so that the activity is recorded as failed. The
    original exception is chained as ``__cause__`` and is what the blocked
    caller receives.
    """

    def __init__(self, operation_name: str, run_id: str, call_id: str):
        super().__init__(f"Call execution failed: {operation_name}")
        self.operation_name = operation_name
        self.run_id = run_id
        self.call_id = call_id


class PlannerStateError(DurableAgentsError):
    """The orchestration planner was used outside its lifecycle."""

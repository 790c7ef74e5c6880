"""Tracing of durable call execution using Langfuse.

Every call the run workflow executes is wrapped in a span. All spans of one
run share a Langfuse trace whose id is derived from the run id, so a run's
trace shows its tool and model calls in execution order.

The current span is also published in a context variable, so code running
inside a call (a model client, for instance) can attach to the same trace.
"""

import contextvars
import logging
import uuid
from contextlib import ExitStack, contextmanager
from typing import Any, Dict, Iterator, Optional

from langfuse import Langfuse
from langfuse.types import TraceContext

from durable_agents.config import settings

logger = logging.getLogger(__name__)

# Context variable for trace context propagation
_trace_context: contextvars.ContextVar[Optional[Dict[str, Any]]] = (
    contextvars.ContextVar("trace_context", default=None)
)


def trace_id_for_run(run_id: str) -> str:
    """Derive a Langfuse trace id (32 lowercase hex chars) from a run id.

    Run ids are not necessarily uuids (orchestrated runs are
    ``<planner_id>:<index>``), so the id is hashed into a uuid5.
    """
    return uuid.uuid5(uuid.NAMESPACE_URL, f"durable-agents:{run_id}").hex


class Tracer:
    """Tracer for durable call execution using Langfuse."""

    def __init__(
        self,
        public_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        enabled: bool = True,
    ):
        """Initialize the tracer.

        Spans are only sent when both Langfuse keys are known. Arguments
        override the matching ``langfuse_*`` settings.

        Args:
            public_key: Langfuse public key.
            secret_key: Langfuse secret key.
            base_url: Langfuse base URL.
            enabled: False forces a no-op tracer regardless of keys.
        """
        public_key = public_key or settings.langfuse_public_key
        secret_key = secret_key or settings.langfuse_secret_key
        self.enabled = enabled and bool(public_key and secret_key)
        self.client: Optional[Langfuse] = None

        if self.enabled:
            self.client = Langfuse(
                public_key=public_key,
                secret_key=secret_key,
                base_url=base_url or settings.langfuse_base_url,
            )
        else:
            logger.info("Call tracing disabled: Langfuse keys are not configured")

    def get_trace_context(self) -> Optional[Dict[str, Any]]:
        """Get the current trace context.

        Returns:
            Current trace context dictionary or None.
        """
        return _trace_context.get()

    @contextmanager
    def span(
        self,
        name: str,
        run_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Iterator[Any]:
        """Create a tracing span context manager.

        Exceptions raised inside the block are recorded on the span by
        Langfuse and propagate unchanged. Failing to start the span only
        logs a warning.

        Args:
            name: Name of the span.
            run_id: Run the span belongs to; selects the trace.
            metadata: Optional metadata to attach to the span.

        Yields:
            The observation object, or None when tracing is disabled.
        """
        if not self.enabled or self.client is None:
            yield None
            return

        trace_id = trace_id_for_run(run_id) if run_id else uuid.uuid4().hex
        with ExitStack() as stack:
            observation = None
            try:
                observation = stack.enter_context(
                    self.client.start_as_current_observation(
                        name=name,
                        as_type="span",
                        metadata=metadata or {},
                        trace_context=TraceContext(trace_id=trace_id),
                    )
                )
            except Exception as e:
                logger.warning(f"Could not start span {name}: {e}")

            token = _trace_context.set(
                {
                    "trace_id": trace_id,
                    "run_id": run_id,
                    "span_name": name,
                    "observation_id": getattr(observation, "id", None),
                }
            )
            try:
                yield observation
            finally:
                _trace_context.reset(token)

    def record_output(self, observation: Any, output: Any) -> None:
        """Attach an output to a span's observation, if there is one."""
        if observation is None:
            return
        try:
            observation.update(output=output)
        except Exception as e:
            logger.warning(f"Error recording span output: {e}")

    def flush(self) -> None:
        """Flush pending traces to Langfuse."""
        if not self.enabled or self.client is None:
            return

        try:
            self.client.flush()
        except Exception as e:
            logger.warning(f"Error flushing traces: {e}")


# Default tracer instance
_default_tracer: Optional[Tracer] = None


def get_tracer() -> Tracer:
    """Get the default tracer instance.

    Returns:
        The default Tracer instance.
    """
    global _default_tracer
    if _default_tracer is None:
        _default_tracer = Tracer()
    return _default_tracer


def set_tracer(tracer: Tracer) -> None:
    """Set the default tracer instance.

    Args:
        tracer: The Tracer instance to use as default.
    """
    global _default_tracer
    _default_tracer = tracer

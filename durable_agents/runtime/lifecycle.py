"""Lifecycle of agent runs.

A run is one tracked execution of an agent, backed by one agent-run workflow
instance. This module starts runs (registry entry first, then the workflow),
finishes them (``done`` event, then unregister), and offers the two ways of
putting code under tracking:

- ``request_scope()``: the first routed call inside the scope starts a run
  lazily, and the run is finished when the scope exits.
- ``durable_agent(...)`` / ``run_agent(...)``: a run wraps one agent call,
  unless a run is already bound to the current context.
"""

import functools
import logging
import threading
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, TypeVar

from durable_agents.contracts.events import AgentEvent, AgentRunInput
from durable_agents.contracts.names import WORKFLOW_AGENT_RUN
from durable_agents.core.agent_base import AgentBase
from durable_agents.core.agent_scope import AgentScope
from durable_agents.runtime.context import RoutingContext
from durable_agents.runtime.gateway import WorkflowGateway
from durable_agents.runtime.registry import RunRegistry

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_AGENT_NAME = "standalone"


class RequestScope:
    """State of one request scope: at most one lazily started run."""

    def __init__(self, agent_name: Optional[str] = None):
        self.agent_name = agent_name
        self.run_id: Optional[str] = None
        self.lock = threading.Lock()


class AgentRunLifecycle:
    """Starts and finishes agent runs."""

    def __init__(
        self,
        gateway: WorkflowGateway,
        runs: RunRegistry,
        routing: RoutingContext,
    ):
        self._gateway = gateway
        self._runs = runs
        self._routing = routing
        self._scope: ContextVar[Optional[RequestScope]] = ContextVar(
            f"durable_request_scope_{id(self)}", default=None
        )

    def start_run(
        self,
        agent_name: str,
        user_message: Optional[str] = None,
        system_message: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> str:
        """Register a run and schedule its agent-run workflow.

        The registry entry is created before the workflow is scheduled so that
        the first event can never reach a run the process does not know.

        Args:
            agent_name: Name of the agent being tracked.
            user_message: Optional user prompt recorded on the workflow input.
            system_message: Optional system prompt recorded on the workflow input.
            run_id: Run id to use. A uuid4 is generated if not given.

        Returns:
            The run id.
        """
        run_id = run_id or str(uuid.uuid4())
        self._runs.create(run_id)
        try:
            self._gateway.schedule_new_workflow(
                WORKFLOW_AGENT_RUN,
                AgentRunInput(
                    run_id=run_id,
                    agent_name=agent_name,
                    user_message=user_message,
                    system_message=system_message,
                ),
                run_id,
            )
        except Exception:
            self._runs.unregister(run_id)
            raise
        logger.info(f"[AgentRun:{run_id}] Started run for agent {agent_name}")
        return run_id

    def finish_run(self, run_id: str) -> None:
        """Send the terminal ``done`` event and unregister the run."""
        try:
            self._gateway.raise_event(run_id, AgentEvent.done())
            logger.info(f"[AgentRun:{run_id}] Sent done event")
        finally:
            table = self._runs.unregister(run_id)
            if table is not None and len(table):
                logger.warning(
                    f"[AgentRun:{run_id}] Finished with {len(table)} call(s) still pending"
                )

    @contextmanager
    def request_scope(self, agent_name: Optional[str] = None) -> Iterator[RequestScope]:
        """Open a scope in which the first routed call starts a run.

        Args:
            agent_name: Name recorded for a lazily started run. Defaults to
                ``standalone``.
        """
        scope = RequestScope(agent_name)
        token = self._scope.set(scope)
        try:
            yield scope
        finally:
            self._scope.reset(token)
            if scope.run_id is not None:
                try:
                    self.finish_run(scope.run_id)
                finally:
                    self._routing.clear()

    def get_or_activate(
        self,
        agent_name: Optional[str] = None,
        user_message: Optional[str] = None,
        system_message: Optional[str] = None,
    ) -> Optional[str]:
        """Return the current request's run id, starting the run if needed.

        Returns:
            The run id, or None when there is no enclosing request scope.
        """
        scope = self._scope.get()
        if scope is None:
            return None
        with scope.lock:
            if scope.run_id is None:
                name = agent_name or scope.agent_name or DEFAULT_AGENT_NAME
                scope.run_id = self.start_run(name, user_message, system_message)
                logger.info(f"[AgentRun:{scope.run_id}] Lazily activated run for {name}")
        self._routing.set_run_id(scope.run_id)
        return scope.run_id

    def run_tracked(
        self,
        agent_name: str,
        func: Callable[[], Any],
        user_message: Optional[str] = None,
        system_message: Optional[str] = None,
    ) -> Any:
        """Call ``func`` inside a run.

        If a run is already bound to the current context (an orchestrated
        step, or an outer tracked call), ``func`` joins it. Otherwise a new run
        is started for the call and finished afterwards, even on failure.
        """
        if self._routing.get_run_id() is not None:
            return func()

        run_id = self.start_run(agent_name, user_message, system_message)
        try:
            with self._routing.bind(run_id):
                return func()
        finally:
            self.finish_run(run_id)

    def run_agent(self, agent: AgentBase, scope: AgentScope) -> Any:
        """Run an agent under tracking."""
        return self.run_tracked(
            agent.name,
            lambda: agent.run(scope),
            user_message=agent.user_message,
            system_message=agent.system_message,
        )

    def durable_agent(
        self,
        name: Optional[str] = None,
        user_message: Optional[str] = None,
        system_message: Optional[str] = None,
    ) -> Callable[[F], F]:
        """Decorator putting every call of a function under tracking.

        Args:
            name: Agent name. Defaults to the function's qualified name.
            user_message: Optional user prompt recorded on the run.
            system_message: Optional system prompt recorded on the run.
        """

        def decorator(func: F) -> F:
            agent_name = name or func.__qualname__

            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                return self.run_tracked(
                    agent_name,
                    lambda: func(*args, **kwargs),
                    user_message=user_message,
                    system_message=system_message,
                )

            return wrapper  # type: ignore[return-value]

        return decorator

"""Temporal client wrapper used by the in-process runtime.

Agent threads are ordinary blocking threads, while the Temporal client is
asyncio-based and bound to the worker's event loop. TemporalWorkflowGateway
bridges the two: its synchronous methods submit the client coroutine to the
loop with ``asyncio.run_coroutine_threadsafe`` and wait for the result.

The gateway provides:
- Workflow scheduling (agent-run and orchestration workflows)
- Event raising (the ``agent-event`` signal)
- Query execution (run output, run status, orchestration status)
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, TypeVar

from pydantic import BaseModel
from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter

from durable_agents.contracts.call_io import RunOutput
from durable_agents.contracts.events import AgentEvent
from durable_agents.temporal.queries import (QUERY_ORCHESTRATION_STATUS,
                                             QUERY_RUN_OUTPUT, QUERY_RUN_STATUS,
                                             OrchestrationStatusQueryResult,
                                             RunStatusQueryResult)
from durable_agents.temporal.signals import SIGNAL_AGENT_EVENT

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def connect_client(
    temporal_address: str,
    temporal_namespace: str,
) -> Client:
    """Connect to Temporal with the pydantic data converter.

    Raises:
        RuntimeError: If connection fails.
    """
    try:
        client = await Client.connect(
            temporal_address,
            namespace=temporal_namespace,
            data_converter=pydantic_data_converter,
        )
    except Exception as e:
        error_msg = (
            f"Failed to connect to Temporal at {temporal_address}: {e}. "
            "Make sure Temporal server is running. "
            "For local development, run: temporal server start-dev"
        )
        logger.error(error_msg)
        raise RuntimeError(error_msg) from e
    logger.info(f"Connected to Temporal at {temporal_address} (namespace: {temporal_namespace})")
    return client


class TemporalWorkflowGateway:
    """Synchronous gateway to Temporal for agent threads.

    The synchronous methods must not be called from the event loop thread the
    gateway is bound to: they block until the loop has run the coroutine,
    which would deadlock.
    """

    def __init__(
        self,
        client: Client,
        loop: asyncio.AbstractEventLoop,
        task_queue: str,
    ):
        """Initialize the gateway.

        Args:
            client: Connected Temporal client.
            loop: Event loop the client is used on.
            task_queue: Task queue every workflow is started on.
        """
        self._client = client
        self._loop = loop
        self._task_queue = task_queue

    @property
    def client(self) -> Client:
        return self._client

    @property
    def task_queue(self) -> str:
        return self._task_queue

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            coro.close()
            raise RuntimeError(
                "TemporalWorkflowGateway called from its own event loop thread. "
                "Run agents in a worker thread, e.g. with asyncio.to_thread()."
            )
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def schedule_new_workflow(
        self, workflow: str, payload: BaseModel, instance_id: str
    ) -> None:
        """Start a workflow by type name.

        Args:
            workflow: Registered workflow type name.
            payload: Workflow input.
            instance_id: Workflow id.
        """
        self._run(
            self._client.start_workflow(
                workflow,
                payload,
                id=instance_id,
                task_queue=self._task_queue,
            )
        )
        logger.info(f"Started workflow {workflow} with ID: {instance_id}")

    def raise_event(self, instance_id: str, event: AgentEvent) -> None:
        """Send an AgentEvent to a running workflow."""
        handle = self._client.get_workflow_handle(instance_id)
        self._run(handle.signal(SIGNAL_AGENT_EVENT, event))
        logger.debug(f"Sent {event.type.value} event to workflow {instance_id}")

    async def get_run_output(self, run_id: str) -> RunOutput:
        """Query the transcript of an agent run.

        Args:
            run_id: Run identifier (workflow id).

        Returns:
            The run's RunOutput snapshot.
        """
        handle = self._client.get_workflow_handle(run_id)
        return await handle.query(QUERY_RUN_OUTPUT, result_type=RunOutput)

    async def get_run_status(self, run_id: str) -> RunStatusQueryResult:
        handle = self._client.get_workflow_handle(run_id)
        return await handle.query(QUERY_RUN_STATUS, result_type=RunStatusQueryResult)

    async def get_orchestration_status(
        self, planner_id: str
    ) -> OrchestrationStatusQueryResult:
        handle = self._client.get_workflow_handle(planner_id)
        return await handle.query(
            QUERY_ORCHESTRATION_STATUS, result_type=OrchestrationStatusQueryResult
        )

    @classmethod
    async def connect(
        cls,
        temporal_address: str,
        temporal_namespace: str,
        task_queue: str,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> "TemporalWorkflowGateway":
        """Connect to Temporal and bind the gateway to the current event loop."""
        client = await connect_client(temporal_address, temporal_namespace)
        return cls(client, loop or asyncio.get_running_loop(), task_queue)

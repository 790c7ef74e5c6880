"""Unit tests for the Temporal gateway used by agent threads."""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from durable_agents.contracts.call_io import RunOutput
from durable_agents.contracts.events import AgentEvent, AgentRunInput
from durable_agents.contracts.names import WORKFLOW_AGENT_RUN
from durable_agents.temporal.client import TemporalWorkflowGateway, connect_client
from durable_agents.temporal.queries import (QUERY_ORCHESTRATION_STATUS,
                                             QUERY_RUN_OUTPUT, QUERY_RUN_STATUS,
                                             OrchestrationStatusQueryResult,
                                             RunStatusQueryResult)
from durable_agents.temporal.signals import SIGNAL_AGENT_EVENT


@pytest.fixture
def mock_workflow_handle():
    """Create a mock workflow handle."""
    handle = MagicMock()
    handle.signal = AsyncMock()
    handle.query = AsyncMock()
    return handle


@pytest.fixture
def mock_temporal_client(mock_workflow_handle):
    """Create a mock Temporal Client instance."""
    client = MagicMock()
    client.start_workflow = AsyncMock()
    client.get_workflow_handle = MagicMock(return_value=mock_workflow_handle)
    return client


@pytest.fixture
def background_loop():
    """Event loop running on its own thread, like a worker's loop."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(5)
    loop.close()


@pytest.fixture
def gateway(mock_temporal_client, background_loop):
    return TemporalWorkflowGateway(mock_temporal_client, background_loop, "agents-queue")


class TestConnectClient:
    """Test connect_client."""

    @pytest.mark.asyncio
    async def test_connects_with_pydantic_converter(self):
        """Test that the client is connected with the pydantic data converter."""
        from temporalio.contrib.pydantic import pydantic_data_converter

        with patch(
            "durable_agents.temporal.client.Client.connect", new_callable=AsyncMock
        ) as mock_connect:
            client = await connect_client("localhost:7233", "default")

        assert client is mock_connect.return_value
        mock_connect.assert_awaited_once_with(
            "localhost:7233",
            namespace="default",
            data_converter=pydantic_data_converter,
        )

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        """Test that a connection failure is reported as RuntimeError."""
        with patch(
            "durable_agents.temporal.client.Client.connect",
            new_callable=AsyncMock,
            side_effect=ConnectionError("refused"),
        ):
            with pytest.raises(RuntimeError, match="Failed to connect to Temporal"):
                await connect_client("nowhere:7233", "default")


class TestSynchronousOperations:
    """Test the blocking methods called from agent threads."""

    def test_schedule_new_workflow(self, gateway, mock_temporal_client):
        """Test that a workflow is started by name on the task queue."""
        payload = AgentRunInput(run_id="r1", agent_name="writer")

        gateway.schedule_new_workflow(WORKFLOW_AGENT_RUN, payload, "r1")

        mock_temporal_client.start_workflow.assert_awaited_once_with(
            WORKFLOW_AGENT_RUN, payload, id="r1", task_queue="agents-queue"
        )

    def test_raise_event(self, gateway, mock_temporal_client, mock_workflow_handle):
        """Test that events are sent as the agent-event signal."""
        event = AgentEvent.tool_call("c1", "get_capital", "['France']")

        gateway.raise_event("r1", event)

        mock_temporal_client.get_workflow_handle.assert_called_once_with("r1")
        mock_workflow_handle.signal.assert_awaited_once_with(SIGNAL_AGENT_EVENT, event)

    def test_errors_propagate(self, gateway, mock_workflow_handle):
        """Test that a failed signal raises in the calling thread."""
        mock_workflow_handle.signal.side_effect = RuntimeError("workflow not found")

        with pytest.raises(RuntimeError, match="workflow not found"):
            gateway.raise_event("r1", AgentEvent.done())

    @pytest.mark.asyncio
    async def test_refuses_own_event_loop(self, mock_temporal_client, mock_workflow_handle):
        """Test that calling from the bound loop fails instead of deadlocking."""
        gateway = TemporalWorkflowGateway(
            mock_temporal_client, asyncio.get_running_loop(), "agents-queue"
        )

        with pytest.raises(RuntimeError, match="own event loop"):
            gateway.raise_event("r1", AgentEvent.done())

        mock_workflow_handle.signal.assert_not_awaited()


class TestQueries:
    """Test the asynchronous query helpers."""

    @pytest.mark.asyncio
    async def test_get_run_output(self, mock_temporal_client, mock_workflow_handle):
        """Test the run output query."""
        output = RunOutput(run_id="r1", agent_name="writer")
        mock_workflow_handle.query.return_value = output
        gateway = TemporalWorkflowGateway(
            mock_temporal_client, asyncio.get_running_loop(), "agents-queue"
        )

        assert await gateway.get_run_output("r1") is output
        mock_workflow_handle.query.assert_awaited_once_with(
            QUERY_RUN_OUTPUT, result_type=RunOutput
        )

    @pytest.mark.asyncio
    async def test_get_run_status(self, mock_temporal_client, mock_workflow_handle):
        """Test the run status query."""
        gateway = TemporalWorkflowGateway(
            mock_temporal_client, asyncio.get_running_loop(), "agents-queue"
        )

        await gateway.get_run_status("r1")

        mock_workflow_handle.query.assert_awaited_once_with(
            QUERY_RUN_STATUS, result_type=RunStatusQueryResult
        )

    @pytest.mark.asyncio
    async def test_get_orchestration_status(
        self, mock_temporal_client, mock_workflow_handle
    ):
        """Test the orchestration status query."""
        gateway = TemporalWorkflowGateway(
            mock_temporal_client, asyncio.get_running_loop(), "agents-queue"
        )

        await gateway.get_orchestration_status("p1")

        mock_temporal_client.get_workflow_handle.assert_called_once_with("p1")
        mock_workflow_handle.query.assert_awaited_once_with(
            QUERY_ORCHESTRATION_STATUS, result_type=OrchestrationStatusQueryResult
        )


class TestConnect:
    """Test TemporalWorkflowGateway.connect."""

    @pytest.mark.asyncio
    async def test_binds_running_loop(self):
        """Test that connect binds the gateway to the current loop."""
        with patch(
            "durable_agents.temporal.client.connect_client", new_callable=AsyncMock
        ) as mock_connect:
            gateway = await TemporalWorkflowGateway.connect(
                "localhost:7233", "default", "agents-queue"
            )

        assert gateway.client is mock_connect.return_value
        assert gateway.task_queue == "agents-queue"
        assert gateway._loop is asyncio.get_running_loop()

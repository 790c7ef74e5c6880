"""Unit tests for the agent-run workflow.

The workflow is driven directly, with ``temporalio.workflow`` patched so
that activities and wait conditions are plain AsyncMocks.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from durable_agents.contracts.call_io import CallActivityInput, CallActivityOutput
from durable_agents.contracts.events import AgentEvent, AgentEventType, AgentRunInput
from durable_agents.contracts.names import ACTIVITY_EXECUTE_CALL
from durable_agents.temporal.queries import WorkflowStatus
from durable_agents.temporal.workflows.agent_run import (CALL_RETRY_POLICY,
                                                         AgentRunWorkflow)

RUN_INPUT = AgentRunInput(run_id="r1", agent_name="writer", user_message="hi")


def echo_activity(name, call_input, **kwargs):
    return CallActivityOutput(
        operation_name=call_input.operation_name,
        payload=call_input.payload,
        result_text=f"result of {call_input.call_id}",
    )


@pytest.fixture
def mock_workflow():
    with patch("durable_agents.temporal.workflows.agent_run.workflow") as patched:
        patched.logger = MagicMock()
        patched.wait_condition = AsyncMock()
        patched.execute_activity = AsyncMock(side_effect=echo_activity)
        yield patched


class TestAgentRunWorkflowInitialization:
    """Test AgentRunWorkflow initialization."""

    def test_init_creates_empty_state(self):
        """Test that a new workflow has no events and no calls."""
        run = AgentRunWorkflow()
        assert len(run._events) == 0
        assert run._output.calls == []
        assert run._status == WorkflowStatus.PENDING


class TestAgentRunWorkflowRun:
    """Test AgentRunWorkflow.run()."""

    @pytest.mark.asyncio
    async def test_executes_events_in_arrival_order(self, mock_workflow):
        """Test that every call event becomes one activity and one record."""
        run = AgentRunWorkflow()
        run.handle_agent_event(AgentEvent.tool_call("c1", "get_capital", "['France']"))
        run.handle_agent_event(AgentEvent.model_call("c2", "chat", "user: hi"))
        run.handle_agent_event(AgentEvent.done())

        output = await run.run(RUN_INPUT)

        assert output.run_id == "r1"
        assert output.agent_name == "writer"
        assert [(c.kind, c.operation_name, c.input, c.output) for c in output.calls] == [
            (AgentEventType.TOOL_CALL, "get_capital", "['France']", "result of c1"),
            (AgentEventType.MODEL_CALL, "chat", "user: hi", "result of c2"),
        ]
        assert run._status == WorkflowStatus.COMPLETED

        first = mock_workflow.execute_activity.call_args_list[0]
        assert first.args == (
            ACTIVITY_EXECUTE_CALL,
            CallActivityInput(
                run_id="r1", call_id="c1", operation_name="get_capital", payload="['France']"
            ),
        )
        assert first.kwargs["result_type"] is CallActivityOutput
        assert first.kwargs["retry_policy"] == CALL_RETRY_POLICY

    @pytest.mark.asyncio
    async def test_waits_for_events(self, mock_workflow):
        """Test that the run waits until a signal delivers an event."""
        run = AgentRunWorkflow()
        arrivals = [
            AgentEvent.tool_call("c1", "get_population", "['Japan']"),
            AgentEvent.done(),
        ]

        async def deliver(condition):
            assert condition() is False
            run.handle_agent_event(arrivals.pop(0))
            assert condition() is True

        mock_workflow.wait_condition.side_effect = deliver

        output = await run.run(RUN_INPUT)

        assert mock_workflow.wait_condition.await_count == 2
        assert len(output.calls) == 1

    @pytest.mark.asyncio
    async def test_done_only_completes_empty_run(self, mock_workflow):
        """Test that a run with no calls completes with an empty transcript."""
        run = AgentRunWorkflow()
        run.handle_agent_event(AgentEvent.done())

        output = await run.run(RUN_INPUT)

        assert output.calls == []
        mock_workflow.execute_activity.assert_not_called()

    @pytest.mark.asyncio
    async def test_activity_failure_fails_run(self, mock_workflow):
        """Test that a failed call activity is not swallowed."""
        mock_workflow.execute_activity.side_effect = RuntimeError("activity failed")
        run = AgentRunWorkflow()
        run.handle_agent_event(AgentEvent.tool_call("c1", "get_capital"))

        with pytest.raises(RuntimeError, match="activity failed"):
            await run.run(RUN_INPUT)

        assert run._output.calls == []


class TestAgentRunWorkflowQueries:
    """Test AgentRunWorkflow queries."""

    @pytest.mark.asyncio
    async def test_query_run_output(self, mock_workflow):
        """Test that the transcript query returns the completed calls."""
        run = AgentRunWorkflow()
        run.handle_agent_event(AgentEvent.tool_call("c1", "get_capital"))
        run.handle_agent_event(AgentEvent.done())
        await run.run(RUN_INPUT)

        output = run.query_run_output()
        assert output.run_id == "r1"
        assert len(output.tool_calls) == 1
        assert output.model_calls == []

    def test_query_run_status_reports_queue(self):
        """Test that the status query reports queued events."""
        run = AgentRunWorkflow()
        run.handle_agent_event(AgentEvent.tool_call("c1", "get_capital"))

        status = run.query_run_status()

        assert status.status == WorkflowStatus.PENDING
        assert status.queued_events == 1
        assert status.completed_calls == 0
        assert status.current_call_id is None

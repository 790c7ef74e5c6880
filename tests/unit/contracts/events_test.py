"""Unit tests for the agent event contracts."""

import pytest
from pydantic import ValidationError

from durable_agents.contracts.events import (AgentEvent, AgentEventType,
                                             AgentRunInput)


class TestAgentEvent:
    """Test AgentEvent constructors and properties."""

    def test_done_is_terminal_without_call_id(self):
        """Test that the done event is terminal and carries no call id."""
        event = AgentEvent.done()
        assert event.type == AgentEventType.DONE
        assert event.is_terminal is True
        assert event.call_id is None

    def test_tool_call_event(self):
        """Test creating a tool-call event."""
        event = AgentEvent.tool_call("c1", "get_capital", "['France']")
        assert event.type == AgentEventType.TOOL_CALL
        assert event.call_id == "c1"
        assert event.operation_name == "get_capital"
        assert event.payload == "['France']"
        assert event.is_terminal is False

    def test_model_call_event(self):
        """Test creating a model-call event."""
        event = AgentEvent.model_call("c2", "chat", "user: hi")
        assert event.type == AgentEventType.MODEL_CALL
        assert event.is_terminal is False

    def test_event_type_values(self):
        """Test the wire values of the event types."""
        assert AgentEventType.TOOL_CALL.value == "tool-call"
        assert AgentEventType.MODEL_CALL.value == "model-call"
        assert AgentEventType.DONE.value == "done"

    def test_event_serialization_round_trip(self):
        """Test that an event survives JSON serialization."""
        event = AgentEvent.tool_call("c1", "get_capital", "['France']")
        restored = AgentEvent.model_validate_json(event.model_dump_json())
        assert restored == event


class TestAgentRunInput:
    """Test AgentRunInput validation."""

    def test_requires_run_id_and_agent_name(self):
        """Test that run id and agent name are required."""
        with pytest.raises(ValidationError):
            AgentRunInput(agent_name="writer")
        with pytest.raises(ValidationError):
            AgentRunInput(run_id="r1")

    def test_optional_messages_default_to_none(self):
        """Test that prompts are optional."""
        run_input = AgentRunInput(run_id="r1", agent_name="writer")
        assert run_input.user_message is None
        assert run_input.system_message is None

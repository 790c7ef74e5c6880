"""Unit tests for the tool-calling agent."""

from typing import List

import pytest

from durable_agents.agents.tool_calling import ToolCallingAgent, render_template
from durable_agents.contracts.chat import ChatResponse, ToolCallRequest
from durable_agents.contracts.events import AgentEventType
from durable_agents.core.agent_base import AgentConfig
from durable_agents.core.agent_scope import AgentScope
from durable_agents.llm.base import ChatModel
from durable_agents.runtime.proxies import tool


class ScriptedModel(ChatModel):
    """Chat model replying from a script and recording requests."""

    def __init__(self, replies: List[ChatResponse]):
        self.replies = list(replies)
        self.requests = []

    def chat(self, request):
        self.requests.append(request)
        return self.replies.pop(0)


class CapitalTools:
    """Capital lookup tool."""

    @tool
    def get_capital(self, country: str) -> str:
        """Return the capital of a country."""
        return {"France": "Paris"}.get(country, "unknown")


def asks_for_capital(call_id="call_1"):
    return ChatResponse(
        tool_calls=[ToolCallRequest(id=call_id, name="get_capital", arguments={"country": "France"})]
    )


CONFIG = AgentConfig(
    name="writer",
    system_message="You write about {{country}}.",
    user_message="Name the capital of {{country}}.",
    output_key="answer",
)


class TestRenderTemplate:
    """Test render_template."""

    def test_substitutes_state(self):
        """Test that placeholders read scope state, with or without spaces."""
        scope = AgentScope.of(country="France", year=2024)
        assert render_template("{{country}} in {{ year }}", scope) == "France in 2024"

    def test_unknown_keys_render_empty(self):
        """Test that unknown keys become empty strings."""
        assert render_template("[{{missing}}]", AgentScope()) == "[]"

    def test_none_template(self):
        """Test that no template renders to None."""
        assert render_template(None, AgentScope()) is None


class TestToolCallingAgent:
    """Test ToolCallingAgent."""

    def test_answers_without_tools(self):
        """Test a direct answer from the model."""
        model = ScriptedModel([ChatResponse(text="Paris.")])
        agent = ToolCallingAgent(CONFIG, model)
        scope = AgentScope.of(country="France")

        assert agent.run(scope) == "Paris."
        assert scope.read_state("answer") == "Paris."
        request = model.requests[0]
        assert request.system_message == "You write about France."
        assert request.user_message == "Name the capital of France."
        assert request.tools == []

    def test_executes_requested_tools(self, runtime):
        """Test that tool results are fed back to the model."""
        model = ScriptedModel([asks_for_capital(), ChatResponse(text="It is Paris.")])
        agent = ToolCallingAgent(CONFIG, model, tools=runtime.wrap_tools(CapitalTools()))

        result = agent.run(AgentScope.of(country="France"))

        assert result == "It is Paris."
        assert [t.name for t in model.requests[0].tools] == ["get_capital"]
        followup = model.requests[1].messages
        assert followup[-2].role == "assistant"
        assert followup[-2].tool_calls[0].id == "call_1"
        assert followup[-1].role == "tool"
        assert followup[-1].content == "Paris"
        assert followup[-1].tool_call_id == "call_1"

    def test_gives_up_after_max_rounds(self, runtime):
        """Test that endless tool requests raise."""
        model = ScriptedModel([asks_for_capital(f"call_{i}") for i in range(3)])
        agent = ToolCallingAgent(
            CONFIG, model, tools=runtime.wrap_tools(CapitalTools()), max_tool_rounds=2
        )

        with pytest.raises(RuntimeError, match="exceeded 2 tool round"):
            agent.run(AgentScope.of(country="France"))
        assert len(model.requests) == 3

    def test_tool_request_without_tools(self):
        """Test that a tool request fails clearly when the agent has no tools."""
        agent = ToolCallingAgent(CONFIG, ScriptedModel([asks_for_capital()]))

        with pytest.raises(ValueError, match="has no tools but the model requested get_capital"):
            agent.run(AgentScope.of(country="France"))

    def test_unknown_tool_request(self, runtime):
        """Test that a request for a tool the agent lacks fails clearly."""
        unknown = ChatResponse(tool_calls=[ToolCallRequest(id="c1", name="get_mayor", arguments={})])
        agent = ToolCallingAgent(
            CONFIG, ScriptedModel([unknown]), tools=runtime.wrap_tools(CapitalTools())
        )

        with pytest.raises(ValueError, match="has no tool named get_mayor"):
            agent.run(AgentScope.of(country="France"))

    def test_requires_a_prompt(self):
        """Test that an agent without templates cannot build a conversation."""
        agent = ToolCallingAgent(AgentConfig(name="empty"), ScriptedModel([]))
        with pytest.raises(ValueError, match="no user or system message"):
            agent.run(AgentScope())

    def test_records_calls_in_run(self, runtime, engine):
        """Test that wrapped model and tool calls are recorded in order."""
        model = runtime.wrap_chat_model(
            ScriptedModel([asks_for_capital(), ChatResponse(text="It is Paris.")])
        )
        agent = ToolCallingAgent(CONFIG, model, tools=runtime.wrap_tools(CapitalTools()))

        assert runtime.run_agent(agent, AgentScope.of(country="France")) == "It is Paris."
        engine.join()

        run_id = engine.started_ids()[0]
        assert [e.type for e in engine.events_for(run_id)] == [
            AgentEventType.MODEL_CALL,
            AgentEventType.TOOL_CALL,
            AgentEventType.MODEL_CALL,
            AgentEventType.DONE,
        ]
        assert engine.events_for(run_id)[1].payload == "[country='France']"
        assert engine.started[0][1].user_message == "Name the capital of {{country}}."

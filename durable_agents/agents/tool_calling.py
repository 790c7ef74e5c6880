"""Tool-calling agent driving a chat model and a set of tools.

The agent renders its prompt templates from the shared scope, asks the model
for a reply and executes every tool call the model requests, feeding the
results back until the model answers with plain text.

Handing it a DurableChatModel and a DurableToolProxy makes every model call
and tool call part of the agent's run without changing this code.
"""

import logging
import re
from typing import Any, List, Optional

from durable_agents.contracts.chat import (ChatMessage, ChatRequest,
                                           ChatResponse, ToolSpecification)
from durable_agents.core.agent_base import AgentBase, AgentConfig
from durable_agents.core.agent_scope import AgentScope
from durable_agents.llm.base import ChatModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 10

_TEMPLATE_VARIABLE = re.compile(r"\{\{\s*([\w.-]+)\s*\}\}")


def render_template(template: Optional[str], scope: AgentScope) -> Optional[str]:
    """Replace ``{{key}}`` placeholders with scope state values.

    Unknown keys render as an empty string.
    """
    if template is None:
        return None

    def replace(match: "re.Match[str]") -> str:
        value = scope.read_state(match.group(1))
        return "" if value is None else str(value)

    return _TEMPLATE_VARIABLE.sub(replace, template)


class ToolCallingAgent(AgentBase):
    """Agent answering its user message with a chat model and optional tools."""

    def __init__(
        self,
        config: AgentConfig,
        chat_model: ChatModel,
        tools: Optional[Any] = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        """Initialize the agent.

        Args:
            config: Agent configuration with the prompt templates.
            chat_model: Model answering the conversation.
            tools: Object exposing ``@tool`` methods, usually a DurableToolProxy.
            max_tool_rounds: Maximum model replies requesting tools before
                the agent gives up.
        """
        super().__init__(config)
        self.chat_model = chat_model
        self.tools = tools
        self.max_tool_rounds = max_tool_rounds

    def tool_specifications(self) -> List[ToolSpecification]:
        if self.tools is None:
            return []
        return self.tools.tool_specifications()

    def _tool_method(self, name: str):
        if self.tools is None:
            raise ValueError(
                f"Agent {self.name} has no tools but the model requested {name}"
            )
        method = getattr(self.tools, name, None)
        if method is None:
            raise ValueError(f"Agent {self.name} has no tool named {name}")
        return method

    def build_messages(self, scope: AgentScope) -> List[ChatMessage]:
        """Render the initial conversation from the configured templates."""
        messages: List[ChatMessage] = []
        system_message = render_template(self.system_message, scope)
        if system_message:
            messages.append(ChatMessage.system(system_message))
        user_message = render_template(self.user_message, scope)
        if user_message:
            messages.append(ChatMessage.user(user_message))
        if not messages:
            raise ValueError(f"Agent {self.name} has no user or system message")
        return messages

    def invoke(self, scope: AgentScope) -> Optional[str]:
        """Converse with the model until it stops requesting tools.

        Args:
            scope: Shared state the prompt templates are rendered from.

        Returns:
            The model's final text reply.

        Raises:
            RuntimeError: If the model keeps requesting tools beyond
                ``max_tool_rounds``.
            ValueError: If the model requests a tool the agent does not have.
        """
        messages = self.build_messages(scope)
        tools = self.tool_specifications()

        for round_number in range(self.max_tool_rounds + 1):
            response: ChatResponse = self.chat_model.chat(
                ChatRequest(messages=messages, tools=tools)
            )
            if not response.has_tool_calls:
                logger.info(f"Agent {self.name} answered after {round_number} tool round(s)")
                return response.text

            if round_number == self.max_tool_rounds:
                break

            messages.append(
                ChatMessage(
                    role="assistant",
                    content=response.text,
                    tool_calls=response.tool_calls,
                )
            )
            for call in response.tool_calls:
                logger.debug(f"Agent {self.name} calling tool {call.name}")
                result = self._tool_method(call.name)(**call.arguments)
                messages.append(
                    ChatMessage(role="tool", content=str(result), tool_call_id=call.id)
                )

        raise RuntimeError(
            f"Agent {self.name} exceeded {self.max_tool_rounds} tool round(s)"
        )

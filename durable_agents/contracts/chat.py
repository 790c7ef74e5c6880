"""Contracts for chat model requests and responses.

These are the types a ChatModel consumes and produces. They are kept
independent of any provider SDK so that model calls can be routed, recorded
and replayed without knowing which provider served them.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model."""

    id: str = Field(..., description="Provider-assigned tool call id")
    name: str = Field(..., description="Name of the tool to invoke")
    arguments: Dict[str, Any] = Field(
        default_factory=dict, description="Keyword arguments for the tool"
    )


class ToolSpecification(BaseModel):
    """Description of a tool the model may call."""

    name: str = Field(..., description="Tool name")
    description: str = Field(default="", description="What the tool does")
    parameters: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON schema of the tool arguments",
    )


class ChatMessage(BaseModel):
    """One message in a chat conversation."""

    role: Literal["system", "user", "assistant", "tool"] = Field(
        ..., description="Author role"
    )
    content: Optional[str] = Field(default=None, description="Message text")
    tool_calls: List[ToolCallRequest] = Field(
        default_factory=list, description="Tool calls requested by an assistant message"
    )
    tool_call_id: Optional[str] = Field(
        default=None, description="Tool call a tool message answers"
    )

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)


class ChatRequest(BaseModel):
    """A chat completion request."""

    messages: List[ChatMessage] = Field(..., description="Conversation so far")
    tools: List[ToolSpecification] = Field(
        default_factory=list, description="Tools the model may call"
    )
    model: Optional[str] = Field(
        default=None, description="Model override, provider default if unset"
    )
    temperature: Optional[float] = Field(default=None, description="Sampling temperature")

    @property
    def user_message(self) -> Optional[str]:
        """Text of the most recent user message, if any."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return None

    @property
    def system_message(self) -> Optional[str]:
        """Text of the first system message, if any."""
        for message in self.messages:
            if message.role == "system":
                return message.content
        return None

    def prompt_text(self) -> str:
        """Render the conversation as plain text, one message per line."""
        return "\n".join(f"{m.role}: {m.content or ''}" for m in self.messages)


class ChatResponse(BaseModel):
    """A chat completion response."""

    text: Optional[str] = Field(default=None, description="Assistant message text")
    tool_calls: List[ToolCallRequest] = Field(
        default_factory=list, description="Tool calls requested by the model"
    )
    finish_reason: Optional[str] = Field(default=None, description="Provider finish reason")

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

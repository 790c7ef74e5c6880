"""Chat model interface used by agents."""

from abc import ABC, abstractmethod

from durable_agents.contracts.chat import ChatRequest, ChatResponse


class ChatModel(ABC):
    """A synchronous chat completion model."""

    @abstractmethod
    def chat(self, request: ChatRequest) -> ChatResponse:
        """Generate the next assistant message for a conversation.

        Args:
            request: Conversation and available tools.

        Returns:
            The assistant's reply, possibly requesting tool calls.
        """

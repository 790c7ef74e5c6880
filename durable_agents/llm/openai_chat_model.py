"""OpenAI implementation of the ChatModel interface.

This module provides a synchronous chat model backed by OpenAI's chat
completions API. Agents call models from ordinary threads (the model call may
be routed through a run workflow and executed in an activity thread), so the
blocking ``OpenAI`` client is used rather than ``AsyncOpenAI``.
"""

import json
import logging
from typing import Any, Dict, Optional

from openai import OpenAI

from durable_agents.config import settings
from durable_agents.contracts.chat import (ChatMessage, ChatRequest,
                                           ChatResponse, ToolCallRequest,
                                           ToolSpecification)
from durable_agents.llm.base import ChatModel

logger = logging.getLogger(__name__)


class OpenAIChatModel(ChatModel):
    """Chat model calling OpenAI chat completions with function tools.

    Example:
        ```python
        model = OpenAIChatModel()
        response = model.chat(
            ChatRequest(messages=[ChatMessage.user("Hello!")])
        )
        print(response.text)
        ```
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        """Initialize the model.

        Args:
            api_key: Optional OpenAI API key. If not provided, uses
                settings.openai_api_key.
            model: Default model name. If not provided, uses settings.openai_model.
            base_url: Optional base URL for the API, for proxies or
                compatible endpoints.
            client: Optional pre-configured OpenAI client.
        """
        self._api_key = api_key or settings.openai_api_key
        self._model = model or settings.openai_model
        self._base_url = base_url
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    @property
    def client(self) -> OpenAI:
        """Get the OpenAI client, creating it on first use.

        Raises:
            ValueError: If no API key is configured.
        """
        if self._client is None:
            if not self._api_key:
                raise ValueError(
                    "OpenAI API key is required. Set OPENAI_API_KEY in environment or pass api_key parameter."
                )
            client_kwargs: Dict[str, Any] = {"api_key": self._api_key}
            if self._base_url:
                client_kwargs["base_url"] = self._base_url
            self._client = OpenAI(**client_kwargs)
            logger.info("OpenAI client initialized successfully")
        return self._client

    def chat(self, request: ChatRequest) -> ChatResponse:
        """Generate a chat completion.

        Args:
            request: Conversation and available tools.

        Returns:
            The first choice converted to a ChatResponse.
        """
        params: Dict[str, Any] = {
            "model": request.model or self._model,
            "messages": [_to_openai_message(m) for m in request.messages],
        }
        if request.tools:
            params["tools"] = [_to_openai_tool(t) for t in request.tools]
        if request.temperature is not None:
            params["temperature"] = request.temperature

        try:
            completion = self.client.chat.completions.create(**params)
        except Exception as e:
            logger.error(f"OpenAI chat completion failed: {e}")
            raise

        choice = completion.choices[0]
        message = choice.message
        tool_calls = [
            ToolCallRequest(
                id=call.id,
                name=call.function.name,
                arguments=json.loads(call.function.arguments or "{}"),
            )
            for call in (message.tool_calls or [])
        ]
        return ChatResponse(
            text=message.content,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
        )


def _to_openai_message(message: ChatMessage) -> Dict[str, Any]:
    converted: Dict[str, Any] = {"role": message.role, "content": message.content}
    if message.tool_calls:
        converted["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
            }
            for call in message.tool_calls
        ]
    if message.tool_call_id:
        converted["tool_call_id"] = message.tool_call_id
    return converted


def _to_openai_tool(spec: ToolSpecification) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": spec.name,
            "description": spec.description,
            "parameters": spec.parameters,
        },
    }

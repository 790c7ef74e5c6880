"""Chat model interface and provider implementations."""

from .base import ChatModel
from .openai_chat_model import OpenAIChatModel

__all__ = ["ChatModel", "OpenAIChatModel"]

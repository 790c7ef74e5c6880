"""Ready-made agents."""

from .tool_calling import ToolCallingAgent, render_template

__all__ = ["ToolCallingAgent", "render_template"]

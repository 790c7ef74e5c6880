"""Base class for all agents in the system.

This module provides the AgentBase class that serves as the foundation for
all agents, whether they call a model themselves or orchestrate sub-agents.
Configuration can be given directly or loaded from a YAML file.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field

from durable_agents.core.agent_scope import AgentScope


class AgentConfig(BaseModel):
    """Configuration model for an agent."""

    name: str = Field(..., description="Unique identifier for the agent")
    description: str = Field(
        default="", description="Human-readable description of what the agent does"
    )
    output_key: Optional[str] = Field(
        default=None,
        description="Scope state key the agent's result is written to",
    )
    user_message: Optional[str] = Field(
        default=None,
        description="User prompt template, with {{key}} placeholders read from scope state",
    )
    system_message: Optional[str] = Field(
        default=None,
        description="System prompt template, with {{key}} placeholders read from scope state",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata about the agent",
    )

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "AgentConfig":
        """Load and parse an agent's YAML configuration file.

        Args:
            config_path: Path to the YAML file.

        Returns:
            AgentConfig: Parsed configuration object

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the config file is invalid or missing required fields
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {path}: {e}") from e

        if config_data is None:
            raise ValueError(f"Config file {path} is empty")

        try:
            return cls(**config_data)
        except Exception as e:
            raise ValueError(f"Error loading config from {path}: {e}") from e


class AgentBase:
    """Base class for all agents in the system.

    Subclasses implement ``invoke``. Callers use ``run``, which also writes
    the result to the scope under the configured output key.
    """

    def __init__(self, config: Union[AgentConfig, str, Path]):
        """Initialize the agent.

        Args:
            config: An AgentConfig, or a path to a YAML file holding one.
        """
        if isinstance(config, AgentConfig):
            self.config = config
        else:
            self.config = AgentConfig.from_yaml(config)

    @property
    def name(self) -> str:
        """Get the agent's name."""
        return self.config.name

    @property
    def description(self) -> str:
        """Get the agent's description."""
        return self.config.description

    @property
    def output_key(self) -> Optional[str]:
        return self.config.output_key

    @property
    def user_message(self) -> Optional[str]:
        return self.config.user_message

    @property
    def system_message(self) -> Optional[str]:
        return self.config.system_message

    def invoke(self, scope: AgentScope) -> Any:
        """Perform the agent's work against the shared scope.

        Args:
            scope: Shared state for the invocation.

        Returns:
            The agent's result.
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement invoke()")

    def run(self, scope: AgentScope) -> Any:
        """Invoke the agent and store its result under ``output_key``.

        Args:
            scope: Shared state for the invocation.

        Returns:
            The agent's result.
        """
        result = self.invoke(scope)
        if self.output_key:
            scope.write_state(self.output_key, result)
        return result

    def __repr__(self) -> str:
        """String representation of the agent."""
        return f"{self.__class__.__name__}(name='{self.name}')"

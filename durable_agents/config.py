"""Configuration management for the application.

This module provides a centralized configuration system that loads settings
from environment variables (via .env file) with sensible defaults.

Workflow modules must not import this module: reading the environment and
the .env file is not deterministic. Workflow timeouts and retry policies are
module constants in the workflow modules instead.
"""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables with defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Temporal Configuration
    temporal_address: str = Field(
        default="localhost:7233",
        description="Temporal frontend address (host:port)",
    )
    temporal_namespace: str = Field(
        default="default",
        description="Temporal namespace",
    )
    temporal_task_queue: str = Field(
        default="durable-agents-task-queue",
        description="Task queue polled by the worker and used for every workflow",
    )

    # Worker Configuration
    worker_max_concurrent_activities: int = Field(
        default=64,
        description=(
            "Maximum concurrent activities. Also the size of the thread pool "
            "running synchronous activities, so it bounds how many orchestration "
            "steps can be blocked on an agent at the same time."
        ),
    )
    worker_max_concurrent_workflow_tasks: int = Field(
        default=10,
        description="Maximum concurrent workflow tasks",
    )

    # OpenAI Configuration
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key for LLM operations",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Default chat model used by OpenAIChatModel",
    )

    langfuse_secret_key: str = Field(default="", description="Langfuse Secret Key")

    langfuse_public_key: str = Field(default="", description="Langfuse Public Key")

    langfuse_base_url: str = Field(
        default="https://us.cloud.langfuse.com", description="Langfuse Base URL"
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level for the worker process",
    )

    @field_validator(
        "worker_max_concurrent_activities", "worker_max_concurrent_workflow_tasks"
    )
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Validate that worker concurrency limits are positive."""
        if v < 1:
            raise ValueError("Worker concurrency limits must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def tracing_enabled(self) -> bool:
        """Whether Langfuse credentials are configured."""
        return bool(self.langfuse_public_key and self.langfuse_secret_key)


# Singleton instance - import this in other modules
settings = Settings()

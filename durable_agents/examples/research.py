"""Research example: a tool-calling agent whose calls are recorded durably.

The research writer answers with the help of two lookup tools. Run inside a
worker process, every model call and every tool call the writer makes is
executed by an ``execute_call`` activity and shows up in the history of the
writer's agent-run workflow, nested under a sequential orchestration.

Usage:
    python -m durable_agents.examples.research France
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from durable_agents.agents.tool_calling import ToolCallingAgent
from durable_agents.config import settings
from durable_agents.core.agent_base import AgentConfig
from durable_agents.core.agent_scope import AgentScope
from durable_agents.llm.base import ChatModel
from durable_agents.llm.openai_chat_model import OpenAIChatModel
from durable_agents.runtime.agents_runtime import DurableAgentsRuntime
from durable_agents.runtime.orchestrated import OrchestratedAgent
from durable_agents.runtime.proxies import tool
from durable_agents.temporal.client import TemporalWorkflowGateway
from durable_agents.temporal.worker import create_worker

logger = logging.getLogger(__name__)

RESEARCH_WRITER_CONFIG = Path(__file__).parent / "research_writer.yaml"


class ResearchTools:
    """Country lookups. Canned answers keep the example offline."""

    @tool(description="Looks up real-time population data for a given country")
    def get_population(self, country: str) -> str:
        populations = {
            "france": "France has approximately 68 million inhabitants (2024).",
            "germany": "Germany has approximately 84 million inhabitants (2024).",
            "japan": "Japan has approximately 124 million inhabitants (2024).",
        }
        return populations.get(
            country.lower(), f"{country} population data is not available in this demo."
        )

    @tool(description="Returns the official capital city of a given country")
    def get_capital(self, country: str) -> str:
        capitals = {
            "france": "The capital of France is Paris.",
            "germany": "The capital of Germany is Berlin.",
            "japan": "The capital of Japan is Tokyo.",
        }
        return capitals.get(
            country.lower(), f"Capital city for {country} is not available in this demo."
        )


def build_research_writer(
    runtime: DurableAgentsRuntime, chat_model: ChatModel
) -> ToolCallingAgent:
    """Build the research writer with durable model and tool wrappers."""
    return ToolCallingAgent(
        AgentConfig.from_yaml(RESEARCH_WRITER_CONFIG),
        chat_model=runtime.wrap_chat_model(chat_model),
        tools=runtime.wrap_tools(ResearchTools()),
    )


def build_research_pipeline(
    runtime: DurableAgentsRuntime, chat_model: ChatModel
) -> OrchestratedAgent:
    """Build a sequential pipeline around the research writer."""
    return runtime.agents_builder().sequence(
        "research pipeline",
        [build_research_writer(runtime, chat_model)],
        output_key="summary",
        description="Researches a country and writes a short summary",
    )


async def research(country: str, chat_model: Optional[ChatModel] = None) -> str:
    """Run the research pipeline for a country inside a local worker.

    Args:
        country: Country to research.
        chat_model: Model to use. Defaults to OpenAIChatModel.

    Returns:
        The written summary.
    """
    gateway = await TemporalWorkflowGateway.connect(
        settings.temporal_address,
        settings.temporal_namespace,
        settings.temporal_task_queue,
    )
    runtime = DurableAgentsRuntime(gateway)
    pipeline = build_research_pipeline(runtime, chat_model or OpenAIChatModel())

    worker = create_worker(
        gateway.client,
        runtime,
        settings.temporal_task_queue,
        max_concurrent_activities=settings.worker_max_concurrent_activities,
        max_concurrent_workflow_tasks=settings.worker_max_concurrent_workflow_tasks,
    )
    async with worker:
        # Agents block on pending calls, so they must not run on the loop thread.
        summary = await asyncio.to_thread(
            pipeline.run, AgentScope.of(country=country)
        )
    logger.info(f"Research summary for {country}: {summary}")
    return summary


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    country = sys.argv[1] if len(sys.argv) > 1 else "France"
    print(asyncio.run(research(country)))


if __name__ == "__main__":
    main()

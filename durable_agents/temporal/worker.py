"""Temporal worker process entrypoint.

This module provides the worker bootstrap that registers workflows and
activities and starts polling the task queue.

Unlike a stand-alone service worker, the activities here are bound to an
in-process DurableAgentsRuntime: they complete pending calls that agent
threads of the same process are blocked on. The agents therefore run in the
worker's process, on threads other than the worker's event loop.
"""

import asyncio
import logging
import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from temporalio.client import Client
from temporalio.worker import Worker

from durable_agents.runtime.agents_runtime import DurableAgentsRuntime
from durable_agents.runtime.tracing import Tracer, get_tracer
from durable_agents.temporal.activities import (CallActivities,
                                                OrchestrationActivities)
from durable_agents.temporal.client import TemporalWorkflowGateway
from durable_agents.temporal.workflows import (AgentRunWorkflow,
                                               ConditionalOrchestrationWorkflow,
                                               LoopOrchestrationWorkflow,
                                               ParallelOrchestrationWorkflow,
                                               SequentialOrchestrationWorkflow)

logger = logging.getLogger(__name__)

# Global worker instance for graceful shutdown
_worker: Optional[Worker] = None


def _get_workflows() -> List[type]:
    """Get list of workflows to register.

    Returns:
        List of workflow classes.
    """
    return [
        AgentRunWorkflow,
        SequentialOrchestrationWorkflow,
        ParallelOrchestrationWorkflow,
        LoopOrchestrationWorkflow,
        ConditionalOrchestrationWorkflow,
    ]


def _get_activities(
    runtime: DurableAgentsRuntime, tracer: Optional[Tracer] = None
) -> List[Callable]:
    """Get list of activities to register.

    Args:
        runtime: Runtime whose registries the activities read.
        tracer: Tracer for call spans. Defaults to the default tracer.

    Returns:
        List of bound activity methods.
    """
    calls = CallActivities(runtime.runs, runtime.guard, tracer=tracer)
    orchestration = OrchestrationActivities(runtime.planners, runtime.lifecycle)
    return [
        calls.execute_call,
        orchestration.execute_agent_step,
        orchestration.check_exit_condition,
        orchestration.check_condition,
        orchestration.complete_orchestration,
    ]


def create_worker(
    client: Client,
    runtime: DurableAgentsRuntime,
    task_queue: str,
    max_concurrent_activities: int = 64,
    max_concurrent_workflow_tasks: int = 10,
    tracer: Optional[Tracer] = None,
) -> Worker:
    """Create a worker bound to a runtime.

    Activities are synchronous, so they run on a thread pool sized to
    ``max_concurrent_activities``. Every orchestration step occupies one of
    those threads for as long as its agent runs.

    Args:
        client: Connected Temporal client.
        runtime: Runtime the activities complete pending calls of.
        task_queue: Task queue name to poll.
        max_concurrent_activities: Maximum concurrent activities.
        max_concurrent_workflow_tasks: Maximum concurrent workflow tasks.
        tracer: Tracer for call spans. Defaults to the default tracer.

    Returns:
        The worker, not yet running.
    """
    workflows = _get_workflows()
    logger.info(f"Registering {len(workflows)} workflow(s)")

    activities = _get_activities(runtime, tracer)
    logger.info(f"Registering {len(activities)} activity/activities")

    return Worker(
        client,
        task_queue=task_queue,
        workflows=workflows,
        activities=activities,
        activity_executor=ThreadPoolExecutor(max_workers=max_concurrent_activities),
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


async def run_worker(
    temporal_address: str,
    temporal_namespace: str,
    task_queue: str,
    max_concurrent_activities: int = 64,
    max_concurrent_workflow_tasks: int = 10,
    configure: Optional[Callable[[DurableAgentsRuntime], None]] = None,
) -> None:
    """Run the Temporal worker.

    This function:
    1. Connects to Temporal
    2. Builds the runtime around a gateway bound to this event loop
    3. Registers workflows and activities
    4. Runs until interrupted

    Args:
        temporal_address: Temporal server address.
        temporal_namespace: Temporal namespace.
        task_queue: Task queue name to poll.
        max_concurrent_activities: Maximum concurrent activities.
        max_concurrent_workflow_tasks: Maximum concurrent workflow tasks.
        configure: Called with the runtime before the worker starts, e.g. to
            wrap tools or start agent threads.
    """
    global _worker

    logger.info(
        f"Starting Temporal worker (address: {temporal_address}, "
        f"namespace: {temporal_namespace}, task_queue: {task_queue})"
    )

    try:
        gateway = await TemporalWorkflowGateway.connect(
            temporal_address, temporal_namespace, task_queue
        )
        runtime = DurableAgentsRuntime(gateway)
        if configure is not None:
            configure(runtime)

        _worker = create_worker(
            gateway.client,
            runtime,
            task_queue,
            max_concurrent_activities=max_concurrent_activities,
            max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
        )

        logger.info(
            f"Polling {task_queue} with {max_concurrent_activities} activity thread(s); "
            f"at most {max_concurrent_activities} agent step(s) can block at once"
        )

        # Blocks until interrupted
        await _worker.run()

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down worker...")
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise
    finally:
        if _worker is not None:
            logger.info("Shutting down worker, pending calls of live runs will fail")
            await _worker.shutdown()
            _worker = None
            logger.info("Worker stopped")
        get_tracer().flush()


def _setup_signal_handlers() -> None:
    """Exit on SIGINT or SIGTERM so the worker shuts down from run_worker."""

    def signal_handler(signum, frame):
        logger.info(f"Signal {signum} received, stopping worker")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


async def main() -> None:
    """Main entrypoint for the worker process.

    Configuration comes from environment variables or the .env file.
    """
    from durable_agents.config import settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    _setup_signal_handlers()

    await run_worker(
        temporal_address=settings.temporal_address,
        temporal_namespace=settings.temporal_namespace,
        task_queue=settings.temporal_task_queue,
        max_concurrent_activities=settings.worker_max_concurrent_activities,
        max_concurrent_workflow_tasks=settings.worker_max_concurrent_workflow_tasks,
    )


def cli() -> None:
    """Console script entrypoint."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()

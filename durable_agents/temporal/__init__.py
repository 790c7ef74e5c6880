"""Temporal integration layer for durable agents.

This module provides the Temporal side of the rendezvous:
- Gateway used by agent threads to start workflows and raise events
- Worker process registering workflows and activities
- Signal and query definitions
- Workflow and activity implementations

Architecture:
- Workflows import only contracts, signals and queries
- Activities and the gateway are wired to a DurableAgentsRuntime by the worker
"""


# Export symbols lazily via __getattr__ (PEP 562)
# This allows workflows to import queries/signals without triggering
# client/worker/activities imports (which pull in non-deterministic dependencies)
def __getattr__(name: str):
    """Lazy import of symbols to avoid import chain issues during workflow validation."""
    if name in {"TemporalWorkflowGateway", "connect_client"}:
        from . import client

        return getattr(client, name)

    if name in {"cli", "create_worker", "main", "run_worker"}:
        from . import worker

        return getattr(worker, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "TemporalWorkflowGateway",
    "cli",
    "connect_client",
    "create_worker",
    "main",
    "run_worker",
]

"""Durable agents package.

Note: This module does not import config or the runtime at module level.
Temporal workflow modules import ``durable_agents.contracts`` inside the
workflow sandbox, so anything imported here is re-imported there. Import
what you need directly:
    from durable_agents.config import settings
    from durable_agents.runtime import DurableAgentsRuntime
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

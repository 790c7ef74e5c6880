"""Temporal activities.

Activities are bound to a DurableAgentsRuntime's registries, so they are
classes instantiated by the worker rather than module-level functions.
"""

from .calls import CallActivities
from .orchestration import OrchestrationActivities, agent_step_run_id

__all__ = ["CallActivities", "OrchestrationActivities", "agent_step_run_id"]

"""Workflow and activity type names.

The in-process side schedules workflows by name so that it never imports
workflow code, and workflows schedule activities by name so that they never
import activity implementations.
"""

from typing import Dict

from durable_agents.contracts.orchestration_io import OrchestrationTopology

WORKFLOW_AGENT_RUN = "agent-run"

ORCHESTRATION_WORKFLOWS: Dict[OrchestrationTopology, str] = {
    OrchestrationTopology.SEQUENCE: "sequential-orchestration",
    OrchestrationTopology.PARALLEL: "parallel-orchestration",
    OrchestrationTopology.LOOP: "loop-orchestration",
    OrchestrationTopology.CONDITIONAL: "conditional-orchestration",
}

ACTIVITY_EXECUTE_CALL = "execute_call"
ACTIVITY_EXECUTE_AGENT_STEP = "execute_agent_step"
ACTIVITY_CHECK_EXIT_CONDITION = "check_exit_condition"
ACTIVITY_CHECK_CONDITION = "check_condition"
ACTIVITY_COMPLETE_ORCHESTRATION = "complete_orchestration"

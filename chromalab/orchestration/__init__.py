"""
Orchestration layer: the auto-plan state machine and the workbench facade.
"""
from chromalab.orchestration.access import require_verified
from chromalab.orchestration.auto_plan_orchestrator import AutoPlanOrchestrator
from chromalab.orchestration.workbench import Workbench

__all__ = [
    "require_verified",
    "AutoPlanOrchestrator",
    "Workbench",
]

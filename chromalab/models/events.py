"""
Orchestrator events and outcomes.

The orchestrator reports progress through these values instead of holding
references to presentation-layer callbacks.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from chromalab.models.analysis import HairAnalysis
from chromalab.models.enums import AutoPlanState, OrchestratorEventKind
from chromalab.models.plan import ColorPlan


@dataclass(frozen=True)
class OrchestratorEvent:
    """A single event emitted by the auto-plan orchestrator."""
    kind: OrchestratorEventKind
    state: AutoPlanState
    run_id: int
    analysis: Optional[HairAnalysis] = None
    plan: Optional[ColorPlan] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "state": self.state.value,
            "run_id": self.run_id,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "plan": self.plan.to_dict() if self.plan else None,
            "error": self.error,
            "error_code": self.error_code,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AutoPlanOutcome:
    """
    Result of one run_auto_plan call.

    A superseded run reports superseded=True and the state of the run
    that replaced it is left for that run to report.
    """
    run_id: int
    state: AutoPlanState
    analysis: Optional[HairAnalysis] = None
    plan: Optional[ColorPlan] = None
    error: Optional[str] = None
    superseded: bool = False

    @property
    def succeeded(self) -> bool:
        """Check if the run reached DONE."""
        return not self.superseded and self.state == AutoPlanState.DONE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "state": self.state.value,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "plan": self.plan.to_dict() if self.plan else None,
            "error": self.error,
            "superseded": self.superseded,
        }

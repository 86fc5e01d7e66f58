"""
Shared enums for the Chromalab core.
"""

from enum import Enum
from typing import Optional


class AutoPlanState(Enum):
    """Phases of the guided auto-plan pipeline."""
    IDLE = "idle"
    PROCESSING = "processing"     # Photo accepted, settling before analysis
    ANALYZING = "analyzing"
    PLANNING = "planning"
    DONE = "done"
    ERROR = "error"

    @property
    def is_running(self) -> bool:
        """Check if a guided run is in flight."""
        return self in (
            AutoPlanState.PROCESSING,
            AutoPlanState.ANALYZING,
            AutoPlanState.PLANNING,
        )


class Porosity(Enum):
    """Canonical porosity labels. Generator output may use others."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, label: str) -> Optional["Porosity"]:
        """Return the canonical member for a label, or None if unrecognized."""
        normalized = label.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return None


class ValidationFailureKind(Enum):
    """Why a generator payload was rejected."""
    UNPARSEABLE = "unparseable"
    SCHEMA_INCOMPLETE = "schema_incomplete"


class OrchestratorEventKind(Enum):
    """Events emitted by the auto-plan orchestrator."""
    STATE_CHANGED = "state_changed"
    ANALYSIS_READY = "analysis_ready"
    PLAN_READY = "plan_ready"
    AUTO_PLAN_COMPLETED = "auto_plan_completed"
    PIPELINE_FAILED = "pipeline_failed"
    REFINEMENT_STARTED = "refinement_started"
    REFINEMENT_FAILED = "refinement_failed"
    RESET = "reset"


class AspectRatio(Enum):
    """Aspect ratios supported for inspiration images."""
    SQUARE = "1:1"
    PORTRAIT_3_4 = "3:4"
    LANDSCAPE_4_3 = "4:3"
    PORTRAIT_9_16 = "9:16"
    LANDSCAPE_16_9 = "16:9"


class StylistRole(Enum):
    """Roles stored on a stylist record."""
    OWNER = "Owner"
    ADMIN = "Admin"
    STYLIST = "Stylist"

"""
Chromalab Models Package

Shared data classes and enums for the Chromalab core.
Models never import from chromalab.core or chromalab.services.
"""

# Enums
from .enums import (
    AutoPlanState,
    Porosity,
    ValidationFailureKind,
    OrchestratorEventKind,
    AspectRatio,
    StylistRole,
)

# Records produced by the pipeline
from .analysis import HairAnalysis
from .plan import (
    ColorPlan,
    PreLighten,
    Tone,
    FashionOverlay,
)

# Inputs
from .photo import Photo, DisplayHandle
from .target import (
    TargetColor,
    BRAND_CATALOG,
    AUTO_TARGET_DESCRIPTION,
)

# Identity
from .session import StylistRecord, StylistSession

# Orchestration
from .events import OrchestratorEvent, AutoPlanOutcome

__all__ = [
    # Enums
    "AutoPlanState",
    "Porosity",
    "ValidationFailureKind",
    "OrchestratorEventKind",
    "AspectRatio",
    "StylistRole",
    # Records
    "HairAnalysis",
    "ColorPlan",
    "PreLighten",
    "Tone",
    "FashionOverlay",
    # Inputs
    "Photo",
    "DisplayHandle",
    "TargetColor",
    "BRAND_CATALOG",
    "AUTO_TARGET_DESCRIPTION",
    # Identity
    "StylistRecord",
    "StylistSession",
    # Orchestration
    "OrchestratorEvent",
    "AutoPlanOutcome",
]

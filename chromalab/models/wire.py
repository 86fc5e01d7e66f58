"""
Wire schemas for generator payloads.

Strict pydantic models describing the JSON shapes the generative backend
is asked to produce. Used only by the response validator; nothing
downstream of it sees these models.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class WirePayload(BaseModel):
    """Base for generator payload schemas: strict types, extra keys ignored."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


class AnalysisPayload(WirePayload):
    """All eight analysis fields, each a string."""
    natural_level: StrictStr = Field(alias="naturalLevel")
    current_cosmetic_level: StrictStr = Field(alias="currentCosmeticLevel")
    dominant_undertone: StrictStr = Field(alias="dominantUndertone")
    gray_percentage: StrictStr = Field(alias="grayPercentage")
    porosity: StrictStr  # Any label; canonical values are not enforced here
    banding_zones: StrictStr = Field(alias="bandingZones")
    risk_flags: StrictStr = Field(alias="riskFlags")
    stylist_notes: StrictStr = Field(alias="stylistNotes")


class PlanCorePayload(WirePayload):
    """Required part of a plan: narrative path and non-empty steps."""
    path: StrictStr = Field(min_length=1)
    steps: List[StrictStr] = Field(min_length=1)


class PreLightenPayload(WirePayload):
    """Pre-lighten section, all keys required."""
    product: StrictStr
    ratio: StrictStr
    zone: StrictStr
    time: StrictStr
    visual_endpoint: StrictStr = Field(alias="visualEndpoint")


class TonePayload(WirePayload):
    """Tone section, all keys required."""
    shades: StrictStr
    ratio: StrictStr
    developer: StrictStr
    time: StrictStr


class FashionOverlayPayload(WirePayload):
    """Fashion overlay section, all keys required."""
    shades: StrictStr
    saturation: StrictStr
    time: StrictStr

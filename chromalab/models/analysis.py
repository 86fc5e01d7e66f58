"""
Hair analysis model.

Structured diagnosis produced from one client photo.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from chromalab.models.enums import Porosity


# Wire key (as produced by the generator) -> attribute name
ANALYSIS_FIELDS: Dict[str, str] = {
    "naturalLevel": "natural_level",
    "currentCosmeticLevel": "current_cosmetic_level",
    "dominantUndertone": "dominant_undertone",
    "grayPercentage": "gray_percentage",
    "porosity": "porosity",
    "bandingZones": "banding_zones",
    "riskFlags": "risk_flags",
    "stylistNotes": "stylist_notes",
}


@dataclass(frozen=True)
class HairAnalysis:
    """
    Diagnostic record for a client's hair.

    Immutable once produced. A new analysis replaces the old one
    wholesale, never by partial merge.
    """
    natural_level: str
    current_cosmetic_level: str
    dominant_undertone: str
    gray_percentage: str
    porosity: str  # Usually Low/Medium/High, other labels are kept as-is
    banding_zones: str
    risk_flags: str
    stylist_notes: str

    @property
    def porosity_level(self) -> Optional[Porosity]:
        """Canonical porosity, or None when the label is not recognized."""
        return Porosity.parse(self.porosity)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the generator's camelCase dictionary."""
        return {
            wire_key: getattr(self, attr)
            for wire_key, attr in ANALYSIS_FIELDS.items()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HairAnalysis":
        """Create from an already-validated camelCase dictionary."""
        return cls(**{
            attr: data[wire_key]
            for wire_key, attr in ANALYSIS_FIELDS.items()
        })

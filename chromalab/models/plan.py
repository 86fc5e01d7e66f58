"""
Color plan models.

A formulation plan generated against one hair analysis and one target
color. Optional sections are either fully present or absent.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class PreLighten:
    """Pre-lightening section of a plan."""
    product: str
    ratio: str
    zone: str
    time: str
    visual_endpoint: str

    WIRE_KEYS = ("product", "ratio", "zone", "time", "visualEndpoint")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "product": self.product,
            "ratio": self.ratio,
            "zone": self.zone,
            "time": self.time,
            "visualEndpoint": self.visual_endpoint,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PreLighten":
        """Create from dictionary."""
        return cls(
            product=data["product"],
            ratio=data["ratio"],
            zone=data["zone"],
            time=data["time"],
            visual_endpoint=data["visualEndpoint"],
        )


@dataclass(frozen=True)
class Tone:
    """Toning section of a plan."""
    shades: str
    ratio: str
    developer: str
    time: str

    WIRE_KEYS = ("shades", "ratio", "developer", "time")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "shades": self.shades,
            "ratio": self.ratio,
            "developer": self.developer,
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tone":
        """Create from dictionary."""
        return cls(
            shades=data["shades"],
            ratio=data["ratio"],
            developer=data["developer"],
            time=data["time"],
        )


@dataclass(frozen=True)
class FashionOverlay:
    """Direct-dye fashion overlay section of a plan."""
    shades: str
    saturation: str
    time: str

    WIRE_KEYS = ("shades", "saturation", "time")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "shades": self.shades,
            "saturation": self.saturation,
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FashionOverlay":
        """Create from dictionary."""
        return cls(
            shades=data["shades"],
            saturation=data["saturation"],
            time=data["time"],
        )


@dataclass(frozen=True)
class ColorPlan:
    """
    Structured formulation record.

    Carries no reference to the analysis or target it was generated
    against; the orchestrator tracks that association.
    """
    path: str
    steps: Tuple[str, ...]
    pre_lighten: Optional[PreLighten] = None
    tone: Optional[Tone] = None
    fashion_overlay: Optional[FashionOverlay] = None

    @property
    def sections(self) -> Dict[str, bool]:
        """Which optional sections are present."""
        return {
            "preLighten": self.pre_lighten is not None,
            "tone": self.tone is not None,
            "fashionOverlay": self.fashion_overlay is not None,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the generator's camelCase dictionary."""
        return {
            "path": self.path,
            "preLighten": self.pre_lighten.to_dict() if self.pre_lighten else None,
            "tone": self.tone.to_dict() if self.tone else None,
            "fashionOverlay": self.fashion_overlay.to_dict() if self.fashion_overlay else None,
            "steps": list(self.steps),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColorPlan":
        """Create from an already-validated camelCase dictionary."""
        pre_lighten = data.get("preLighten")
        tone = data.get("tone")
        fashion_overlay = data.get("fashionOverlay")
        return cls(
            path=data["path"],
            steps=tuple(data["steps"]),
            pre_lighten=PreLighten.from_dict(pre_lighten) if pre_lighten else None,
            tone=Tone.from_dict(tone) if tone else None,
            fashion_overlay=FashionOverlay.from_dict(fashion_overlay) if fashion_overlay else None,
        )

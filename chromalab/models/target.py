"""
Target color descriptor.

A target is either a (brand, shade) pair from the closed catalog, a hex
color string, or the default target used by the guided auto-plan flow.
It is passed by value into the planning stage and never persisted.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import re


BRAND_CATALOG: Dict[str, Tuple[str, ...]] = {
    "Redken Shades EQ": (
        "010P Opal Glow",
        "09V Platinum Ice",
        "09T Titanium",
        "08GI Butterscotch",
        "06NB Brandy",
    ),
    "Wella Color Touch": (
        "10/6 Lightest Blonde Violet",
        "9/16 Very Light Blonde Ash Violet",
        "8/81 Light Blonde Pearl Ash",
        "7/7 Medium Blonde Brown",
    ),
    "Schwarzkopf Igora Royal": (
        "9-1 Extra Light Blonde Cendre",
        "8-65 Light Blonde Chocolate Gold",
        "6-88 Dark Blonde Red Extra",
    ),
    "Goldwell Topchic": (
        "10V Pastel Violet Blonde",
        "8KG Light Copper Gold",
        "7N Mid Blonde",
    ),
}

AUTO_TARGET_DESCRIPTION = (
    "A beautiful, healthy, and professional hair color that enhances the "
    "client's features and corrects any issues found in the analysis."
)

_HEX_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class TargetColor:
    """
    Target color descriptor.

    Use the constructors (catalog, hex, auto) rather than building one
    directly; they enforce the catalog and hex format.
    """
    kind: str  # "catalog", "hex" or "auto"
    brand: Optional[str] = None
    shade: Optional[str] = None
    hex_color: Optional[str] = None

    @classmethod
    def catalog(cls, brand: str, shade: str) -> "TargetColor":
        """
        Target a catalog shade.

        Raises:
            ValueError: If the brand or shade is not in BRAND_CATALOG
        """
        shades = BRAND_CATALOG.get(brand)
        if shades is None:
            raise ValueError(f"Unknown brand: {brand}")
        if shade not in shades:
            raise ValueError(f"Unknown shade for {brand}: {shade}")
        return cls(kind="catalog", brand=brand, shade=shade)

    @classmethod
    def hex(cls, hex_color: str) -> "TargetColor":
        """
        Target a hex color (#RRGGBB).

        Raises:
            ValueError: If the string is not a 6-digit hex color
        """
        if not _HEX_PATTERN.match(hex_color or ""):
            raise ValueError(f"Invalid hex color: {hex_color!r}")
        return cls(kind="hex", hex_color=hex_color.upper())

    @classmethod
    def auto(cls) -> "TargetColor":
        """Default target used by the guided auto-plan flow."""
        return cls(kind="auto")

    @classmethod
    def default_catalog(cls) -> "TargetColor":
        """First shade of the first catalog brand."""
        brand = next(iter(BRAND_CATALOG))
        return cls.catalog(brand, BRAND_CATALOG[brand][0])

    def describe(self, auto_description: str = AUTO_TARGET_DESCRIPTION) -> str:
        """Render the target string handed to the plan generator."""
        if self.kind == "catalog":
            return f"{self.brand} {self.shade}"
        if self.kind == "hex":
            return self.hex_color or ""
        return auto_description

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind,
            "brand": self.brand,
            "shade": self.shade,
            "hex_color": self.hex_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetColor":
        """Create from dictionary, re-validating catalog and hex values."""
        kind = data.get("kind", "auto")
        if kind == "catalog":
            return cls.catalog(data.get("brand", ""), data.get("shade", ""))
        if kind == "hex":
            return cls.hex(data.get("hex_color", ""))
        return cls.auto()

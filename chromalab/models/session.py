"""
Stylist identity records and the explicit session value.

The session is handed to every orchestrator and workbench entry point
instead of being read from ambient global state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from chromalab.models.enums import StylistRole


@dataclass(frozen=True)
class StylistRecord:
    """Stylist record kept by the identity and record store."""
    uid: str
    email: Optional[str]
    display_name: Optional[str]
    role: StylistRole = StylistRole.STYLIST
    is_verified: bool = False
    license_ref: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def with_license(self, license_ref: str, is_verified: bool) -> "StylistRecord":
        """Return a copy with updated license status."""
        return replace(self, license_ref=license_ref, is_verified=is_verified)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "uid": self.uid,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role.value,
            "is_verified": self.is_verified,
            "license_ref": self.license_ref,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StylistRecord":
        """Create from dictionary."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            uid=data["uid"],
            email=data.get("email"),
            display_name=data.get("display_name"),
            role=StylistRole(data.get("role", StylistRole.STYLIST.value)),
            is_verified=data.get("is_verified", False),
            license_ref=data.get("license_ref"),
            created_at=created_at or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class StylistSession:
    """
    Explicit session value: who is signed in and whether they are verified.

    An anonymous session has no record.
    """
    record: Optional[StylistRecord] = None
    session_id: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "StylistSession":
        """Session with nobody signed in."""
        return cls()

    @property
    def is_authenticated(self) -> bool:
        """Check if someone is signed in."""
        return self.record is not None

    @property
    def is_verified(self) -> bool:
        """Check if the signed-in stylist has a verified license."""
        return self.record is not None and self.record.is_verified

    @property
    def user_id(self) -> Optional[str]:
        """Signed-in stylist uid."""
        return self.record.uid if self.record else None

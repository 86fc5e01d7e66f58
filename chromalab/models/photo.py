"""
Client photo models.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DisplayHandle:
    """
    Transient handle a presentation layer uses to show a photo.

    Allocated by DisplayHandleRegistry on ingestion and released when the
    photo is superseded or discarded.
    """
    handle_id: str
    url: str


@dataclass(frozen=True)
class Photo:
    """A user-supplied client photo held in memory for the active session."""
    payload: bytes = field(repr=False)
    content_type: str
    display_handle: DisplayHandle
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.payload)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (metadata only, never the payload)."""
        return {
            "filename": self.filename,
            "content_type": self.content_type,
            "size": self.size,
            "display_url": self.display_handle.url,
        }

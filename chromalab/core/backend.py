"""
Generative backend interface.

This module defines the abstract capability set the core consumes from a
generative model provider, along with the small result containers the
capabilities return. Analysis and plan generation return raw text; the
response validator turns that into records.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from chromalab.core.message import ChatMessage
from chromalab.models.analysis import HairAnalysis
from chromalab.models.enums import AspectRatio


@dataclass(frozen=True)
class GeneratedImage:
    """Image bytes produced by generation or editing."""
    data: bytes = field(repr=False)
    content_type: str = "image/png"

    @property
    def size(self) -> int:
        """Image size in bytes."""
        return len(self.data)


@dataclass(frozen=True)
class GroundingSource:
    """A web source cited by a grounded search answer."""
    title: str
    uri: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"title": self.title, "uri": self.uri}


@dataclass(frozen=True)
class GroundedSearchResult:
    """Answer text plus the sources it was grounded on."""
    text: str
    sources: List[GroundingSource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "sources": [s.to_dict() for s in self.sources],
        }


@dataclass(frozen=True)
class ContextPayload:
    """
    Everything the chat capability needs for one assistant turn.

    system_instruction embeds the plan (and analysis when known);
    messages is the bounded recent history, oldest first.
    """
    system_instruction: str
    messages: List[ChatMessage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "system_instruction": self.system_instruction,
            "messages": [m.to_dict() for m in self.messages],
        }


class GenerativeBackend(ABC):
    """
    Abstract generative backend.

    Implementations raise GenerativeBackendError subclasses on transport
    failure. They never validate the structure of what they return.
    """

    @abstractmethod
    async def analyze_photo(self, payload: bytes, content_type: str) -> str:
        """Diagnose hair from a photo. Returns raw generator text."""

    @abstractmethod
    async def generate_plan(self, analysis: HairAnalysis, target: str) -> str:
        """Formulate a color plan for an analysis and target. Returns raw text."""

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: AspectRatio = AspectRatio.SQUARE,
    ) -> GeneratedImage:
        """Generate an inspiration image from a prompt."""

    @abstractmethod
    async def edit_image(
        self,
        payload: bytes,
        content_type: str,
        prompt: str,
    ) -> GeneratedImage:
        """Edit a photo following a text instruction."""

    @abstractmethod
    async def search_with_grounding(self, query: str) -> GroundedSearchResult:
        """Answer a query grounded on web search results."""

    @abstractmethod
    async def chat(self, context: ContextPayload) -> str:
        """Produce the assistant's next reply for a context."""

    async def close(self) -> None:
        """Release transport resources. No-op by default."""

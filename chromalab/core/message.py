"""
Message types for the assistant conversation.

This module defines the message and conversation structures the
assistant uses to keep the stylist's chat history, and their
conversion to the generative backend's content format.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatRole(Enum):
    """Role of a conversation participant."""
    USER = "user"
    MODEL = "model"


@dataclass
class ChatMessage:
    """
    A single message in the assistant conversation.
    """
    role: ChatRole
    text: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)

    def to_llm_format(self) -> Dict[str, Any]:
        """Convert to the backend's content format."""
        return {
            "role": self.role.value,
            "parts": [{"text": self.text}],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        """Create from dictionary."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            role=ChatRole(data["role"]),
            text=data.get("text", ""),
            id=data.get("id") or str(uuid.uuid4()),
            created_at=created_at or _utcnow(),
        )

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        """Create a user message."""
        return cls(role=ChatRole.USER, text=text)

    @classmethod
    def model(cls, text: str) -> "ChatMessage":
        """Create a model (assistant) message."""
        return cls(role=ChatRole.MODEL, text=text)


@dataclass
class Conversation:
    """
    A conversation between the stylist and the assistant.

    Opened with the assistant's greeting. History is append-only;
    trimming to the most recent turns happens when the context is built.
    """
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def add_message(self, message: ChatMessage) -> None:
        """Add a message to the conversation."""
        self.messages.append(message)
        self.updated_at = _utcnow()

    def add_user_message(self, text: str) -> ChatMessage:
        """Add a user message and return it."""
        message = ChatMessage.user(text)
        self.add_message(message)
        return message

    def add_model_message(self, text: str) -> ChatMessage:
        """Add a model message and return it."""
        message = ChatMessage.model(text)
        self.add_message(message)
        return message

    def get_last_user_message(self) -> Optional[ChatMessage]:
        """Get the most recent user message."""
        for message in reversed(self.messages):
            if message.role == ChatRole.USER:
                return message
        return None

    def recent(self, limit: int) -> List[ChatMessage]:
        """Most recent messages, oldest first."""
        if limit <= 0:
            return []
        return list(self.messages[-limit:])

    def to_llm_messages(self) -> List[Dict[str, Any]]:
        """Convert the whole conversation to the backend's content format."""
        return [msg.to_llm_format() for msg in self.messages]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "messages": [msg.to_dict() for msg in self.messages],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def __len__(self) -> int:
        return len(self.messages)

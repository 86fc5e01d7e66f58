"""
Core components for the Chromalab assistant.

This module provides the foundational classes used across the package:
- Exceptions: Structured error handling
- Config / Settings: YAML configuration and environment settings
- Message: Assistant conversation definitions
- GenerativeBackend: Abstract generative capability set
- GeminiClient: Low-level Gemini REST client
"""

from chromalab.core.exceptions import (
    ChromalabError,
    ConfigError,
    GenerativeBackendError,
    BackendTimeoutError,
    BackendResponseError,
    RateLimitError,
    PhotoIngestionError,
    MalformedResponseError,
    StageError,
    AnalysisError,
    PlanError,
    OrchestrationError,
)
from chromalab.core.config import (
    ChromalabConfig,
    ModelProfile,
    load_config,
    get_config,
    get_model_profile,
    reset_config,
)
from chromalab.core.message import ChatMessage, ChatRole, Conversation
from chromalab.core.backend import (
    GenerativeBackend,
    GeneratedImage,
    GroundedSearchResult,
    GroundingSource,
    ContextPayload,
)
from chromalab.core.gemini_client import GeminiClient, GeminiResponse

__all__ = [
    # Exceptions
    "ChromalabError",
    "ConfigError",
    "GenerativeBackendError",
    "BackendTimeoutError",
    "BackendResponseError",
    "RateLimitError",
    "PhotoIngestionError",
    "MalformedResponseError",
    "StageError",
    "AnalysisError",
    "PlanError",
    "OrchestrationError",
    # Config
    "ChromalabConfig",
    "ModelProfile",
    "load_config",
    "get_config",
    "get_model_profile",
    "reset_config",
    # Message
    "ChatMessage",
    "ChatRole",
    "Conversation",
    # Backend
    "GenerativeBackend",
    "GeneratedImage",
    "GroundedSearchResult",
    "GroundingSource",
    "ContextPayload",
    # Transport
    "GeminiClient",
    "GeminiResponse",
]

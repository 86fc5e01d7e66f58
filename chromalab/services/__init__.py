"""
Services layer for the pipeline stages and the tools around them.

This layer sits between the orchestration layer and the generative
backend, handling:
- Photo ingestion and display handles
- Validation of generator payloads
- Analysis and planning stages
- Assistant context and conversation
- Image studio and grounded research
- Identity, sessions and license verification
"""
from chromalab.services.response_validator import (
    ResponseValidator,
    ValidationResult,
)
from chromalab.services.photo_ingestion_service import (
    PhotoIngestor,
    DisplayHandleRegistry,
    LocalPhotoFile,
    PhotoUpload,
)
from chromalab.services.analysis_service import AnalysisService
from chromalab.services.planning_service import PlanningService
from chromalab.services.assistant_context_service import (
    AssistantContextBuilder,
    AssistantContextConfig,
    build_context,
)
from chromalab.services.assistant_service import AssistantService, QuickAction
from chromalab.services.image_studio_service import ImageStudioService
from chromalab.services.research_service import ResearchService
from chromalab.services.identity_service import (
    IdentityProvider,
    InMemoryIdentityProvider,
    SessionTracker,
)
from chromalab.services.license_service import LicenseService

__all__ = [
    # Validation
    "ResponseValidator",
    "ValidationResult",
    # Ingestion
    "PhotoIngestor",
    "DisplayHandleRegistry",
    "LocalPhotoFile",
    "PhotoUpload",
    # Stages
    "AnalysisService",
    "PlanningService",
    # Assistant
    "AssistantContextBuilder",
    "AssistantContextConfig",
    "build_context",
    "AssistantService",
    "QuickAction",
    # Tools
    "ImageStudioService",
    "ResearchService",
    # Identity
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "SessionTracker",
    "LicenseService",
]

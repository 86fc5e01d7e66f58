"""
Structured exceptions for the Chromalab core.

This module defines a hierarchy of exceptions with error codes
for consistent error handling across ingestion, validation, the
pipeline stages and the orchestrator.
"""

from typing import Any, Dict, List, Optional

from chromalab.models.enums import ValidationFailureKind


class ChromalabError(Exception):
    """
    Base exception for all Chromalab errors.

    All custom exceptions inherit from this class, providing consistent
    error code, detail and user-facing message handling.
    """

    error_code: str = "CHROMALAB_ERROR"
    user_message: str = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message (for logs)
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for presentation layers."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigError(ChromalabError):
    """Raised when configuration is missing or invalid."""

    error_code = "CONFIG_ERROR"


# =============================================================================
# GENERATIVE BACKEND (TRANSPORT)
# =============================================================================


class GenerativeBackendError(ChromalabError):
    """
    Generative backend errors.

    Base class for errors raised while talking to the generative API.
    """

    error_code = "BACKEND_ERROR"
    user_message = "The AI service is unavailable right now. Please try again."


class BackendTimeoutError(GenerativeBackendError):
    """Raised when a backend call times out."""

    error_code = "BACKEND_TIMEOUT"


class BackendResponseError(GenerativeBackendError):
    """Raised when the backend returns an unusable HTTP response."""

    error_code = "BACKEND_RESPONSE_ERROR"


class RateLimitError(GenerativeBackendError):
    """
    Rate limit exceeded error.

    Includes retry-after information when the provider sends it.
    """

    error_code = "RATE_LIMIT_ERROR"

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        **kwargs,
    ):
        """
        Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retrying
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        if retry_after:
            self.details["retry_after"] = retry_after


# =============================================================================
# PHOTO INGESTION
# =============================================================================


class PhotoIngestionError(ChromalabError):
    """Base class for photo ingestion failures. User-correctable."""

    error_code = "INGESTION_ERROR"
    user_message = "Could not read the photo. Please try another image."


class EmptyInputError(PhotoIngestionError):
    """Raised when no file (or an empty file) was provided."""

    error_code = "EMPTY_INPUT"
    user_message = "Please choose a photo to upload."


class UnreadableFileError(PhotoIngestionError):
    """Raised when the binary read of the file fails."""

    error_code = "UNREADABLE_FILE"
    user_message = "An error occurred while reading the file."


class UnsupportedMediaTypeError(PhotoIngestionError):
    """Raised when the declared content type is not an image type."""

    error_code = "UNSUPPORTED_MEDIA_TYPE"
    user_message = "Please upload an image file."

    def __init__(self, message: str, content_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.content_type = content_type
        self.details["content_type"] = content_type


class PhotoTooLargeError(PhotoIngestionError):
    """Raised when a payload exceeds the configured size limit."""

    error_code = "PHOTO_TOO_LARGE"
    user_message = "File is too large. Please upload a smaller image."

    def __init__(self, message: str, size: int = 0, limit: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.size = size
        self.limit = limit
        self.details["size"] = size
        self.details["limit"] = limit


class HandleReleaseError(ChromalabError):
    """Raised when a display handle is released twice or is unknown."""

    error_code = "HANDLE_RELEASE_ERROR"


# =============================================================================
# RESPONSE VALIDATION
# =============================================================================


class MalformedResponseError(ChromalabError):
    """
    Generator output failed validation.

    Raised by the validator only. Stage services wrap it in their own
    format errors, so it never reaches the orchestrator unwrapped.
    """

    error_code = "MALFORMED_RESPONSE"
    kind: ValidationFailureKind = ValidationFailureKind.UNPARSEABLE

    def __init__(
        self,
        message: str,
        fields: Optional[List[str]] = None,
        **kwargs,
    ):
        """
        Initialize a validation error.

        Args:
            message: Error message
            fields: Offending field names, when known
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.fields = fields or []
        self.details["kind"] = self.kind.value
        if self.fields:
            self.details["fields"] = self.fields


class UnparseableResponseError(MalformedResponseError):
    """Payload is not a structured record at all."""

    error_code = "UNPARSEABLE_RESPONSE"
    kind = ValidationFailureKind.UNPARSEABLE


class IncompleteResponseError(MalformedResponseError):
    """Payload parsed but required fields are missing or mistyped."""

    error_code = "INCOMPLETE_RESPONSE"
    kind = ValidationFailureKind.SCHEMA_INCOMPLETE


# =============================================================================
# PIPELINE STAGES
# =============================================================================


class StageError(ChromalabError):
    """
    Base class for analysis and planning stage failures.

    Keeps the underlying cause so callers can log it and decide
    whether re-triggering the same operation is worthwhile.
    """

    error_code = "STAGE_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.cause = cause
        if cause is not None:
            self.details["cause"] = type(cause).__name__


class AnalysisError(StageError):
    """Base class for analysis stage failures."""

    error_code = "ANALYSIS_ERROR"
    user_message = "Analysis failed. Please try re-analyzing the photo."


class AnalysisFailedError(AnalysisError):
    """The analysis capability itself failed (transport, timeout, refusal)."""

    error_code = "ANALYSIS_FAILED"


class AnalysisFormatError(AnalysisError):
    """The analysis capability answered with a payload that failed validation."""

    error_code = "ANALYSIS_FORMAT_ERROR"
    retryable = True

    @property
    def kind(self) -> Optional[ValidationFailureKind]:
        """Validation failure kind of the wrapped cause."""
        return getattr(self.cause, "kind", None)


class PlanError(StageError):
    """Base class for planning stage failures."""

    error_code = "PLAN_ERROR"
    user_message = "Plan generation failed. Please try generating the plan again."


class PlanFailedError(PlanError):
    """The plan-generation capability itself failed."""

    error_code = "PLAN_FAILED"


class PlanFormatError(PlanError):
    """The plan-generation capability answered with an invalid payload."""

    error_code = "PLAN_FORMAT_ERROR"
    retryable = True

    @property
    def kind(self) -> Optional[ValidationFailureKind]:
        """Validation failure kind of the wrapped cause."""
        return getattr(self.cause, "kind", None)


# =============================================================================
# ORCHESTRATION AND ACCESS
# =============================================================================


class OrchestrationError(ChromalabError):
    """Base class for orchestrator precondition failures."""

    error_code = "ORCHESTRATION_ERROR"


class AnalysisRequiredError(OrchestrationError):
    """Raised when a plan is requested before any analysis exists."""

    error_code = "ANALYSIS_REQUIRED"
    user_message = "Please complete the hair analysis before generating a plan."


class PipelineBusyError(OrchestrationError):
    """Raised when a refinement is requested while the guided pipeline runs."""

    error_code = "PIPELINE_BUSY"
    user_message = "Please wait for the current analysis to finish."


class ContextNotReadyError(ChromalabError):
    """Raised when the assistant is asked for help without a color plan."""

    error_code = "CONTEXT_NOT_READY"
    user_message = "Generate a color plan before asking the assistant."


class VerificationRequiredError(ChromalabError):
    """Raised when professional tools are used without a verified license."""

    error_code = "VERIFICATION_REQUIRED"
    user_message = "Please verify your professional license to use this tool."


# =============================================================================
# STUDIO, RESEARCH AND ASSISTANT
# =============================================================================


class InvalidRequestError(ChromalabError):
    """Raised when a request is missing required user input."""

    error_code = "INVALID_REQUEST"

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.user_message = message


class ImageGenerationError(ChromalabError):
    """Raised when inspiration image generation fails."""

    error_code = "IMAGE_GENERATION_FAILED"
    user_message = "Failed to generate image."


class ImageEditError(ChromalabError):
    """Raised when editing the client photo fails."""

    error_code = "IMAGE_EDIT_FAILED"
    user_message = "Failed to edit image."


class ResearchError(ChromalabError):
    """Raised when grounded search fails."""

    error_code = "RESEARCH_FAILED"
    user_message = "Failed to perform search."


class AssistantError(ChromalabError):
    """Raised when the assistant chat capability fails."""

    error_code = "ASSISTANT_FAILED"
    user_message = "The assistant could not answer. Please ask again."


# =============================================================================
# IDENTITY
# =============================================================================


class IdentityError(ChromalabError):
    """Base class for identity and record-store failures."""

    error_code = "IDENTITY_ERROR"


class AuthenticationError(IdentityError):
    """Raised on invalid credentials."""

    error_code = "AUTHENTICATION_FAILED"
    user_message = "Invalid email or password."


class AccountExistsError(IdentityError):
    """Raised when signing up with an email that is already registered."""

    error_code = "ACCOUNT_EXISTS"
    user_message = "An account with this email already exists."


class UserRecordNotFoundError(IdentityError):
    """Raised when an identity has no stylist record."""

    error_code = "USER_RECORD_NOT_FOUND"


class LicenseSubmissionError(IdentityError):
    """Raised when a license upload is rejected."""

    error_code = "LICENSE_SUBMISSION_FAILED"

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.user_message = message

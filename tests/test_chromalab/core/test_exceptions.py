"""
Tests for the Chromalab exception hierarchy.
"""

import pytest

from chromalab.core.exceptions import (
    AnalysisError,
    AnalysisFailedError,
    AnalysisFormatError,
    ChromalabError,
    EmptyInputError,
    GenerativeBackendError,
    IncompleteResponseError,
    InvalidRequestError,
    LicenseSubmissionError,
    MalformedResponseError,
    PhotoIngestionError,
    PhotoTooLargeError,
    PipelineBusyError,
    PlanError,
    PlanFormatError,
    RateLimitError,
    StageError,
    UnparseableResponseError,
    UnsupportedMediaTypeError,
)
from chromalab.models.enums import ValidationFailureKind


class TestChromalabError:
    """Tests for the base exception."""

    def test_basic_exception(self):
        """Test basic exception creation."""
        error = ChromalabError("Test error")
        assert str(error) == "[CHROMALAB_ERROR] Test error"
        assert error.message == "Test error"
        assert error.error_code == "CHROMALAB_ERROR"
        assert error.details == {}

    def test_custom_error_code_and_details(self):
        """Test exception with custom code and details."""
        error = ChromalabError("Test", error_code="CUSTOM", details={"key": "value"})
        assert error.error_code == "CUSTOM"
        assert error.details == {"key": "value"}

    def test_to_dict(self):
        """Test exception serialization."""
        error = PipelineBusyError("Run in flight")
        result = error.to_dict()
        assert result == {
            "error": True,
            "error_code": "PIPELINE_BUSY",
            "message": "Run in flight",
            "user_message": "Please wait for the current analysis to finish.",
            "details": {},
        }


class TestBackendErrors:
    """Tests for generative backend errors."""

    def test_rate_limit_retry_after(self):
        """Test retry_after is kept on the error and in details."""
        error = RateLimitError("Slow down", retry_after=2.5)
        assert isinstance(error, GenerativeBackendError)
        assert error.retry_after == 2.5
        assert error.details["retry_after"] == 2.5

    def test_rate_limit_without_retry_after(self):
        """Test retry_after is optional."""
        error = RateLimitError("Slow down")
        assert error.retry_after is None
        assert "retry_after" not in error.details


class TestIngestionErrors:
    """Tests for photo ingestion errors."""

    def test_hierarchy(self):
        """Test ingestion errors share a base class."""
        assert issubclass(EmptyInputError, PhotoIngestionError)
        assert issubclass(UnsupportedMediaTypeError, PhotoIngestionError)
        assert issubclass(PhotoTooLargeError, PhotoIngestionError)

    def test_too_large_details(self):
        """Test size and limit are reported."""
        error = PhotoTooLargeError("Too big", size=11, limit=10)
        assert error.details == {"size": 11, "limit": 10}

    def test_unsupported_type_details(self):
        """Test the offending content type is reported."""
        error = UnsupportedMediaTypeError("Nope", content_type="application/pdf")
        assert error.content_type == "application/pdf"
        assert error.details["content_type"] == "application/pdf"


class TestValidationErrors:
    """Tests for malformed response errors."""

    def test_kinds(self):
        """Test each subclass carries its failure kind."""
        assert UnparseableResponseError("x").kind == ValidationFailureKind.UNPARSEABLE
        incomplete = IncompleteResponseError("x", fields=["path"])
        assert incomplete.kind == ValidationFailureKind.SCHEMA_INCOMPLETE
        assert incomplete.details == {"kind": "schema_incomplete", "fields": ["path"]}
        assert isinstance(incomplete, MalformedResponseError)


class TestStageErrors:
    """Tests for analysis and planning stage errors."""

    def test_cause_is_kept(self):
        """Test the underlying cause is recorded."""
        cause = TimeoutError("slow")
        error = AnalysisFailedError("Analysis failed", cause=cause)
        assert error.cause is cause
        assert error.details["cause"] == "TimeoutError"
        assert isinstance(error, AnalysisError)
        assert isinstance(error, StageError)

    def test_format_errors_are_retryable(self):
        """Test format errors are flagged retryable and expose the kind."""
        cause = IncompleteResponseError("missing steps", fields=["steps"])
        error = PlanFormatError("Plan invalid", cause=cause)
        assert error.retryable
        assert error.kind == ValidationFailureKind.SCHEMA_INCOMPLETE
        assert isinstance(error, PlanError)
        assert not AnalysisFailedError("x").retryable

    def test_format_error_without_cause(self):
        """Test kind is None when there is no cause."""
        assert AnalysisFormatError("x").kind is None

    def test_user_messages(self):
        """Test stage errors carry stage-specific user messages."""
        assert "re-analyzing" in AnalysisFailedError("x").user_message
        assert "generating the plan" in PlanFormatError("x").user_message


class TestUserFacingErrors:
    """Tests for errors whose message is shown to the user."""

    @pytest.mark.parametrize("error_cls", [InvalidRequestError, LicenseSubmissionError])
    def test_message_is_user_message(self, error_cls):
        """Test the message doubles as the user message."""
        error = error_cls("Please select a file to upload.")
        assert error.user_message == "Please select a file to upload."

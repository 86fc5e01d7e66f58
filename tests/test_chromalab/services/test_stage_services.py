"""
Tests for AnalysisService and PlanningService.
"""

import pytest

from chromalab.core.config import PipelineConfig
from chromalab.core.exceptions import (
    AnalysisFailedError,
    AnalysisFormatError,
    BackendTimeoutError,
    IncompleteResponseError,
    PlanFailedError,
    PlanFormatError,
    UnparseableResponseError,
)
from chromalab.models.analysis import HairAnalysis
from chromalab.models.enums import ValidationFailureKind
from chromalab.models.photo import DisplayHandle, Photo
from chromalab.models.target import TargetColor
from chromalab.services.planning_service import PlanningService


@pytest.fixture
def photo(sample_image_bytes):
    return Photo(
        payload=sample_image_bytes,
        content_type="image/jpeg",
        display_handle=DisplayHandle(handle_id="h1", url="chromalab://photo/h1"),
        filename="client.jpg",
    )


@pytest.fixture
def analysis(sample_analysis_payload):
    return HairAnalysis.from_dict(sample_analysis_payload)


class TestAnalysisService:
    """Tests for the analysis stage."""

    @pytest.mark.asyncio
    async def test_analyze_success(self, analysis_service, fake_backend, photo):
        """Test the photo payload is sent and the answer validated."""
        analysis = await analysis_service.analyze(photo)

        assert analysis.natural_level == "Level 6"
        fake_backend.analyze_photo.assert_awaited_once_with(photo.payload, "image/jpeg")

    @pytest.mark.asyncio
    async def test_backend_failure(self, analysis_service, fake_backend, photo):
        """Test backend errors become AnalysisFailedError with the cause."""
        cause = BackendTimeoutError("timed out")
        fake_backend.analyze_photo.side_effect = cause

        with pytest.raises(AnalysisFailedError) as exc_info:
            await analysis_service.analyze(photo)
        assert exc_info.value.cause is cause
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped(self, analysis_service, fake_backend, photo):
        """Test any backend exception is wrapped, not only typed ones."""
        fake_backend.analyze_photo.side_effect = RuntimeError("socket closed")

        with pytest.raises(AnalysisFailedError):
            await analysis_service.analyze(photo)

    @pytest.mark.asyncio
    async def test_format_failure(self, analysis_service, fake_backend, photo):
        """Test invalid payloads become AnalysisFormatError."""
        fake_backend.analyze_photo.return_value = "I can't see any hair."

        with pytest.raises(AnalysisFormatError) as exc_info:
            await analysis_service.analyze(photo)
        assert isinstance(exc_info.value.cause, UnparseableResponseError)
        assert exc_info.value.kind == ValidationFailureKind.UNPARSEABLE
        assert exc_info.value.retryable


class TestPlanningService:
    """Tests for the planning stage."""

    @pytest.mark.asyncio
    async def test_plan_catalog_target(self, planning_service, fake_backend, analysis):
        """Test catalog targets are described as brand and shade."""
        target = TargetColor.catalog("Redken Shades EQ", "09V Platinum Ice")

        plan = await planning_service.plan(analysis, target)

        assert plan.tone.shades == "9V"
        fake_backend.generate_plan.assert_awaited_once_with(
            analysis, "Redken Shades EQ 09V Platinum Ice"
        )

    @pytest.mark.asyncio
    async def test_plan_auto_target_uses_config(self, fake_backend, analysis):
        """Test the auto target uses the configured description."""
        service = PlanningService(
            fake_backend,
            config=PipelineConfig(settle_delay_seconds=0, auto_target_description="Natural and healthy"),
        )

        await service.plan(analysis, TargetColor.auto())

        fake_backend.generate_plan.assert_awaited_once_with(analysis, "Natural and healthy")

    @pytest.mark.asyncio
    async def test_backend_failure(self, planning_service, fake_backend, analysis):
        """Test backend errors become PlanFailedError."""
        fake_backend.generate_plan.side_effect = BackendTimeoutError("timed out")

        with pytest.raises(PlanFailedError):
            await planning_service.plan(analysis, TargetColor.auto())

    @pytest.mark.asyncio
    async def test_format_failure(self, planning_service, fake_backend, analysis):
        """Test a plan with no steps becomes PlanFormatError."""
        fake_backend.generate_plan.return_value = '{"path": "corrective", "steps": []}'

        with pytest.raises(PlanFormatError) as exc_info:
            await planning_service.plan(analysis, TargetColor.auto())
        assert isinstance(exc_info.value.cause, IncompleteResponseError)

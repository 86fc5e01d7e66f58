"""
Analysis Service.

Runs the hair-analysis stage: photo in, validated HairAnalysis out.
"""

from typing import Optional

from chromalab.core.backend import GenerativeBackend
from chromalab.core.exceptions import (
    AnalysisFailedError,
    AnalysisFormatError,
    MalformedResponseError,
)
from chromalab.models.analysis import HairAnalysis
from chromalab.models.photo import Photo
from chromalab.services.response_validator import ResponseValidator
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class AnalysisService:
    """
    Hair analysis stage.

    One backend call, then validation. No retries and no caching:
    re-triggering is the caller's decision.
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        validator: Optional[ResponseValidator] = None,
    ):
        self.backend = backend
        self.validator = validator or ResponseValidator()

    async def analyze(self, photo: Photo) -> HairAnalysis:
        """
        Analyze a client photo.

        Raises:
            AnalysisFailedError: The backend call failed
            AnalysisFormatError: The backend answered with an invalid payload
        """
        try:
            raw = await self.backend.analyze_photo(photo.payload, photo.content_type)
        except Exception as e:
            logger.error(
                "Analysis backend call failed",
                error=str(e),
                error_type=type(e).__name__,
                filename=photo.filename,
            )
            raise AnalysisFailedError(
                f"Analysis request failed: {e}", cause=e
            ) from e

        try:
            analysis = self.validator.validate_analysis(raw)
        except MalformedResponseError as e:
            logger.warning(
                "Analysis response failed validation",
                kind=e.kind.value,
                fields=e.fields,
                error=e.message,
            )
            raise AnalysisFormatError(
                f"Analysis returned an unexpected format: {e.message}", cause=e
            ) from e

        logger.info(
            "Hair analysis completed",
            natural_level=analysis.natural_level,
            porosity=analysis.porosity,
        )
        return analysis

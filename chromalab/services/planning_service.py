"""
Planning Service.

Runs the formulation stage: analysis plus target in, validated
ColorPlan out.
"""

from typing import Optional

from chromalab.core.backend import GenerativeBackend
from chromalab.core.config import PipelineConfig, get_config
from chromalab.core.exceptions import (
    MalformedResponseError,
    PlanFailedError,
    PlanFormatError,
)
from chromalab.models.analysis import HairAnalysis
from chromalab.models.plan import ColorPlan
from chromalab.models.target import TargetColor
from chromalab.services.response_validator import ResponseValidator
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class PlanningService:
    """
    Color plan stage.

    The target is rendered to text with TargetColor.describe(); the auto
    target uses the configured auto_target_description.
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        validator: Optional[ResponseValidator] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.backend = backend
        self.validator = validator or ResponseValidator()
        self.config = config or get_config().pipeline

    async def plan(self, analysis: HairAnalysis, target: TargetColor) -> ColorPlan:
        """
        Generate a color plan.

        Raises:
            PlanFailedError: The backend call failed
            PlanFormatError: The backend answered with an invalid payload
        """
        target_text = target.describe(self.config.auto_target_description)

        try:
            raw = await self.backend.generate_plan(analysis, target_text)
        except Exception as e:
            logger.error(
                "Plan backend call failed",
                error=str(e),
                error_type=type(e).__name__,
                target_kind=target.kind,
            )
            raise PlanFailedError(
                f"Plan request failed: {e}", cause=e
            ) from e

        try:
            plan = self.validator.validate_plan(raw)
        except MalformedResponseError as e:
            logger.warning(
                "Plan response failed validation",
                kind=e.kind.value,
                fields=e.fields,
                error=e.message,
            )
            raise PlanFormatError(
                f"Plan returned an unexpected format: {e.message}", cause=e
            ) from e

        logger.info(
            "Color plan generated",
            target_kind=target.kind,
            steps=len(plan.steps),
            sections=plan.sections,
        )
        return plan

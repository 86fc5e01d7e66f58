"""
Auto-plan orchestrator.

Drives the guided pipeline (photo -> analysis -> plan) as a state machine
and offers two refinement paths that bypass it: regenerating the plan for
a new target, and re-analyzing a new photo.

The guided run is destructive: it clears prior results before starting.
Refinements are not: on failure the existing photo, analysis and plan are
left exactly as they were.

Each guided run takes a new run id. After every await the run compares its
id with the current one and drops its result if a newer run (or a reset)
has started in the meantime. Refinements use a second counter the same way.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from chromalab.core.config import PipelineConfig, get_config
from chromalab.core.exceptions import (
    AnalysisError,
    AnalysisRequiredError,
    PipelineBusyError,
    PlanError,
    StageError,
)
from chromalab.models.analysis import HairAnalysis
from chromalab.models.enums import AutoPlanState, OrchestratorEventKind
from chromalab.models.events import AutoPlanOutcome, OrchestratorEvent
from chromalab.models.photo import Photo
from chromalab.models.plan import ColorPlan
from chromalab.models.session import StylistSession
from chromalab.models.target import TargetColor
from chromalab.services.analysis_service import AnalysisService
from chromalab.services.photo_ingestion_service import PhotoIngestor
from chromalab.services.planning_service import PlanningService
from chromalab.utils.logger import get_logger, set_correlation_context

logger = get_logger(__name__)

EventListener = Callable[[OrchestratorEvent], None]


class AutoPlanOrchestrator:
    """
    State machine for the guided auto-plan flow.

    Callers are expected to have checked the session with require_verified
    before invoking any operation; the orchestrator does not check it.

    The orchestrator owns the photos handed to it and releases their
    display handles when they are superseded, rejected or reset.

    Usage:
        orchestrator = AutoPlanOrchestrator(analysis_service, planning_service, ingestor)
        unsubscribe = orchestrator.subscribe(on_event)
        outcome = await orchestrator.run_auto_plan(session, photo)
        plan = await orchestrator.regenerate_plan(session, TargetColor.hex("#C0FFEE"))
    """

    def __init__(
        self,
        analysis_service: AnalysisService,
        planning_service: PlanningService,
        ingestor: PhotoIngestor,
        config: Optional[PipelineConfig] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            analysis_service: Analysis stage
            planning_service: Planning stage
            ingestor: Ingestor whose registry issued the photos' handles
            config: Pipeline settings (from get_config() if None)
        """
        self.analysis_service = analysis_service
        self.planning_service = planning_service
        self.ingestor = ingestor
        self.config = config or get_config().pipeline

        self._state = AutoPlanState.IDLE
        self._photo: Optional[Photo] = None
        self._analysis: Optional[HairAnalysis] = None
        self._plan: Optional[ColorPlan] = None
        self._target: TargetColor = TargetColor.auto()
        self._error: Optional[str] = None
        self._error_code: Optional[str] = None
        self._is_auto_planned = False

        self._run_id = 0
        self._refinement_id = 0
        self._plan_busy_token: Optional[Tuple[int, int]] = None
        self._reanalyze_token: Optional[Tuple[int, int]] = None

        self._listeners: List[EventListener] = []

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> AutoPlanState:
        return self._state

    @property
    def photo(self) -> Optional[Photo]:
        return self._photo

    @property
    def analysis(self) -> Optional[HairAnalysis]:
        return self._analysis

    @property
    def plan(self) -> Optional[ColorPlan]:
        return self._plan

    @property
    def target(self) -> TargetColor:
        """Target the current plan was generated against."""
        return self._target

    @property
    def error(self) -> Optional[str]:
        """User-facing message of the last guided-run failure."""
        return self._error

    @property
    def error_code(self) -> Optional[str]:
        return self._error_code

    @property
    def run_id(self) -> int:
        """Id of the most recent guided run (0 before the first)."""
        return self._run_id

    @property
    def is_auto_planned(self) -> bool:
        """True while the stored plan comes from the guided flow."""
        return self._is_auto_planned

    @property
    def is_plan_busy(self) -> bool:
        return self._plan_busy_token is not None

    @property
    def is_reanalyzing(self) -> bool:
        return self._reanalyze_token is not None

    def snapshot(self) -> Dict[str, Any]:
        """Current state as a dictionary for presentation layers."""
        return {
            "state": self._state.value,
            "run_id": self._run_id,
            "photo": self._photo.to_dict() if self._photo else None,
            "analysis": self._analysis.to_dict() if self._analysis else None,
            "plan": self._plan.to_dict() if self._plan else None,
            "target": self._target.to_dict(),
            "error": self._error,
            "error_code": self._error_code,
            "is_auto_planned": self._is_auto_planned,
            "is_plan_busy": self.is_plan_busy,
            "is_reanalyzing": self.is_reanalyzing,
        }

    # =========================================================================
    # EVENTS
    # =========================================================================

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register an event listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: OrchestratorEventKind, **kwargs: Any) -> None:
        event = OrchestratorEvent(
            kind=kind,
            state=self._state,
            run_id=self._run_id,
            **kwargs,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Orchestrator event listener failed", event_kind=kind.value)

    def _set_state(self, state: AutoPlanState) -> None:
        previous = self._state
        self._state = state
        logger.info(
            "Auto-plan state changed",
            from_state=previous.value,
            to_state=state.value,
        )
        self._emit(OrchestratorEventKind.STATE_CHANGED)

    # =========================================================================
    # GUIDED PIPELINE
    # =========================================================================

    async def run_auto_plan(self, session: StylistSession, photo: Photo) -> AutoPlanOutcome:
        """
        Run the guided pipeline for a new photo.

        Supersedes any run in flight and any pending refinement. Prior
        photo, analysis, plan and error are discarded before starting.
        Stage failures end in the ERROR state and are reported in the
        outcome rather than raised.
        """
        self._run_id += 1
        self._refinement_id += 1
        run_id = self._run_id
        self._plan_busy_token = None
        self._reanalyze_token = None

        set_correlation_context(
            session_id=session.session_id,
            run_id=run_id,
            user_id=session.user_id,
        )
        logger.info("Auto-plan run started", filename=photo.filename)

        self._replace_photo(photo)
        self._analysis = None
        self._plan = None
        self._error = None
        self._error_code = None
        self._is_auto_planned = False
        self._target = TargetColor.auto()
        self._set_state(AutoPlanState.PROCESSING)

        await asyncio.sleep(self.config.settle_delay_seconds)
        if self._is_stale_run(run_id):
            return self._superseded(run_id)

        self._set_state(AutoPlanState.ANALYZING)
        try:
            analysis = await self.analysis_service.analyze(photo)
        except AnalysisError as e:
            if self._is_stale_run(run_id):
                return self._superseded(run_id)
            return self._fail_run(run_id, e)
        if self._is_stale_run(run_id):
            return self._superseded(run_id)

        self._analysis = analysis
        self._emit(OrchestratorEventKind.ANALYSIS_READY, analysis=analysis)
        self._set_state(AutoPlanState.PLANNING)

        try:
            plan = await self.planning_service.plan(analysis, self._target)
        except PlanError as e:
            if self._is_stale_run(run_id):
                return self._superseded(run_id)
            return self._fail_run(run_id, e)
        if self._is_stale_run(run_id):
            return self._superseded(run_id)

        self._plan = plan
        self._is_auto_planned = True
        self._emit(OrchestratorEventKind.PLAN_READY, plan=plan)
        self._set_state(AutoPlanState.DONE)
        self._emit(OrchestratorEventKind.AUTO_PLAN_COMPLETED, analysis=analysis, plan=plan)
        logger.info("Auto-plan run completed", steps=len(plan.steps))

        return AutoPlanOutcome(
            run_id=run_id,
            state=AutoPlanState.DONE,
            analysis=analysis,
            plan=plan,
        )

    def _is_stale_run(self, run_id: int) -> bool:
        return run_id != self._run_id

    def _superseded(self, run_id: int) -> AutoPlanOutcome:
        logger.info(
            "Discarding superseded auto-plan result",
            stale_run_id=run_id,
            current_run_id=self._run_id,
        )
        return AutoPlanOutcome(run_id=run_id, state=self._state, superseded=True)

    def _fail_run(self, run_id: int, error: StageError) -> AutoPlanOutcome:
        self._error = error.user_message
        self._error_code = error.error_code
        logger.error(
            "Auto-plan run failed",
            error=str(error),
            error_code=error.error_code,
            retryable=error.retryable,
        )
        self._set_state(AutoPlanState.ERROR)
        self._emit(
            OrchestratorEventKind.PIPELINE_FAILED,
            analysis=self._analysis,
            error=self._error,
            error_code=self._error_code,
        )
        return AutoPlanOutcome(
            run_id=run_id,
            state=AutoPlanState.ERROR,
            analysis=self._analysis,
            error=self._error,
        )

    # =========================================================================
    # REFINEMENTS
    # =========================================================================

    async def regenerate_plan(
        self,
        session: StylistSession,
        target: TargetColor,
    ) -> Optional[ColorPlan]:
        """
        Generate a new plan for the stored analysis and a new target.

        Returns:
            The new plan, or None if a newer operation superseded this one

        Raises:
            PipelineBusyError: The guided pipeline is running
            AnalysisRequiredError: No analysis is stored
            PlanError: Planning failed (photo, analysis and plan unchanged)
        """
        if self._state.is_running:
            raise PipelineBusyError("Cannot regenerate the plan while the auto-plan is running")
        if self._analysis is None:
            raise AnalysisRequiredError("Cannot regenerate a plan without an analysis")

        token = self._next_refinement_token()
        self._plan_busy_token = token
        analysis = self._analysis
        set_correlation_context(session_id=session.session_id, user_id=session.user_id)
        logger.info("Plan regeneration started", target_kind=target.kind)
        self._emit(OrchestratorEventKind.REFINEMENT_STARTED)

        try:
            plan = await self.planning_service.plan(analysis, target)
        except PlanError as e:
            if self._is_stale_refinement(token):
                logger.info("Discarding superseded plan regeneration failure")
                return None
            self._fail_refinement(e)
            raise
        finally:
            if self._plan_busy_token == token:
                self._plan_busy_token = None

        if self._is_stale_refinement(token):
            logger.info("Discarding superseded plan regeneration result")
            return None

        self._plan = plan
        self._target = target
        self._is_auto_planned = False
        self._emit(OrchestratorEventKind.PLAN_READY, plan=plan)
        return plan

    async def reanalyze_photo(
        self,
        session: StylistSession,
        photo: Photo,
        target: Optional[TargetColor] = None,
    ) -> Optional[ColorPlan]:
        """
        Analyze a new photo and re-plan, replacing photo, analysis and plan
        together only if both stages succeed.

        Args:
            session: Current stylist session
            photo: New photo (ownership passes to the orchestrator)
            target: Target to plan against (defaults to the current target)

        Returns:
            The new plan, or None if a newer operation superseded this one

        Raises:
            PipelineBusyError: The guided pipeline is running
            StageError: Analysis or planning failed (prior state unchanged)
        """
        if self._state.is_running:
            self._discard(photo)
            raise PipelineBusyError("Cannot re-analyze while the auto-plan is running")

        target = target or self._target
        token = self._next_refinement_token()
        self._reanalyze_token = token
        set_correlation_context(session_id=session.session_id, user_id=session.user_id)
        logger.info("Re-analysis started", filename=photo.filename, target_kind=target.kind)
        self._emit(OrchestratorEventKind.REFINEMENT_STARTED)

        try:
            analysis = await self.analysis_service.analyze(photo)
            if self._is_stale_refinement(token):
                self._discard(photo)
                logger.info("Discarding superseded re-analysis result")
                return None
            plan = await self.planning_service.plan(analysis, target)
        except StageError as e:
            self._discard(photo)
            if self._is_stale_refinement(token):
                logger.info("Discarding superseded re-analysis failure")
                return None
            self._fail_refinement(e)
            raise
        finally:
            if self._reanalyze_token == token:
                self._reanalyze_token = None

        if self._is_stale_refinement(token):
            self._discard(photo)
            logger.info("Discarding superseded re-analysis result")
            return None

        self._replace_photo(photo)
        self._analysis = analysis
        self._plan = plan
        self._target = target
        self._is_auto_planned = False
        self._emit(OrchestratorEventKind.ANALYSIS_READY, analysis=analysis)
        self._emit(OrchestratorEventKind.PLAN_READY, plan=plan)
        return plan

    def _next_refinement_token(self) -> Tuple[int, int]:
        self._refinement_id += 1
        return (self._run_id, self._refinement_id)

    def _is_stale_refinement(self, token: Tuple[int, int]) -> bool:
        return token != (self._run_id, self._refinement_id)

    def _fail_refinement(self, error: StageError) -> None:
        logger.error(
            "Refinement failed",
            error=str(error),
            error_code=error.error_code,
            retryable=error.retryable,
        )
        self._emit(
            OrchestratorEventKind.REFINEMENT_FAILED,
            error=error.user_message,
            error_code=error.error_code,
        )

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def reset(self) -> None:
        """Discard photo, analysis, plan and error and return to IDLE."""
        self._run_id += 1
        self._refinement_id += 1
        self._plan_busy_token = None
        self._reanalyze_token = None

        self._replace_photo(None)
        self._analysis = None
        self._plan = None
        self._error = None
        self._error_code = None
        self._is_auto_planned = False
        self._target = TargetColor.auto()
        self._set_state(AutoPlanState.IDLE)
        self._emit(OrchestratorEventKind.RESET)

    async def close(self) -> None:
        """Reset and drop all listeners."""
        self.reset()
        self._listeners.clear()

    def _replace_photo(self, photo: Optional[Photo]) -> None:
        previous = self._photo
        self._photo = photo
        if previous is not None and (
            photo is None or previous.display_handle != photo.display_handle
        ):
            self._release(previous)

    def _discard(self, photo: Photo) -> None:
        """Release a photo that was handed in but not kept."""
        if self._photo is not None and self._photo.display_handle == photo.display_handle:
            return
        # A stored photo handed back in may already have been released by
        # reset() or a newer run while this call was in flight.
        if self.ingestor.registry.is_active(photo.display_handle):
            self._release(photo)

    def _release(self, photo: Photo) -> None:
        self.ingestor.release(photo)

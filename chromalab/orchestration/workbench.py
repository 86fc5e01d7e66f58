"""
Workbench facade.

Single entry point a presentation layer talks to. Wires ingestion, the
auto-plan orchestrator, the studio, research and assistant services and
the identity collaborators together, and checks the session with
require_verified before every professional tool.
"""

from typing import Optional, Union

from chromalab.core.backend import GeneratedImage, GenerativeBackend, GroundedSearchResult
from chromalab.core.config import ChromalabConfig, get_config
from chromalab.core.message import ChatMessage, Conversation
from chromalab.models.enums import AspectRatio, OrchestratorEventKind
from chromalab.models.events import AutoPlanOutcome, OrchestratorEvent
from chromalab.models.plan import ColorPlan
from chromalab.models.session import StylistRecord, StylistSession
from chromalab.models.target import TargetColor
from chromalab.orchestration.access import require_verified
from chromalab.orchestration.auto_plan_orchestrator import AutoPlanOrchestrator
from chromalab.services.analysis_service import AnalysisService
from chromalab.services.assistant_service import AssistantService, QuickAction
from chromalab.services.identity_service import (
    IdentityProvider,
    InMemoryIdentityProvider,
    SessionTracker,
)
from chromalab.services.image_studio_service import ImageStudioService
from chromalab.services.license_service import LicenseService
from chromalab.services.photo_ingestion_service import (
    DisplayHandleRegistry,
    PhotoIngestor,
    PhotoUpload,
)
from chromalab.services.planning_service import PlanningService
from chromalab.services.research_service import ResearchService
from chromalab.services.response_validator import ResponseValidator
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class Workbench:
    """
    Facade over the Chromalab core for one stylist workspace.

    Usage:
        async with Workbench(GeminiBackend()) as workbench:
            workbench.start()
            await workbench.identity.sign_in(email, password)
            outcome = await workbench.upload_photo(workbench.session, upload)
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        identity: Optional[IdentityProvider] = None,
        config: Optional[ChromalabConfig] = None,
        registry: Optional[DisplayHandleRegistry] = None,
    ):
        self.backend = backend
        self.config = config or get_config()

        self.ingestor = PhotoIngestor(registry, self.config.ingestion)
        validator = ResponseValidator()
        self.orchestrator = AutoPlanOrchestrator(
            AnalysisService(backend, validator),
            PlanningService(backend, validator, self.config.pipeline),
            self.ingestor,
            self.config.pipeline,
        )
        self.studio = ImageStudioService(backend)
        self.research_service = ResearchService(backend)
        self.assistant = AssistantService(backend, config=self.config.assistant)

        self.identity = identity or InMemoryIdentityProvider()
        self.sessions = SessionTracker(self.identity)
        self.licenses = LicenseService(self.identity, self.config.license)

        self._conversation: Optional[Conversation] = None
        self._unsubscribe = self.orchestrator.subscribe(self._on_orchestrator_event)

    @property
    def session(self) -> StylistSession:
        """Current session as tracked from the identity provider."""
        return self.sessions.session

    @property
    def conversation(self) -> Optional[Conversation]:
        """Assistant conversation for the current plan, if opened."""
        return self._conversation

    def start(self) -> None:
        """Start following auth-state changes."""
        self.sessions.start()

    # =========================================================================
    # PIPELINE
    # =========================================================================

    async def upload_photo(
        self,
        session: StylistSession,
        upload: Optional[PhotoUpload],
    ) -> AutoPlanOutcome:
        """
        Ingest a photo and run the guided auto-plan pipeline on it.

        Raises:
            VerificationRequiredError: Session not verified
            PhotoIngestionError: The upload was rejected (state untouched)
        """
        require_verified(session)
        photo = await self.ingestor.ingest(upload)
        return await self.orchestrator.run_auto_plan(session, photo)

    async def regenerate_plan(
        self,
        session: StylistSession,
        target: TargetColor,
    ) -> Optional[ColorPlan]:
        """Regenerate the plan for a new target. See AutoPlanOrchestrator."""
        require_verified(session)
        return await self.orchestrator.regenerate_plan(session, target)

    async def reanalyze_photo(
        self,
        session: StylistSession,
        upload: Optional[PhotoUpload],
        target: Optional[TargetColor] = None,
    ) -> Optional[ColorPlan]:
        """Ingest a new photo and re-run analysis and planning on it."""
        require_verified(session)
        photo = await self.ingestor.ingest(upload)
        return await self.orchestrator.reanalyze_photo(session, photo, target)

    def reset(self, session: StylistSession) -> None:
        """Start over: discard photo, analysis, plan and conversation."""
        require_verified(session)
        self.orchestrator.reset()

    # =========================================================================
    # ASSISTANT
    # =========================================================================

    def open_assistant(self, session: StylistSession) -> Conversation:
        """Open (or return) the assistant conversation for the current plan."""
        require_verified(session)
        if self._conversation is None:
            self._conversation = self.assistant.open_conversation(user_id=session.user_id)
        return self._conversation

    async def ask_assistant(
        self,
        session: StylistSession,
        question: str,
        explain_reasoning: bool = False,
    ) -> ChatMessage:
        """Ask the assistant about the current plan."""
        conversation = self.open_assistant(session)
        return await self.assistant.ask(
            conversation,
            question,
            self.orchestrator.plan,
            self.orchestrator.analysis,
            explain_reasoning=explain_reasoning,
        )

    async def run_quick_action(
        self,
        session: StylistSession,
        action: QuickAction,
        explain_reasoning: bool = False,
    ) -> ChatMessage:
        """Send one of the assistant quick actions."""
        conversation = self.open_assistant(session)
        return await self.assistant.run_quick_action(
            conversation,
            action,
            self.orchestrator.plan,
            self.orchestrator.analysis,
            explain_reasoning=explain_reasoning,
        )

    def _on_orchestrator_event(self, event: OrchestratorEvent) -> None:
        # Conversation is grounded on one plan
        if event.kind in (OrchestratorEventKind.PLAN_READY, OrchestratorEventKind.RESET):
            self._conversation = None

    # =========================================================================
    # STUDIO AND RESEARCH
    # =========================================================================

    async def generate_inspiration(
        self,
        session: StylistSession,
        prompt: str,
        aspect_ratio: Union[AspectRatio, str] = AspectRatio.SQUARE,
    ) -> GeneratedImage:
        require_verified(session)
        return await self.studio.generate_inspiration(prompt, aspect_ratio)

    async def edit_photo(self, session: StylistSession, prompt: str) -> GeneratedImage:
        """Edit the current client photo."""
        require_verified(session)
        return await self.studio.edit_photo(self.orchestrator.photo, prompt)

    async def research(self, session: StylistSession, query: str) -> GroundedSearchResult:
        require_verified(session)
        return await self.research_service.search(query)

    # =========================================================================
    # LICENSE
    # =========================================================================

    async def submit_license(
        self,
        session: StylistSession,
        upload: Optional[PhotoUpload],
    ) -> StylistRecord:
        """Submit a license for review. Does not require verification."""
        record = await self.licenses.submit_license(session, upload)
        await self.sessions.refresh()
        return record

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    async def close(self) -> None:
        """Release photos, stop session tracking and close the backend."""
        self._unsubscribe()
        await self.orchestrator.close()
        self.sessions.stop()
        await self.backend.close()
        logger.info(
            "Workbench closed",
            active_handles=self.ingestor.registry.active_count,
        )

    async def __aenter__(self) -> "Workbench":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

"""
Assistant Service.

Conversational guidance while the stylist executes a plan. Keeps the
conversation, grounds every turn on the current plan through the
context builder, and offers quick actions for common questions.
"""

from enum import Enum
from typing import Optional

from chromalab.core.backend import GenerativeBackend
from chromalab.core.config import AssistantConfig, get_config
from chromalab.core.exceptions import (
    AssistantError,
    ContextNotReadyError,
    InvalidRequestError,
)
from chromalab.core.message import ChatMessage, Conversation
from chromalab.models.analysis import HairAnalysis
from chromalab.models.plan import ColorPlan
from chromalab.services.assistant_context_service import (
    AssistantContextBuilder,
    AssistantContextConfig,
)
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class QuickAction(Enum):
    """One-tap assistant questions."""
    ADJUST_DEVELOPER = "Adjust Developer"
    SWAP_TONER = "Swap Toner"
    SUGGEST_AFTERCARE = "Suggest Aftercare"

    @property
    def prompt(self) -> str:
        """Question sent on the stylist's behalf."""
        return _QUICK_ACTION_PROMPTS[self]


_QUICK_ACTION_PROMPTS = {
    QuickAction.ADJUST_DEVELOPER: (
        "Should I adjust the developer volume in this plan for my client's "
        "hair? Explain when a lower or higher volume would be safer."
    ),
    QuickAction.SWAP_TONER: (
        "If I don't have the toner in this plan, what should I look for in "
        "a substitute so the result stays on target?"
    ),
    QuickAction.SUGGEST_AFTERCARE: (
        "What aftercare should I recommend to my client after this color "
        "service?"
    ),
}


class AssistantService:
    """
    Assistant chat service.

    Usage:
        assistant = AssistantService(backend)
        conversation = assistant.open_conversation(user_id=session.user_id)
        reply = await assistant.ask(conversation, "Can I use 30 vol?", plan, analysis)
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        context_builder: Optional[AssistantContextBuilder] = None,
        config: Optional[AssistantConfig] = None,
    ):
        self.backend = backend
        self.config = config or get_config().assistant
        self.context_builder = context_builder or AssistantContextBuilder(
            AssistantContextConfig.from_assistant_config(self.config)
        )

    def open_conversation(self, user_id: Optional[str] = None) -> Conversation:
        """Start a conversation with the assistant's greeting."""
        conversation = Conversation(user_id=user_id)
        conversation.add_model_message(self.config.greeting)
        return conversation

    async def ask(
        self,
        conversation: Conversation,
        question: str,
        plan: Optional[ColorPlan],
        analysis: Optional[HairAnalysis] = None,
        explain_reasoning: bool = False,
    ) -> ChatMessage:
        """
        Ask the assistant a question about the current plan.

        The user turn is recorded before the backend is called, so a failed
        call leaves it in the conversation without a reply.

        Raises:
            InvalidRequestError: Empty question
            ContextNotReadyError: No plan to ground the answer on
            AssistantError: The chat capability failed
        """
        question = (question or "").strip()
        if not question:
            raise InvalidRequestError("Please enter a question.")
        if plan is None:
            raise ContextNotReadyError("Cannot ask the assistant without a color plan")

        conversation.add_user_message(question)
        context = self.context_builder.build_context(
            plan, analysis, conversation, explain_reasoning=explain_reasoning
        )

        try:
            reply = await self.backend.chat(context)
        except Exception as e:
            logger.error(
                "Assistant chat failed",
                error=str(e),
                error_type=type(e).__name__,
                conversation_id=conversation.id,
            )
            raise AssistantError(f"Assistant chat failed: {e}") from e

        reply = (reply or "").strip()
        if not reply:
            raise AssistantError("Assistant returned an empty reply")

        logger.info(
            "Assistant replied",
            conversation_id=conversation.id,
            turns=len(conversation),
            explain_reasoning=explain_reasoning,
        )
        return conversation.add_model_message(reply)

    async def run_quick_action(
        self,
        conversation: Conversation,
        action: QuickAction,
        plan: Optional[ColorPlan],
        analysis: Optional[HairAnalysis] = None,
        explain_reasoning: bool = False,
    ) -> ChatMessage:
        """Ask one of the predefined quick-action questions."""
        return await self.ask(
            conversation,
            action.prompt,
            plan,
            analysis,
            explain_reasoning=explain_reasoning,
        )

"""
Assistant Context Service.

Builds the grounding payload for the assistant chat: a system instruction
embedding the current plan (and analysis, when known) and the most recent
turns of the conversation.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
import json

from chromalab.core.backend import ContextPayload
from chromalab.core.config import AssistantConfig, get_config
from chromalab.core.exceptions import ContextNotReadyError
from chromalab.core.message import ChatMessage, Conversation
from chromalab.models.analysis import HairAnalysis
from chromalab.models.plan import ColorPlan


@dataclass
class AssistantContextConfig:
    """Configuration for context building."""
    max_history_turns: int = 20

    @classmethod
    def from_assistant_config(cls, config: AssistantConfig) -> "AssistantContextConfig":
        return cls(max_history_turns=config.max_history_turns)


class AssistantContextBuilder:
    """
    Builds ContextPayload values. Pure: no I/O, no state between calls.
    """

    BASE_INSTRUCTION = (
        "You are Chromalab Assistant, a senior hair color educator guiding a "
        "licensed stylist through the color plan below while they work. "
        "Answer concisely and practically. Only discuss steps, products, "
        "ratios, developers and timings that appear in the plan. Do not "
        "introduce new steps or products; if the stylist asks for something "
        "outside the plan, say so and suggest regenerating the plan."
    )

    EXPLAIN_INSTRUCTION = (
        "Teach-me-why mode is on: after each answer, briefly explain the "
        "color chemistry behind it (underlying pigment, lift, developer "
        "strength, porosity)."
    )

    def __init__(self, config: Optional[AssistantContextConfig] = None):
        if config is None:
            config = AssistantContextConfig.from_assistant_config(get_config().assistant)
        self.config = config

    def build_context(
        self,
        plan: Optional[ColorPlan],
        analysis: Optional[HairAnalysis],
        history: Union[Conversation, Sequence[ChatMessage], None],
        explain_reasoning: bool = False,
    ) -> ContextPayload:
        """
        Build the chat context for one assistant turn.

        Args:
            plan: Current color plan (required)
            analysis: Current analysis, if any
            history: Conversation or message list, oldest first
            explain_reasoning: Add the teach-me-why instruction

        Raises:
            ContextNotReadyError: If there is no plan
        """
        if plan is None:
            raise ContextNotReadyError("Cannot build assistant context without a color plan")

        sections = [
            self.BASE_INSTRUCTION,
            "Color plan:\n" + json.dumps(plan.to_dict(), indent=2),
        ]
        if analysis is not None:
            sections.append("Client hair analysis:\n" + json.dumps(analysis.to_dict(), indent=2))
        if explain_reasoning:
            sections.append(self.EXPLAIN_INSTRUCTION)

        return ContextPayload(
            system_instruction="\n\n".join(sections),
            messages=self._recent(history),
        )

    def _recent(
        self,
        history: Union[Conversation, Sequence[ChatMessage], None],
    ) -> List[ChatMessage]:
        if history is None:
            return []
        if isinstance(history, Conversation):
            return history.recent(self.config.max_history_turns)
        limit = self.config.max_history_turns
        if limit <= 0:
            return []
        return list(history)[-limit:]


def build_context(
    plan: Optional[ColorPlan],
    analysis: Optional[HairAnalysis],
    history: Union[Conversation, Sequence[ChatMessage], None],
    explain_reasoning: bool = False,
) -> ContextPayload:
    """Build a context with the configured defaults."""
    return AssistantContextBuilder().build_context(
        plan, analysis, history, explain_reasoning=explain_reasoning
    )

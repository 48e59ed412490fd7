# agents/workshop_generator_agent.py
"""Generates workshop items in batches and regenerates rejected suggestions."""

from __future__ import annotations

import structlog
from config import settings
from core.llm_interface import GenerationReply, LLMService
from processing.rule_engine import BANNED_CLICHES
from prompt_renderer import render_prompt
from utils.text_processing import truncate_chars

from models import (
    RUBRIC_DIMENSIONS,
    RubricAnalysis,
    SuggestionsReply,
    VoiceFingerprint,
    WorkshopBatchReply,
    WorkshopItem,
    WorkshopRequest,
)

logger = structlog.get_logger(__name__)

# Parallel batches are steered toward different regions of the essay.
BATCH_FOCUS_AREAS = (
    "the opening and the setup",
    "the middle: the central moment and its stakes",
    "the conclusion and the reflection",
)


def voice_tone(voice_fingerprint: VoiceFingerprint | None) -> str:
    if voice_fingerprint and voice_fingerprint.tone.primary:
        return voice_fingerprint.tone.primary
    return "authentic"


class WorkshopGeneratorAgent:
    def __init__(
        self, llm_service: LLMService, model_name: str = settings.GENERATION_MODEL
    ) -> None:
        self.llm_service = llm_service
        self.model_name = model_name
        logger.info("WorkshopGeneratorAgent initialized with model: %s", self.model_name)

    def _system_prompt(self) -> str:
        return render_prompt(
            "workshop_generator_agent/system.j2",
            {"dimensions": RUBRIC_DIMENSIONS, "banned_words": BANNED_CLICHES},
        )

    async def generate_batch(
        self,
        request: WorkshopRequest,
        rubric_analysis: RubricAnalysis,
        voice_fingerprint: VoiceFingerprint | None,
        *,
        batch_number: int,
        batch_count: int,
        item_count: int = settings.ITEMS_PER_BATCH,
    ) -> GenerationReply[WorkshopBatchReply]:
        """Ask for ``item_count`` workshop items in a single call."""
        user_prompt = render_prompt(
            "workshop_generator_agent/batch_user.j2",
            {
                "request": request,
                "rubric_analysis": rubric_analysis,
                "voice_fingerprint": voice_fingerprint,
                "batch_number": batch_number,
                "batch_count": batch_count,
                "item_count": item_count,
                "focus": BATCH_FOCUS_AREAS[(batch_number - 1) % len(BATCH_FOCUS_AREAS)],
            },
        )
        return await self.llm_service.call_json(
            self._system_prompt(),
            user_prompt,
            WorkshopBatchReply,
            model=self.model_name,
            max_tokens=settings.MAX_TOKENS_BATCH,
            temperature=settings.TEMPERATURE_GENERATION,
            label=f"workshop_batch_{batch_number}",
        )

    async def regenerate_suggestions(
        self,
        item: WorkshopItem,
        request: WorkshopRequest,
        voice_fingerprint: VoiceFingerprint | None,
        guidance: list[str],
    ) -> GenerationReply[SuggestionsReply]:
        """Ask for three brand-new suggestions for ``item`` given the feedback so far."""
        user_prompt = render_prompt(
            "workshop_generator_agent/regenerate_user.j2",
            {
                "item": item,
                "guidance": guidance,
                "essay_context": truncate_chars(
                    request.essay_text, settings.REGENERATION_ESSAY_CONTEXT_CHARS
                ),
                "voice_tone": voice_tone(voice_fingerprint),
            },
        )
        return await self.llm_service.call_json(
            self._system_prompt(),
            user_prompt,
            SuggestionsReply,
            model=self.model_name,
            max_tokens=settings.MAX_TOKENS_REGENERATION,
            temperature=settings.TEMPERATURE_REGENERATION,
            label=f"regenerate_{item.id}",
        )

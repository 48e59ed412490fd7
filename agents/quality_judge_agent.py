# agents/quality_judge_agent.py
"""Semantic judge scoring sibling suggestions in one call."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from config import settings
from core.exceptions import UpstreamServiceError, ValidationJudgeError
from core.llm_interface import GenerationReply, LLMService
from parsing import ParseError
from processing.rule_engine import BANNED_CLICHES
from prompt_renderer import render_prompt

from models import JudgeReply

logger = structlog.get_logger(__name__)


@dataclass
class JudgeEntry:
    """One suggestion as presented to the judge, with pre-filter context."""

    type: str
    text: str
    warnings: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)


class QualityJudgeAgent:
    def __init__(
        self, llm_service: LLMService, model_name: str | None = None
    ) -> None:
        self.llm_service = llm_service
        self.model_name = model_name or settings.JUDGE_MODEL
        logger.info("QualityJudgeAgent initialized with model: %s", self.model_name)

    async def judge(
        self,
        quote: str,
        entries: list[JudgeEntry],
        *,
        voice_tone: str = "authentic",
        attempt_number: int = 1,
        max_words: int = 350,
    ) -> GenerationReply[JudgeReply]:
        """Score all ``entries`` together.

        Raises:
            ValidationJudgeError: the call failed or its reply was unusable.
                Callers treat this as "unjudged", never as a rejection.
        """
        system_prompt = render_prompt(
            "quality_judge_agent/system.j2",
            {"banned_words": BANNED_CLICHES, "max_words": max_words},
        )
        user_prompt = render_prompt(
            "quality_judge_agent/batch_user.j2",
            {
                "quote": quote,
                "entries": entries,
                "voice_tone": voice_tone,
                "attempt_number": attempt_number,
            },
        )
        try:
            reply = await self.llm_service.call_json(
                system_prompt,
                user_prompt,
                JudgeReply,
                model=self.model_name,
                max_tokens=settings.MAX_TOKENS_JUDGE,
                temperature=settings.TEMPERATURE_JUDGE,
                label="quality_judge",
            )
        except (UpstreamServiceError, ParseError) as exc:
            logger.warning(
                "Judge call unusable; suggestions will be treated as unjudged.",
                error=str(exc),
            )
            raise ValidationJudgeError(str(exc)) from exc
        if not reply.data.validations:
            raise ValidationJudgeError("Judge reply contained no validations")
        return reply

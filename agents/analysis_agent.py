# agents/analysis_agent.py
"""Analysis agent: voice fingerprint, experience fingerprint and rubric scoring."""

from __future__ import annotations

import structlog
from config import settings
from core.llm_interface import GenerationReply, LLMService
from prompt_renderer import render_prompt

from models import (
    RUBRIC_DIMENSIONS,
    ExperienceFingerprint,
    RubricReply,
    VoiceFingerprint,
    WorkshopRequest,
)

logger = structlog.get_logger(__name__)


class AnalysisAgent:
    """Issues the three independent analysis calls for one essay."""

    def __init__(
        self, llm_service: LLMService, model_name: str = settings.GENERATION_MODEL
    ) -> None:
        self.llm_service = llm_service
        self.model_name = model_name
        logger.info("AnalysisAgent initialized with model: %s", self.model_name)

    async def analyze_voice(
        self, request: WorkshopRequest
    ) -> GenerationReply[VoiceFingerprint]:
        context = {"request": request}
        return await self.llm_service.call_json(
            render_prompt("analysis_agent/voice_system.j2", context),
            render_prompt("analysis_agent/voice_user.j2", context),
            VoiceFingerprint,
            model=self.model_name,
            max_tokens=settings.MAX_TOKENS_VOICE,
            temperature=settings.TEMPERATURE_ANALYSIS,
            label="voice_fingerprint",
        )

    async def analyze_experience(
        self, request: WorkshopRequest
    ) -> GenerationReply[ExperienceFingerprint]:
        context = {"request": request}
        return await self.llm_service.call_json(
            render_prompt("analysis_agent/experience_system.j2", context),
            render_prompt("analysis_agent/experience_user.j2", context),
            ExperienceFingerprint,
            model=self.model_name,
            max_tokens=settings.MAX_TOKENS_EXPERIENCE,
            temperature=settings.TEMPERATURE_ANALYSIS,
            label="experience_fingerprint",
        )

    async def analyze_rubric(
        self, request: WorkshopRequest
    ) -> GenerationReply[RubricReply]:
        """Score the essay on the fixed rubric dimensions.

        The reply is returned uncalibrated; calibration happens in
        ``processing.calibration`` so it can be tested without the service.
        """
        context = {"request": request, "dimensions": RUBRIC_DIMENSIONS}
        reply = await self.llm_service.call_json(
            render_prompt("analysis_agent/rubric_system.j2", context),
            render_prompt("analysis_agent/rubric_user.j2", context),
            RubricReply,
            model=self.model_name,
            max_tokens=settings.MAX_TOKENS_RUBRIC,
            temperature=settings.TEMPERATURE_ANALYSIS,
            label="rubric_analysis",
        )
        unknown = [
            d.dimension_name
            for d in reply.data.dimensions
            if d.dimension_name not in RUBRIC_DIMENSIONS
        ]
        if unknown:
            logger.warning("Rubric reply contained unknown dimensions", unknown=unknown)
        return reply

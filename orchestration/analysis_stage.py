# orchestration/analysis_stage.py
"""Stage 1: voice, experience and rubric analysis fanned out concurrently."""

from __future__ import annotations

import structlog
from agents.analysis_agent import AnalysisAgent
from core.exceptions import StageFailedError
from core.llm_interface import LLMService
from core.usage import TokenUsage
from processing.calibration import calibrate_rubric
from utils.fanout import gather_isolated

from models import ContinuationToken, WorkshopRequest
from orchestration.models import StageResult

logger = structlog.get_logger(__name__)


async def run_analysis_stage(
    llm_service: LLMService, request: WorkshopRequest
) -> StageResult:
    """Run the three analysis branches and calibrate the rubric.

    Fingerprint failures are tolerated and recorded as ``None``; the rubric is
    required, so its failure raises ``StageFailedError``.
    """
    agent = AnalysisAgent(llm_service)
    results = await gather_isolated(
        {
            "voice": agent.analyze_voice(request),
            "experience": agent.analyze_experience(request),
            "rubric": agent.analyze_rubric(request),
        }
    )

    usage = TokenUsage()
    for result in results.values():
        if result.ok:
            usage.add(result.value.usage)

    rubric = results["rubric"]
    if not rubric.ok:
        raise StageFailedError(1, f"rubric analysis failed: {rubric.error}") from rubric.error

    voice = results["voice"]
    experience = results["experience"]
    token = ContinuationToken(
        request=request,
        completed_stage=1,
        voice_fingerprint=voice.value.data if voice.ok else None,
        experience_fingerprint=experience.value.data if experience.ok else None,
        rubric_analysis=calibrate_rubric(rubric.value.data),
    )
    logger.info(
        "Analysis stage complete",
        voice_ok=voice.ok,
        experience_ok=experience.ok,
        nqi=token.rubric_analysis.narrative_quality_index,
        calls=usage.calls,
    )
    return StageResult(token=token, usage=usage)

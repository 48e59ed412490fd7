# orchestration/stage_controller.py
"""Stateless dispatcher mapping one stage request to one stage run.

All cross-call state travels in the continuation token, so any process holding
an ``LLMService`` can serve any stage of any workshop.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

import structlog
from core.exceptions import ClientInputError, StageFailedError
from core.llm_interface import LLMService
from core.usage import Stage, TokenUsage, UsageAccountant
from pydantic import ValidationError

from models import ContinuationToken, WorkshopRequest
from orchestration.analysis_stage import run_analysis_stage
from orchestration.generation_stage import run_generation_stage
from orchestration.models import StageEnvelope, StageTiming
from orchestration.validation_stage import run_validation_stage

logger = structlog.get_logger(__name__)


def _parse_stage(stage: Any) -> Stage:
    try:
        return Stage(int(stage))
    except (TypeError, ValueError) as exc:
        raise ClientInputError(
            f"Unknown stage: {stage!r}", details="stage must be 1, 2 or 3"
        ) from exc


def _parse_request(body: dict[str, Any]) -> WorkshopRequest:
    missing = [
        key
        for key in ("essayText", "promptText")
        if not str(body.get(key) or body.get(_snake(key)) or "").strip()
    ]
    if missing:
        raise ClientInputError(
            "Missing required fields: essayText and promptText",
            details=", ".join(missing),
        )
    try:
        return WorkshopRequest.model_validate(body)
    except ValidationError as exc:
        raise ClientInputError("Invalid request fields", details=str(exc)) from exc


def _snake(camel: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in camel)


def _parse_token(body: dict[str, Any], stage: Stage) -> ContinuationToken:
    raw = body.get("continueToken") or body.get("continue_token")
    if not raw:
        raise ClientInputError(f"Stage {int(stage)} requires a continueToken")
    token = ContinuationToken.decode(raw)
    required = int(stage) - 1
    if token.completed_stage < required:
        raise ClientInputError(
            f"Stage {int(stage)} requires a token that completed stage {required}",
            details=f"token completed stage {token.completed_stage}",
        )
    return token


def _analysis_data(token: ContinuationToken) -> dict[str, Any]:
    rubric = token.rubric_analysis
    voice = token.voice_fingerprint
    experience = token.experience_fingerprint
    return {
        "narrativeQualityIndex": rubric.narrative_quality_index,
        "rawNarrativeQualityIndex": rubric.raw_narrative_quality_index,
        "overallStrengths": rubric.overall_strengths,
        "overallWeaknesses": rubric.overall_weaknesses,
        "rubricDimensionDetails": [d.to_wire() for d in rubric.dimensions],
        "voiceFingerprint": voice.to_wire() if voice else None,
        "experienceFingerprint": experience.to_wire() if experience else None,
    }


class StageController:
    """Validate a stage request, run it and wrap the outcome in an envelope."""

    def __init__(self, llm_service: LLMService) -> None:
        self.llm_service = llm_service
        self.accountant = UsageAccountant()

    async def _run(
        self, stage: Stage, body: dict[str, Any]
    ) -> tuple[dict[str, Any], str | None, TokenUsage]:
        if stage is Stage.ANALYSIS:
            result = await run_analysis_stage(self.llm_service, _parse_request(body))
            return _analysis_data(result.token), result.token.encode(), result.usage

        token = _parse_token(body, stage)
        if stage is Stage.GENERATION:
            result = await run_generation_stage(self.llm_service, token)
            items = result.token.workshop_items
            data = {
                "itemCount": len(items),
                "workshopItems": [item.to_wire() for item in items],
            }
            return data, result.token.encode(), result.usage

        validated = await run_validation_stage(self.llm_service, token)
        return validated.result.to_wire(), None, validated.usage

    async def execute(self, stage: Any, body: dict[str, Any]) -> StageEnvelope:
        """Run a stage, raising the pipeline's exceptions unchanged."""
        if not isinstance(body, dict):
            raise ClientInputError("Request body must be a JSON object")
        parsed_stage = _parse_stage(stage)
        started_at = datetime.now(timezone.utc).isoformat()
        started = time.perf_counter()
        logger.info("Stage started", stage=int(parsed_stage))

        data, encoded, usage = await self._run(parsed_stage, body)

        self.accountant.record_usage(parsed_stage, usage)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info("Stage complete", stage=int(parsed_stage), elapsed_ms=elapsed_ms)
        is_final = parsed_stage is Stage.VALIDATION
        return StageEnvelope(
            stage=int(parsed_stage),
            data=data,
            continue_token=None if is_final else encoded,
            next_stage=None if is_final else int(parsed_stage) + 1,
            timing=StageTiming(
                started_at=started_at,
                elapsed_ms=elapsed_ms,
                generation_calls=usage.calls,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
            ),
        )

    async def dispatch(
        self, stage: Any, body: dict[str, Any]
    ) -> tuple[int, dict[str, Any]]:
        """Run a stage and map the outcome to ``(status_code, payload)``."""
        try:
            envelope = await self.execute(stage, body)
        except ClientInputError as exc:
            logger.info("Rejected stage request", stage=stage, error=exc.message)
            payload: dict[str, Any] = {"error": exc.message}
            if exc.details:
                payload["details"] = exc.details
            return 400, payload
        except StageFailedError as exc:
            logger.error("Stage failed", stage=exc.stage, reason=exc.reason, exc_info=True)
            return 500, {"error": str(exc), "details": exc.reason}
        except Exception as exc:
            logger.error("Unhandled error while running stage", stage=stage, exc_info=True)
            return 500, {
                "error": "Internal server error",
                "details": f"{type(exc).__name__}: {exc}",
            }
        return 200, envelope.to_wire()

# orchestration/validation_stage.py
"""Stage 3: validate every item in parallel and summarize the outcome."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from agents.quality_judge_agent import QualityJudgeAgent
from agents.workshop_generator_agent import WorkshopGeneratorAgent
from config import settings
from core.llm_interface import LLMService
from core.usage import TokenUsage
from processing.quality_validator import QualityValidator
from utils.fanout import gather_isolated

from models import (
    ContinuationToken,
    ValidationSummary,
    WorkshopItem,
    WorkshopResult,
)
from orchestration.models import ItemValidationRecord
from orchestration.retry_coordinator import RetryCoordinator

logger = structlog.get_logger(__name__)


@dataclass
class ValidationStageResult:
    result: WorkshopResult
    usage: TokenUsage = field(default_factory=TokenUsage)


def summarize(
    items: list[WorkshopItem], records: list[ItemValidationRecord], dropped: int
) -> ValidationSummary:
    """Aggregate quality statistics over the surviving suggestions."""
    validations = [
        s.validation for item in items for s in item.suggestions if s.validation
    ]
    scores = [v.quality_score for v in validations]
    return ValidationSummary(
        average_quality=round(sum(scores) / len(scores), 1) if scores else 0.0,
        excellent_count=sum(1 for v in validations if v.verdict == "excellent"),
        good_count=sum(1 for v in validations if v.verdict == "good"),
        needs_work_count=sum(1 for v in validations if v.verdict == "needs_work"),
        total_suggestions=len(validations),
        items_dropped=dropped,
        regeneration_calls=sum(r.regeneration_calls for r in records),
    )


async def run_validation_stage(
    llm_service: LLMService,
    token: ContinuationToken,
    *,
    max_attempts: int = settings.MAX_VALIDATION_ATTEMPTS,
) -> ValidationStageResult:
    validator = QualityValidator(QualityJudgeAgent(llm_service))
    coordinator = RetryCoordinator(
        validator, WorkshopGeneratorAgent(llm_service), max_attempts=max_attempts
    )

    # Keys carry the position so duplicate ids in a hand-made token stay distinct.
    keys = [f"{index}:{item.id}" for index, item in enumerate(token.workshop_items)]
    results = await gather_isolated(
        {
            key: coordinator.process_item(
                item, token.request, token.voice_fingerprint
            )
            for key, item in zip(keys, token.workshop_items)
        }
    )

    usage = TokenUsage()
    records: list[ItemValidationRecord] = []
    items: list[WorkshopItem] = []
    dropped = 0
    for key in keys:
        branch = results[key]
        if not branch.ok:
            logger.error(
                "Item validation raised; dropping item",
                item_key=key,
                exc_info=branch.error,
            )
            dropped += 1
            continue
        record = branch.value
        records.append(record)
        usage.add(record.usage)
        if record.dropped:
            dropped += 1
        else:
            items.append(record.item)

    rubric = token.rubric_analysis
    result = WorkshopResult(
        narrative_quality_index=rubric.narrative_quality_index if rubric else None,
        overall_strengths=rubric.overall_strengths if rubric else [],
        overall_weaknesses=rubric.overall_weaknesses if rubric else [],
        items=items,
        summary=summarize(items, records, dropped),
    )
    logger.info(
        "Validation stage complete",
        items=len(items),
        dropped=dropped,
        average_quality=result.summary.average_quality,
        regeneration_calls=result.summary.regeneration_calls,
    )
    return ValidationStageResult(result=result, usage=usage)

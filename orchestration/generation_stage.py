# orchestration/generation_stage.py
"""Stage 2: independent workshop-item batches fanned out concurrently."""

from __future__ import annotations

import structlog
from agents.workshop_generator_agent import WorkshopGeneratorAgent
from config import settings
from core.exceptions import StageFailedError
from core.llm_interface import LLMService
from core.usage import TokenUsage
from utils.fanout import gather_isolated
from utils.text_processing import find_quote_score

from models import ContinuationToken, WorkshopItem
from orchestration.models import StageResult

logger = structlog.get_logger(__name__)


def _collect_batch_items(
    batch_number: int,
    items: list[WorkshopItem],
    essay_text: str,
    seen_ids: set[str],
    *,
    max_items: int,
    quote_threshold: float,
) -> list[WorkshopItem]:
    """Keep verbatim-quoted items and give each a unique id."""
    kept: list[WorkshopItem] = []
    for item in items:
        if len(kept) >= max_items:
            break
        score = find_quote_score(item.quote, essay_text)
        if score < quote_threshold:
            logger.info(
                "Discarding item with non-verbatim quote",
                batch=batch_number,
                quote_preview=item.quote[:60],
                score=round(score, 1),
            )
            continue
        item_id = item.id.strip()
        if not item_id or item_id in seen_ids:
            item_id = f"b{batch_number}-{len(kept) + 1}"
            suffix = 1
            while item_id in seen_ids:
                suffix += 1
                item_id = f"b{batch_number}-{len(kept) + 1}-{suffix}"
        seen_ids.add(item_id)
        kept.append(item.model_copy(update={"id": item_id}))
    return kept


async def run_generation_stage(
    llm_service: LLMService,
    token: ContinuationToken,
    *,
    batch_count: int = settings.GENERATION_BATCH_COUNT,
    items_per_batch: int = settings.ITEMS_PER_BATCH,
    quote_threshold: float = settings.QUOTE_MATCH_THRESHOLD,
) -> StageResult:
    """Generate ``batch_count`` batches and merge their items in batch order."""
    if token.rubric_analysis is None:
        raise StageFailedError(2, "token carries no rubric analysis")

    agent = WorkshopGeneratorAgent(llm_service)
    branches = {
        str(n): agent.generate_batch(
            token.request,
            token.rubric_analysis,
            token.voice_fingerprint,
            batch_number=n,
            batch_count=batch_count,
            item_count=items_per_batch,
        )
        for n in range(1, batch_count + 1)
    }
    results = await gather_isolated(branches)

    usage = TokenUsage()
    seen_ids: set[str] = set()
    items: list[WorkshopItem] = []
    failed_batches = 0
    for n in range(1, batch_count + 1):
        result = results[str(n)]
        if not result.ok:
            failed_batches += 1
            continue
        usage.add(result.value.usage)
        batch_items = _collect_batch_items(
            n,
            result.value.data.workshop_items,
            token.request.essay_text,
            seen_ids,
            max_items=items_per_batch,
            quote_threshold=quote_threshold,
        )
        logger.info("Batch merged", batch=n, items=len(batch_items))
        items.extend(batch_items)

    if not items:
        raise StageFailedError(
            2, f"no workshop items were generated ({failed_batches} of {batch_count} batches failed)"
        )

    logger.info(
        "Generation stage complete",
        items=len(items),
        failed_batches=failed_batches,
        calls=usage.calls,
    )
    next_token = token.model_copy(
        update={"completed_stage": 2, "workshop_items": items}
    )
    return StageResult(token=next_token, usage=usage)

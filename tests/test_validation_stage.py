# tests/test_validation_stage.py
import pytest
from conftest import ESSAY, GOOD_SUGGESTIONS, PROMPT, QUOTES, judge_types
from orchestration import retry_coordinator
from orchestration.validation_stage import run_validation_stage

from models import ContinuationToken, WorkshopItem, WorkshopRequest


def _stage_two_token(count: int = 3) -> ContinuationToken:
    return ContinuationToken(
        request=WorkshopRequest(essay_text=ESSAY, prompt_text=PROMPT),
        completed_stage=2,
        workshop_items=[
            WorkshopItem.model_validate(
                {
                    "id": f"b1-{n}",
                    "quote": QUOTES[n % len(QUOTES)],
                    "suggestions": GOOD_SUGGESTIONS,
                }
            )
            for n in range(count)
        ],
    )


@pytest.mark.asyncio
async def test_summary_counts_surviving_suggestions(fake_service_factory):
    def judge(_label, user_prompt):
        scores = [95, 75, 72]
        return {
            "validations": [
                {"suggestionType": t, "isValid": True, "qualityScore": s}
                for t, s in zip(judge_types(user_prompt), scores)
            ]
        }

    service = fake_service_factory({"quality_judge": judge})
    staged = await run_validation_stage(service, _stage_two_token(2))
    summary = staged.result.summary
    assert summary.total_suggestions == 6
    assert summary.excellent_count == 2
    assert summary.good_count == 4
    assert summary.needs_work_count == 0
    assert summary.average_quality == pytest.approx(80.7)
    assert summary.items_dropped == 0
    assert summary.regeneration_calls == 0
    assert staged.usage.calls == 2


@pytest.mark.asyncio
async def test_item_exception_drops_only_that_item(fake_service_factory, monkeypatch):
    original = retry_coordinator.RetryCoordinator.process_item

    async def flaky(self, item, request, voice_fingerprint=None):
        if item.id == "b1-1":
            raise RuntimeError("unexpected")
        return await original(self, item, request, voice_fingerprint)

    monkeypatch.setattr(retry_coordinator.RetryCoordinator, "process_item", flaky)

    def judge(_label, user_prompt):
        return {
            "validations": [
                {"suggestionType": t, "isValid": True, "qualityScore": 80}
                for t in judge_types(user_prompt)
            ]
        }

    service = fake_service_factory({"quality_judge": judge})
    staged = await run_validation_stage(service, _stage_two_token(3))
    assert [item.id for item in staged.result.items] == ["b1-0", "b1-2"]
    assert staged.result.summary.items_dropped == 1

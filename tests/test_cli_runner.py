# tests/test_cli_runner.py
import pytest
from conftest import ESSAY, PROMPT
from core.exceptions import WorkshopError
from orchestration.cli_runner import run_pipeline
from orchestration.stage_controller import StageController


@pytest.mark.asyncio
async def test_pipeline_passes_token_between_stages(workshop_service):
    envelope = await run_pipeline(
        StageController(workshop_service),
        {"essayText": ESSAY, "promptText": PROMPT},
    )
    assert envelope["stage"] == 3
    assert envelope["data"]["items"]
    assert workshop_service.count("rubric_analysis") == 1
    assert workshop_service.count("workshop_batch") == 3


@pytest.mark.asyncio
async def test_pipeline_stops_on_client_error(workshop_service):
    with pytest.raises(WorkshopError, match="Stage 1 returned 400"):
        await run_pipeline(StageController(workshop_service), {"promptText": PROMPT})

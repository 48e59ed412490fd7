# orchestration/cli_runner.py
"""Command-line runner chaining the three stages through the controller."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import structlog
from core.exceptions import WorkshopError
from core.llm_interface import LLMService
from utils.logging import setup_logging

from orchestration.stage_controller import StageController

logger = structlog.get_logger(__name__)


async def run_pipeline(
    controller: StageController, request_fields: dict[str, Any]
) -> dict[str, Any]:
    """Call stages 1 to 3 in order, passing only the token between them."""
    body: dict[str, Any] = dict(request_fields)
    stage: int | None = 1
    envelope: dict[str, Any] = {}
    while stage is not None:
        status_code, envelope = await controller.dispatch(stage, body)
        if status_code != 200:
            raise WorkshopError(
                f"Stage {stage} returned {status_code}: {envelope.get('error')}"
                + (f" ({envelope['details']})" if envelope.get("details") else "")
            )
        logger.info(
            "Stage finished",
            stage=stage,
            elapsed_ms=envelope["timing"]["elapsedMs"],
            calls=envelope["timing"]["generationCalls"],
        )
        stage = envelope.get("nextStage")
        body = {"continueToken": envelope.get("continueToken")}
    return envelope


async def _run(request_fields: dict[str, Any]) -> dict[str, Any]:
    async with LLMService() as llm_service:
        return await run_pipeline(StageController(llm_service), request_fields)


def run(
    essay_path: str,
    prompt_text: str,
    essay_type: str | None = None,
    output_path: str | None = None,
) -> int:
    """Run the full workshop for one essay file and write the final envelope."""
    setup_logging()
    request_fields: dict[str, Any] = {
        "essayText": Path(essay_path).read_text(encoding="utf-8"),
        "promptText": prompt_text,
    }
    if essay_type:
        request_fields["essayType"] = essay_type
    try:
        envelope = asyncio.run(_run(request_fields))
    except KeyboardInterrupt:
        logger.info("Workshop run interrupted by user.")
        return 130
    except WorkshopError as err:
        logger.error("Workshop run failed: %s", err)
        return 1

    rendered = json.dumps(envelope, indent=2, ensure_ascii=False)
    if output_path:
        Path(output_path).write_text(rendered, encoding="utf-8")
        logger.info("Workshop result written", path=output_path)
    else:
        print(rendered)
    return 0

# orchestration/models.py
"""Shared types for the stage orchestration layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from core.usage import TokenUsage
from pydantic import Field

from models import ContinuationToken, WorkshopItem
from models.workshop_models import WorkshopBaseModel


class StageTiming(WorkshopBaseModel):
    started_at: str
    elapsed_ms: int
    generation_calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0


class StageEnvelope(WorkshopBaseModel):
    """Uniform response for every stage call."""

    stage: int
    status: Literal["complete"] = "complete"
    data: dict[str, Any] = Field(default_factory=dict)
    continue_token: str | None = None
    next_stage: int | None = None
    timing: StageTiming

    def to_wire(self) -> dict[str, Any]:
        payload = super().to_wire()
        # The final stage carries neither a token nor a next stage.
        for key in ("continueToken", "nextStage"):
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


@dataclass
class StageResult:
    """Token produced by a stage plus the usage it consumed."""

    token: ContinuationToken
    usage: TokenUsage = field(default_factory=TokenUsage)


# --- Retry state machine ----------------------------------------------------


@dataclass(frozen=True)
class Attempt:
    """Validation round ``number`` (1-based) is about to run."""

    number: int


@dataclass(frozen=True)
class Success:
    attempts: int


@dataclass(frozen=True)
class Exhausted:
    attempts: int


AttemptState = Attempt | Success | Exhausted


@dataclass
class ItemValidationRecord:
    """What the retry loop did for one item."""

    item: WorkshopItem | None
    attempts: int = 0
    regeneration_calls: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def dropped(self) -> bool:
        return self.item is None

# core/usage.py
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import structlog

logger = structlog.get_logger(__name__)


class Stage(IntEnum):
    """Pipeline stages, numbered as the dispatch endpoint expects them."""

    ANALYSIS = 1
    GENERATION = 2
    VALIDATION = 3


@dataclass
class TokenUsage:
    """Generation-service usage metrics."""

    input_tokens: int = 0
    output_tokens: int = 0
    calls: int = 0

    def add(self, usage: TokenUsage | None) -> None:
        """Accumulate usage values from another instance."""
        if not usage:
            return
        self.input_tokens += usage.input_tokens
        self.output_tokens += usage.output_tokens
        self.calls += usage.calls

    def __bool__(self) -> bool:
        return bool(self.calls or self.input_tokens or self.output_tokens)


class UsageAccountant:
    """Accumulate and log usage per stage."""

    def __init__(self) -> None:
        self.stage_totals: dict[Stage, TokenUsage] = {}

    def record_usage(self, stage: Stage, usage: TokenUsage | None) -> None:
        if not usage:
            return
        totals = self.stage_totals.setdefault(stage, TokenUsage())
        totals.add(usage)
        logger.info(
            "Usage recorded",
            stage=stage.name,
            calls=usage.calls,
            output_tokens=usage.output_tokens,
            stage_calls=totals.calls,
        )

    def get_stage_total(self, stage: Stage) -> TokenUsage:
        return self.stage_totals.get(stage, TokenUsage())

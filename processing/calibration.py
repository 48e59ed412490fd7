# processing/calibration.py
"""Deterministic score calibration applied after rubric analysis.

Raw model scores cluster low in the middle of the range; these curves lift
them while leaving zero and the top band untouched.
"""

from __future__ import annotations

import math

import structlog

from models import DimensionScore, RubricAnalysis, RubricReply

logger = structlog.get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round like JavaScript's ``Math.round`` (``round`` uses banker's rounding)."""
    return int(math.floor(value + 0.5))


def calibrate_score(raw: float) -> float:
    if raw == 0 or raw >= 9:
        return raw
    return raw + 0.5


def calibrate_nqi(raw: float) -> float:
    if raw == 0:
        return raw
    if raw >= 95:
        return round_half_up(raw * 0.95 + 5)
    if raw >= 75:
        return round_half_up(raw * 1.10 - 3)
    if raw >= 50:
        return round_half_up(raw * 1.20 - 5)
    if raw >= 25:
        return round_half_up(raw * 1.30 - 8)
    return round_half_up(raw * 1.80 + 15)


def derive_raw_nqi(dimensions: list[DimensionScore]) -> float:
    """Mean raw dimension score on a 0-100 scale."""
    if not dimensions:
        return 0.0
    return sum(d.raw_score for d in dimensions) / len(dimensions) * 10


def calibrate_rubric(reply: RubricReply) -> RubricAnalysis:
    """Apply calibration to every dimension and to the composite index."""
    dimensions = [
        d.model_copy(update={"final_score": calibrate_score(d.raw_score)})
        for d in reply.dimensions
    ]
    raw_nqi = reply.narrative_quality_index
    if raw_nqi is None:
        raw_nqi = derive_raw_nqi(reply.dimensions)
        logger.debug("Composite index missing; derived from dimensions", raw_nqi=raw_nqi)
    nqi = calibrate_nqi(raw_nqi)
    logger.info("Rubric calibrated", raw_nqi=raw_nqi, nqi=nqi)
    return RubricAnalysis(
        dimensions=dimensions,
        raw_narrative_quality_index=raw_nqi,
        narrative_quality_index=nqi,
        overall_strengths=reply.overall_strengths,
        overall_weaknesses=reply.overall_weaknesses,
    )

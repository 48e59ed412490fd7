# tests/test_calibration.py
import pytest
from processing.calibration import (
    calibrate_nqi,
    calibrate_rubric,
    calibrate_score,
    round_half_up,
)

from models import RubricReply


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 0), (5, 5.5), (8.9, 9.4), (9, 9), (9.5, 9.5), (10, 10)],
)
def test_calibrate_score(raw, expected):
    assert calibrate_score(raw) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 0), (96, 96), (80, 85), (60, 67), (30, 31), (10, 33)],
)
def test_calibrate_nqi_piecewise(raw, expected):
    assert calibrate_nqi(raw) == expected


def test_rounding_is_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(28.5) == 29
    assert round_half_up(28.49) == 28
    # 7.5 * 1.8 + 15 == 28.5
    assert calibrate_nqi(7.5) == 29


def test_calibrate_rubric_applies_both_curves():
    reply = RubricReply.model_validate(
        {
            "dimensions": [
                {"dimension_name": "opening_hook", "raw_score": 6},
                {"dimension_name": "uniqueness", "raw_score": 9.5},
            ],
            "narrative_quality_index": 80,
            "overall_strengths": ["voice"],
        }
    )
    analysis = calibrate_rubric(reply)
    assert [d.final_score for d in analysis.dimensions] == [6.5, 9.5]
    assert [d.raw_score for d in analysis.dimensions] == [6, 9.5]
    assert analysis.raw_narrative_quality_index == 80
    assert analysis.narrative_quality_index == 85
    assert analysis.overall_strengths == ["voice"]


def test_missing_composite_is_derived_from_dimensions():
    reply = RubricReply.model_validate(
        {
            "dimensions": [
                {"dimension_name": "opening_hook", "raw_score": 5},
                {"dimension_name": "uniqueness", "raw_score": 7},
            ]
        }
    )
    analysis = calibrate_rubric(reply)
    assert analysis.raw_narrative_quality_index == pytest.approx(60)
    assert analysis.narrative_quality_index == 67

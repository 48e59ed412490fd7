# tests/test_rule_engine.py
import pytest
from processing.rule_engine import PATTERN_RULES, check_text

CLEAN_TEXT = (
    "I fixed the mixer with a butter knife. "
    "My grandmother laughed at the grease on my sleeve."
)


def _rules(text: str) -> set[str]:
    return {finding.rule for finding in check_text(text).findings}


def test_clean_text_produces_no_findings():
    report = check_text(CLEAN_TEXT)
    assert report.findings == ()
    assert not report.has_critical
    assert report.efficiency_flags == []


@pytest.mark.parametrize(
    ("text", "rule"),
    [
        ("The cake was baked by my team.", "passive_voice"),
        ("This taught me patience.", "summary_language"),
        ("I learned that flour is unforgiving.", "summary_language"),
        ("My life is a tapestry of flour.", "banned_cliche"),
        ("I delved into the recipe box.", "banned_cliche"),
        ("As an AI language model, I cannot bake.", "assistant_boilerplate"),
        ("As I walked in, the ovens roared.", "convergent_opening"),
        ("A faint smell of yeast hung there.", "overused_literary_vocabulary"),
        ("I fixed it — and learned to trust my hands.", "em_dash_insight_ending"),
        (
            "The noise hit me like a wave crashing over the counter.",
            "flowery_comparison",
        ),
        ("We sold the warm, sweet, golden bread by noon.", "adjective_chain"),
        (
            "I woke at five today. I drove to the shop fast. I lit the big old ovens.",
            "rhythmic_repetition",
        ),
        (
            "I woke at five. I drove to the shop before anyone else was awake. I lit it.",
            "repeated_openers",
        ),
        ("I saw the flour. I heard the mixer.", "description_saturation"),
        (
            "The old bakery on the corner of Fifth Street had cracked blue tiles "
            "and a hand painted sign that nobody had touched in years.",
            "scene_setting_without_agency",
        ),
    ],
)
def test_rule_fires_on_example(text, rule):
    assert rule in _rules(text)


def test_every_pattern_rule_stays_quiet_on_clean_text():
    for rule in PATTERN_RULES:
        assert rule.apply(CLEAN_TEXT) == []


def test_banned_vocabulary_is_critical():
    report = check_text("This essay will showcase my growth.")
    assert report.has_critical
    assert [f.rule for f in report.critical] == ["banned_cliche"]
    assert report.critical[0].evidence.lower() == "showcase"


def test_partial_words_do_not_trigger_banned_vocabulary():
    assert "banned_cliche" not in _rules("The realmente bakery is in Madrid.")


def test_warnings_and_flags_are_separated():
    report = check_text("This taught me patience. A faint smell of yeast hung there.")
    assert [f.rule for f in report.warnings] == ["summary_language"]
    assert len(report.efficiency_flags) == 1
    assert "Overused literary vocabulary" in report.efficiency_flags[0]
    assert not report.has_critical


def test_empty_text_is_critical():
    report = check_text("   ")
    assert report.has_critical
    assert report.critical[0].rule == "empty_text"

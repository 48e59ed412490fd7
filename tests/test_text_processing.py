from utils import text_processing
from utils.text_processing import find_quote_score, truncate_chars

from conftest import ESSAY, QUOTES


def test_normalize_text_for_matching():
    assert text_processing._normalize_text_for_matching(" 'Hello...' ") == "hello"
    assert text_processing._normalize_text_for_matching("") == ""
    assert (
        text_processing._normalize_text_for_matching("It’s  “fine”")
        == "its fine"
    )


def test_exact_quote_scores_full():
    assert find_quote_score(QUOTES[1], ESSAY) == 100.0


def test_quote_with_punctuation_drift_still_matches():
    drifted = "My grandmother laughed, and called me her engineer!"
    assert find_quote_score(drifted, ESSAY) >= 85


def test_invented_quote_scores_low():
    invented = "The robotics team elected me captain after a dramatic final match."
    assert find_quote_score(invented, ESSAY) < 85


def test_empty_quote_scores_zero():
    assert find_quote_score("", ESSAY) == 0.0
    assert find_quote_score("anything", "") == 0.0


def test_truncate_chars():
    assert truncate_chars("short", 10) == "short"
    assert truncate_chars("abcdefghij", 4) == "abcd..."
    assert truncate_chars("abcdefghij", 4, marker="") == "abcd"

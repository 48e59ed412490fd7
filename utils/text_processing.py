# utils/text_processing.py
"""Small text helpers shared by the stages and agents."""

from __future__ import annotations

import re

import structlog
from rapidfuzz.fuzz import partial_ratio_alignment

logger = structlog.get_logger(__name__)


def _normalize_text_for_matching(text: str) -> str:
    """Normalize text for more robust matching."""
    if not text:
        return ""
    text = text.lower()
    text = re.sub(
        r"^[ '\"\(]*(\.\.\.)?[ '\"\(]*|[ '\"\(]*(\.\.\.)?[ '\"\(]*$", "", text
    )
    text = text.replace("’", "'").replace("“", '"').replace("”", '"')
    text = re.sub(r"[^\w\s]", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def find_quote_score(quote: str, essay_text: str) -> float:
    """Return how well ``quote`` aligns with some span of ``essay_text`` (0-100).

    Exact substrings score 100; the fuzzy fallback tolerates the small
    punctuation or whitespace drift generated quotes tend to have.
    """
    cleaned_quote = _normalize_text_for_matching(quote)
    cleaned_essay = _normalize_text_for_matching(essay_text)
    if not cleaned_quote or not cleaned_essay:
        return 0.0
    if cleaned_quote in cleaned_essay:
        return 100.0
    alignment = partial_ratio_alignment(cleaned_quote, cleaned_essay)
    if alignment is None:
        return 0.0
    logger.debug(
        "Fuzzy quote alignment",
        quote_preview=cleaned_quote[:30],
        score=round(alignment.score, 2),
    )
    return float(alignment.score)


def truncate_chars(text: str, max_chars: int, marker: str = "...") -> str:
    """Truncate ``text`` to ``max_chars`` characters, appending ``marker``."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + marker

# utils/__init__.py
"""General utility functions for the workshop pipeline."""

from __future__ import annotations

from .fanout import BranchResult, gather_isolated
from .logging import setup_logging
from .text_processing import find_quote_score, truncate_chars

__all__ = [
    "BranchResult",
    "gather_isolated",
    "setup_logging",
    "find_quote_score",
    "truncate_chars",
]

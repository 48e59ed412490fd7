# tests/conftest.py
import os
import re
import sys

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

# Keep the credential check quiet and the console plain during tests
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")
os.environ.setdefault("ENABLE_RICH_LOGGING", "false")

from collections.abc import Callable
from typing import Any

import pytest
from core.llm_interface import GenerationReply
from core.usage import TokenUsage

from models import RUBRIC_DIMENSIONS

ESSAY = (
    "I spent every Saturday at my grandmother's bakery kneading dough before sunrise. "
    "The ovens roared and flour settled on everything. "
    "One morning the mixer broke and I fixed it with a butter knife and a video tutorial. "
    "My grandmother laughed and called me her engineer. "
    "Now I keep a screwdriver in my apron pocket."
)
PROMPT = "Describe an example of your leadership experience."

QUOTES = (
    "I spent every Saturday at my grandmother's bakery kneading dough before sunrise.",
    "One morning the mixer broke and I fixed it with a butter knife and a video tutorial.",
    "My grandmother laughed and called me her engineer.",
)

GOOD_SUGGESTIONS = [
    {
        "type": "polished_original",
        "text": "Every Saturday I kneaded dough in my grandmother's bakery before sunrise.",
        "rationale": "Tighter opening.",
    },
    {
        "type": "voice_amplifier",
        "text": "By six on Saturdays my forearms ached from kneading rye for my grandmother.",
        "rationale": "Adds physical detail.",
    },
    {
        "type": "divergent_strategy",
        "text": "My grandmother paid me in burnt croissants, and I never once asked for cash.",
        "rationale": "Opens on character.",
    },
]

_SUGGESTION_HEADER_RE = re.compile(r"### Suggestion \d+: (\w+)")

Handler = Callable[[str, str], Any]


class FakeLLMService:
    """Stands in for ``LLMService``; routes calls by label prefix.

    A handler is either a JSON-like dict or a callable ``(label, user_prompt)``
    returning one. Exceptions raised by a handler propagate to the caller the
    same way a failed call would.
    """

    def __init__(self, handlers: dict[str, Any] | None = None) -> None:
        self.handlers: dict[str, Any] = dict(handlers or {})
        self.calls: list[str] = []
        self.prompts: dict[str, list[str]] = {}

    async def call_json(
        self,
        system: str,
        user: str,
        reply_model,
        *,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        label: str = "generation",
    ) -> GenerationReply:
        self.calls.append(label)
        self.prompts.setdefault(label, []).append(user)
        for prefix, handler in self.handlers.items():
            if label.startswith(prefix):
                data = handler(label, user) if callable(handler) else handler
                return GenerationReply(
                    data=reply_model.model_validate(data),
                    usage=TokenUsage(input_tokens=100, output_tokens=50, calls=1),
                )
        raise AssertionError(f"Unexpected generation call: {label}")

    async def aclose(self) -> None:
        return None

    def count(self, prefix: str) -> int:
        return sum(1 for label in self.calls if label.startswith(prefix))


def rubric_reply(raw_score: float = 6, nqi: float | None = 62) -> dict[str, Any]:
    reply: dict[str, Any] = {
        "dimensions": [
            {
                "dimension_name": name,
                "raw_score": raw_score,
                "evidence": {"justification": "ok", "strengths": [], "weaknesses": []},
            }
            for name in RUBRIC_DIMENSIONS
        ],
        "overall_strengths": ["Specific setting"],
        "overall_weaknesses": ["Thin reflection"],
    }
    if nqi is not None:
        reply["narrative_quality_index"] = nqi
    return reply


VOICE_REPLY = {
    "sentenceStructure": {"pattern": "short declaratives", "example": QUOTES[2]},
    "vocabulary": {"level": "plain", "signatureWords": ["dough", "mixer"]},
    "pacing": {"speed": "brisk", "rhythm": "even"},
    "tone": {"primary": "wry", "secondary": "warm"},
}

EXPERIENCE_REPLY = {
    "unusualCircumstance": {"description": "bakery repairs"},
    "antiPatternFlags": {"followsTypicalArc": False},
    "qualityAnchors": [{"sentence": QUOTES[2], "whyItWorks": "voice"}],
    "confidenceScore": 7,
}


def batch_handler(label: str, _user: str) -> dict[str, Any]:
    """Three items per batch, all quoting the essay, with colliding ids."""
    return {
        "workshopItems": [
            {
                "id": f"item{index}",
                "quote": quote,
                "problem": "Could be sharper",
                "why_it_matters": "Opening lines carry the essay",
                "severity": "high",
                "rubric_category": "opening_hook",
                "suggestions": GOOD_SUGGESTIONS,
            }
            for index, quote in enumerate(QUOTES, start=1)
        ]
    }


def judge_types(user_prompt: str) -> list[str]:
    return _SUGGESTION_HEADER_RE.findall(user_prompt)


def make_judge(score: float = 82, is_valid: bool = True, **extra: Any) -> Handler:
    """Judge handler scoring every presented suggestion the same way."""

    def handler(_label: str, user_prompt: str) -> dict[str, Any]:
        return {
            "validations": [
                {
                    "suggestionType": suggestion_type,
                    "isValid": is_valid,
                    "qualityScore": score,
                    "failures": [],
                    "strengths": ["Concrete"],
                    "retryGuidance": extra.get("retry_guidance", ""),
                }
                for suggestion_type in judge_types(user_prompt)
            ]
        }

    return handler


@pytest.fixture
def fake_service_factory():
    return FakeLLMService


@pytest.fixture
def workshop_service() -> FakeLLMService:
    """A fake service answering every call of a successful three-stage run."""
    return FakeLLMService(
        {
            "voice_fingerprint": VOICE_REPLY,
            "experience_fingerprint": EXPERIENCE_REPLY,
            "rubric_analysis": rubric_reply(),
            "workshop_batch": batch_handler,
            "quality_judge": make_judge(82),
            "regenerate": {"suggestions": GOOD_SUGGESTIONS},
        }
    )

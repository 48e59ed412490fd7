"""Central package for workshop data models."""

from .continuation_token import ContinuationToken, decode_token, encode_token
from .workshop_models import (
    COMPONENT_WEIGHTS,
    MAX_SUGGESTIONS_PER_ITEM,
    RUBRIC_DIMENSIONS,
    DimensionEvidence,
    DimensionScore,
    EssayType,
    ExperienceFingerprint,
    JudgeReply,
    JudgeVerdict,
    RubricAnalysis,
    RubricReply,
    RuleFinding,
    ScoreBreakdown,
    Suggestion,
    SuggestionsReply,
    SuggestionType,
    ValidationResult,
    ValidationSummary,
    VoiceFingerprint,
    WorkshopBatchReply,
    WorkshopItem,
    WorkshopRequest,
    WorkshopResult,
)

__all__ = [
    "COMPONENT_WEIGHTS",
    "MAX_SUGGESTIONS_PER_ITEM",
    "RUBRIC_DIMENSIONS",
    "ContinuationToken",
    "decode_token",
    "encode_token",
    "DimensionEvidence",
    "DimensionScore",
    "EssayType",
    "ExperienceFingerprint",
    "JudgeReply",
    "JudgeVerdict",
    "RubricAnalysis",
    "RubricReply",
    "RuleFinding",
    "ScoreBreakdown",
    "Suggestion",
    "SuggestionsReply",
    "SuggestionType",
    "ValidationResult",
    "ValidationSummary",
    "VoiceFingerprint",
    "WorkshopBatchReply",
    "WorkshopItem",
    "WorkshopRequest",
    "WorkshopResult",
]

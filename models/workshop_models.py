# models/workshop_models.py
"""Pydantic models for workshop requests, generated items and validation results.

Replies from the generation service are parsed directly into these models, so
every model accepts both snake_case and the camelCase keys the prompts ask
for.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

import structlog
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = structlog.get_logger(__name__)

MAX_SUGGESTIONS_PER_ITEM = 3

SEVERITY_LEVELS = ("critical", "high", "medium", "low")

RUBRIC_DIMENSIONS: tuple[str, ...] = (
    "opening_hook",
    "character_development",
    "stakes_tension",
    "climax_turning_point",
    "conclusion_reflection",
    "narrative_voice",
    "structural_clarity",
    "sensory_details",
    "insight_depth",
    "emotional_resonance",
    "uniqueness",
    "prompt_responsiveness",
)

# Maximum points per judge component; the weights sum to 100.
COMPONENT_WEIGHTS: dict[str, int] = {
    "purposeful_contribution": 30,
    "storytelling_compelling": 30,
    "authenticity": 20,
    "originality": 15,
    "word_efficiency": 5,
}


class WorkshopBaseModel(BaseModel):
    """Base model accepting snake_case or camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump as camelCase JSON-compatible data for HTTP responses."""
        return self.model_dump(mode="json", by_alias=True)


def _keep_valid_entries(model: type[BaseModel], value: Any) -> Any:
    """Validate list entries one at a time, dropping those that do not fit.

    One malformed entry in a generated list must not cost its siblings.
    """
    if not isinstance(value, list):
        return value
    kept: list[BaseModel] = []
    for index, entry in enumerate(value):
        try:
            kept.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed reply entry",
                entry_type=model.__name__,
                index=index,
                errors=[e["loc"] for e in exc.errors(include_url=False)][:3],
            )
    return kept


class EssayType(str, Enum):
    PERSONAL_STATEMENT = "personal_statement"
    UC_PIQ = "uc_piq"
    WHY_US = "why_us"
    SUPPLEMENTAL = "supplemental"
    ACTIVITY_ESSAY = "activity_essay"


class SuggestionType(str, Enum):
    """Closed set of suggestion strategies."""

    POLISHED_ORIGINAL = "polished_original"  # minimal edit
    VOICE_AMPLIFIER = "voice_amplifier"  # voice-preserving amplification
    DIVERGENT_STRATEGY = "divergent_strategy"  # divergent alternative


class WorkshopRequest(WorkshopBaseModel):
    """Original request fields supplied to stage 1."""

    essay_text: str
    prompt_text: str
    essay_type: EssayType = EssayType.UC_PIQ
    prompt_title: str = ""
    max_words: int = 350


# --- Fingerprints -----------------------------------------------------------


class SentenceStructure(WorkshopBaseModel):
    pattern: str = ""
    example: str = ""


class Vocabulary(WorkshopBaseModel):
    level: str = ""
    signature_words: list[str] = Field(default_factory=list)


class Pacing(WorkshopBaseModel):
    speed: str = ""
    rhythm: str = ""


class Tone(WorkshopBaseModel):
    primary: str = ""
    secondary: str = ""


class VoiceFingerprint(WorkshopBaseModel):
    """How the student writes: structure, diction, pacing and tone."""

    sentence_structure: SentenceStructure = Field(default_factory=SentenceStructure)
    vocabulary: Vocabulary = Field(default_factory=Vocabulary)
    pacing: Pacing = Field(default_factory=Pacing)
    tone: Tone = Field(default_factory=Tone)


class ExperienceFingerprint(WorkshopBaseModel):
    """What makes the experience itself non-generic."""

    unusual_circumstance: dict[str, Any] | None = None
    unexpected_emotion: dict[str, Any] | None = None
    contrary_insight: dict[str, Any] | None = None
    specific_sensory_anchor: dict[str, Any] | None = None
    unique_relationship: dict[str, Any] | None = None
    cultural_specificity: dict[str, Any] | None = None
    anti_pattern_flags: dict[str, Any] = Field(default_factory=dict)
    divergence_requirements: dict[str, Any] = Field(default_factory=dict)
    quality_anchors: list[dict[str, Any]] = Field(default_factory=list)
    confidence_score: float | None = None


# --- Rubric -----------------------------------------------------------------


class DimensionEvidence(WorkshopBaseModel):
    justification: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class DimensionScore(WorkshopBaseModel):
    """Score for one rubric dimension; ``final_score`` is the calibrated value."""

    dimension_name: str
    raw_score: float = Field(ge=0, le=10)
    final_score: float | None = None
    evidence: DimensionEvidence = Field(default_factory=DimensionEvidence)


class RubricReply(WorkshopBaseModel):
    """Rubric analysis exactly as returned by the generation service."""

    dimensions: list[DimensionScore] = Field(min_length=1)
    narrative_quality_index: float | None = Field(default=None, ge=0, le=100)
    overall_strengths: list[str] = Field(default_factory=list)
    overall_weaknesses: list[str] = Field(default_factory=list)


class RubricAnalysis(WorkshopBaseModel):
    """Rubric analysis after deterministic calibration."""

    dimensions: list[DimensionScore]
    raw_narrative_quality_index: float
    narrative_quality_index: float
    overall_strengths: list[str] = Field(default_factory=list)
    overall_weaknesses: list[str] = Field(default_factory=list)


# --- Workshop items ---------------------------------------------------------


class RuleFinding(WorkshopBaseModel):
    """A single problem spotted by the rule engine or the judge."""

    category: str = "general"
    severity: Literal["critical", "warning"] = "warning"
    message: str = ""
    evidence: str = ""
    fix_hint: str = Field(
        default="",
        validation_alias=AliasChoices("fix_hint", "fixHint", "suggestion"),
    )

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value: Any) -> str:
        return "critical" if str(value).strip().lower() == "critical" else "warning"


class ScoreBreakdown(WorkshopBaseModel):
    """Judge score split into the five weighted components.

    A component the judge left out stays ``None``; ``total`` is only defined
    when all five are present.
    """

    purposeful_contribution: float | None = None
    storytelling_compelling: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "storytelling_compelling",
            "storytellingCompelling",
            "storytelling_strength",
            "storytellingStrength",
        ),
    )
    authenticity: float | None = None
    originality: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "originality", "structural_originality", "structuralOriginality"
        ),
    )
    word_efficiency: float | None = None

    @field_validator(*COMPONENT_WEIGHTS.keys())
    @classmethod
    def _clamp_component(
        cls, value: float | None, info: ValidationInfo
    ) -> float | None:
        if value is None:
            return None
        return max(0.0, min(float(value), float(COMPONENT_WEIGHTS[info.field_name])))

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, name) is not None for name in COMPONENT_WEIGHTS)

    @property
    def total(self) -> float | None:
        if not self.is_complete:
            return None
        return sum(getattr(self, name) for name in COMPONENT_WEIGHTS)


class ValidationResult(WorkshopBaseModel):
    """Outcome of validating one suggestion in one attempt."""

    is_valid: bool
    quality_score: float = Field(ge=0, le=100)
    score_breakdown: ScoreBreakdown | None = None
    failures: list[RuleFinding] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    retry_guidance: str = ""
    efficiency_flags: list[str] = Field(default_factory=list)
    # False for fail-open defaults and pre-filter fast fails
    judged: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def verdict(self) -> str:
        if self.quality_score >= 90:
            return "excellent"
        if self.quality_score >= 70:
            return "good"
        return "needs_work"


class Suggestion(WorkshopBaseModel):
    """Proposed replacement text. Immutable; regeneration creates new ones."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True
    )

    type: SuggestionType
    # Blank text is left to the rule engine, which fails it as critical
    text: str
    rationale: str = ""
    validation: ValidationResult | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace(" ", "_").replace("-", "_")
        return value


class WorkshopItem(WorkshopBaseModel):
    """One improvable excerpt of the essay with its candidate suggestions."""

    id: str = ""
    quote: str = Field(min_length=1)
    problem: str = ""
    why_it_matters: str = ""
    severity: str = "medium"
    rubric_category: str = ""
    suggestions: list[Suggestion] = Field(default_factory=list)

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> str:
        normalized = str(value or "").strip().lower()
        return normalized if normalized in SEVERITY_LEVELS else "medium"

    @field_validator("suggestions", mode="before")
    @classmethod
    def _valid_capped_suggestions(cls, value: Any) -> Any:
        value = _keep_valid_entries(Suggestion, value)
        if isinstance(value, list):
            return value[:MAX_SUGGESTIONS_PER_ITEM]
        return value


class WorkshopBatchReply(WorkshopBaseModel):
    workshop_items: list[WorkshopItem] = Field(default_factory=list)

    @field_validator("workshop_items", mode="before")
    @classmethod
    def _valid_items(cls, value: Any) -> Any:
        return _keep_valid_entries(WorkshopItem, value)


class SuggestionsReply(WorkshopBaseModel):
    suggestions: list[Suggestion] = Field(default_factory=list)

    @field_validator("suggestions", mode="before")
    @classmethod
    def _valid_suggestions(cls, value: Any) -> Any:
        return _keep_valid_entries(Suggestion, value)


class JudgeVerdict(WorkshopBaseModel):
    """One entry of the batched judge reply."""

    suggestion_type: str | None = None
    is_valid: bool = True
    quality_score: float | None = None
    score_breakdown: ScoreBreakdown | None = None
    failures: list[RuleFinding] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    retry_guidance: str = ""
    efficiency_flags: list[str] = Field(default_factory=list)


class JudgeReply(WorkshopBaseModel):
    validations: list[JudgeVerdict] = Field(default_factory=list)


# --- Stage 3 result ---------------------------------------------------------


class ValidationSummary(WorkshopBaseModel):
    average_quality: float = 0.0
    excellent_count: int = 0
    good_count: int = 0
    needs_work_count: int = 0
    total_suggestions: int = 0
    items_dropped: int = 0
    regeneration_calls: int = 0


class WorkshopResult(WorkshopBaseModel):
    """Final output of the pipeline."""

    narrative_quality_index: float | None = None
    overall_strengths: list[str] = Field(default_factory=list)
    overall_weaknesses: list[str] = Field(default_factory=list)
    items: list[WorkshopItem] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)

# processing/quality_validator.py
"""Two-phase quality gate for suggestion text.

Phase one is the offline rule engine; anything with a critical finding fails
immediately. Phase two sends the survivors for one item to the semantic judge
in a single call. When the judge is unavailable the unjudged suggestions fail
open with ``FAIL_OPEN_SCORE`` so an outage never empties the workshop.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from agents.quality_judge_agent import JudgeEntry, QualityJudgeAgent
from config import settings
from core.exceptions import ValidationJudgeError
from core.usage import TokenUsage
from processing.rule_engine import Finding, RuleReport, check_text

from models import JudgeVerdict, RuleFinding, Suggestion, ValidationResult

logger = structlog.get_logger(__name__)


def _normalize_type(value: str | None) -> str:
    return (value or "").strip().lower().replace(" ", "_").replace("-", "_")


def _to_rule_finding(finding: Finding) -> RuleFinding:
    return RuleFinding(
        category=finding.category,
        severity=finding.severity,
        message=finding.message,
        evidence=finding.evidence,
        fix_hint=finding.fix_hint,
    )


@dataclass
class ValidationOutcome:
    """Results aligned index-for-index with the validated suggestions."""

    results: list[ValidationResult] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    judge_available: bool = True


class QualityValidator:
    def __init__(
        self,
        judge: QualityJudgeAgent,
        pass_threshold: float = settings.QUALITY_PASS_THRESHOLD,
        fail_open_score: float = settings.FAIL_OPEN_SCORE,
        prefilter_fail_score: float = settings.PREFILTER_FAIL_SCORE,
    ) -> None:
        self.judge = judge
        self.pass_threshold = pass_threshold
        self.fail_open_score = fail_open_score
        self.prefilter_fail_score = prefilter_fail_score

    def passes(self, result: ValidationResult) -> bool:
        """Judged results need the flag and the threshold; fail-open results pass."""
        if not result.is_valid:
            return False
        if not result.judged:
            return True
        return result.quality_score >= self.pass_threshold

    @staticmethod
    def guidance_for(result: ValidationResult) -> list[str]:
        """Retry guidance and fix hints carried by a failed result."""
        lines: list[str] = []
        if result.retry_guidance:
            lines.append(result.retry_guidance)
        for failure in result.failures:
            if failure.fix_hint:
                evidence = f' ("{failure.evidence}")' if failure.evidence else ""
                lines.append(f"{failure.message}{evidence}: {failure.fix_hint}")
        return lines

    def _prefilter_failure(self, report: RuleReport) -> ValidationResult:
        critical = report.critical
        return ValidationResult(
            is_valid=False,
            quality_score=self.prefilter_fail_score,
            failures=[_to_rule_finding(f) for f in critical + report.warnings],
            retry_guidance=" ".join(f.fix_hint for f in critical),
            efficiency_flags=report.efficiency_flags,
            judged=False,
        )

    def _fail_open(self, report: RuleReport) -> ValidationResult:
        return ValidationResult(
            is_valid=True,
            quality_score=self.fail_open_score,
            failures=[_to_rule_finding(f) for f in report.warnings],
            strengths=["Validation unavailable - assuming acceptable"],
            efficiency_flags=report.efficiency_flags,
            judged=False,
        )

    def _from_verdict(
        self, verdict: JudgeVerdict, report: RuleReport
    ) -> ValidationResult:
        breakdown = verdict.score_breakdown
        if breakdown is not None and breakdown.is_complete:
            score = breakdown.total
        elif verdict.quality_score is not None:
            if breakdown is not None:
                logger.debug(
                    "Partial score breakdown; using reported score",
                    suggestion_type=verdict.suggestion_type,
                )
            score = verdict.quality_score
        else:
            logger.warning("Judge verdict carried no score; failing open.")
            return self._fail_open(report)
        score = max(0.0, min(100.0, float(score)))

        flags = list(verdict.efficiency_flags)
        flags.extend(f for f in report.efficiency_flags if f not in flags)
        return ValidationResult(
            is_valid=verdict.is_valid,
            quality_score=score,
            score_breakdown=verdict.score_breakdown,
            failures=list(verdict.failures)
            + [_to_rule_finding(f) for f in report.warnings],
            strengths=verdict.strengths,
            retry_guidance=verdict.retry_guidance,
            efficiency_flags=flags,
            judged=True,
        )

    @staticmethod
    def _match_verdicts(
        suggestions: list[Suggestion], verdicts: list[JudgeVerdict]
    ) -> list[JudgeVerdict | None]:
        """Pair verdicts with suggestions by type, then by position."""
        matched: list[JudgeVerdict | None] = [None] * len(suggestions)
        unused = list(range(len(verdicts)))
        for i, suggestion in enumerate(suggestions):
            for j in unused:
                if _normalize_type(verdicts[j].suggestion_type) == suggestion.type.value:
                    matched[i] = verdicts[j]
                    unused.remove(j)
                    break
        for i in range(len(suggestions)):
            if matched[i] is None and unused:
                matched[i] = verdicts[unused.pop(0)]
        return matched

    async def validate(
        self,
        quote: str,
        suggestions: list[Suggestion],
        *,
        voice_tone: str = "authentic",
        attempt_number: int = 1,
        max_words: int = 350,
    ) -> ValidationOutcome:
        """Validate sibling ``suggestions`` for one item."""
        outcome = ValidationOutcome(results=[None] * len(suggestions))  # type: ignore[list-item]
        reports = [check_text(s.text) for s in suggestions]

        pending: list[int] = []
        for i, report in enumerate(reports):
            if report.has_critical:
                outcome.results[i] = self._prefilter_failure(report)
                logger.info(
                    "Suggestion failed pre-filter",
                    suggestion_type=suggestions[i].type.value,
                    rules=[f.rule for f in report.critical],
                )
            else:
                pending.append(i)

        if not pending:
            return outcome

        entries = [
            JudgeEntry(
                type=suggestions[i].type.value,
                text=suggestions[i].text,
                warnings=[f'{f.message}: "{f.evidence}"' for f in reports[i].warnings],
                flags=reports[i].efficiency_flags,
            )
            for i in pending
        ]
        verdicts: list[JudgeVerdict] = []
        try:
            reply = await self.judge.judge(
                quote,
                entries,
                voice_tone=voice_tone,
                attempt_number=attempt_number,
                max_words=max_words,
            )
            verdicts = reply.data.validations
            outcome.usage.add(reply.usage)
        except ValidationJudgeError:
            outcome.judge_available = False

        if outcome.judge_available and len(verdicts) < len(pending):
            logger.warning(
                "Judge returned fewer verdicts than suggestions",
                expected=len(pending),
                received=len(verdicts),
            )

        pending_suggestions = [suggestions[i] for i in pending]
        for i, verdict in zip(
            pending, self._match_verdicts(pending_suggestions, verdicts)
        ):
            if verdict is None:
                outcome.results[i] = self._fail_open(reports[i])
            else:
                outcome.results[i] = self._from_verdict(verdict, reports[i])
        return outcome

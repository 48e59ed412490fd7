# processing/rule_engine.py
"""Deterministic, offline checks for suggestion text.

Everything here is a pure function of the input string. Pattern rules live in
``PATTERN_RULES``; the structural checks (rhythm, description ratio, ...) are
plain functions listed in ``STRUCTURAL_CHECKS``. A ``critical`` finding means
the text fails without consulting the judge; ``warning`` findings and
informational flags are handed to the judge as context.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

Severity = Literal["critical", "warning"]

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_AGENT_RE = re.compile(r"\b(I|my|me|we|our)\b", re.IGNORECASE)
_SENSORY_RE = re.compile(
    r"\b(saw|heard|felt|smelled|tasted|touched|noticed)\b", re.IGNORECASE
)
_REFLECTIVE_RE = re.compile(
    r"\b(realized|understood|learned|thought|knew|discovered)\b", re.IGNORECASE
)


@dataclass(frozen=True)
class Finding:
    rule: str
    category: str
    severity: Severity
    message: str
    evidence: str
    fix_hint: str
    informational: bool = False


@dataclass(frozen=True)
class Rule:
    """A regex rule; the first match in the text produces one finding."""

    name: str
    pattern: re.Pattern[str]
    category: str
    severity: Severity
    message: str
    hint: str
    informational: bool = False

    def apply(self, text: str) -> list[Finding]:
        match = self.pattern.search(text)
        if not match:
            return []
        return [
            Finding(
                rule=self.name,
                category=self.category,
                severity=self.severity,
                message=self.message,
                evidence=match.group(0),
                fix_hint=self.hint,
                informational=self.informational,
            )
        ]


@dataclass(frozen=True)
class RuleReport:
    findings: tuple[Finding, ...] = field(default_factory=tuple)

    @property
    def critical(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == "critical"]

    @property
    def warnings(self) -> list[Finding]:
        return [
            f for f in self.findings if f.severity == "warning" and not f.informational
        ]

    @property
    def efficiency_flags(self) -> list[str]:
        return [
            f'{f.message}: "{f.evidence}" - {f.fix_hint}'
            for f in self.findings
            if f.informational
        ]

    @property
    def has_critical(self) -> bool:
        return any(f.severity == "critical" for f in self.findings)


BANNED_CLICHES = (
    "tapestry",
    "realm",
    "testament",
    "showcase",
    "delve",
    "underscore",
    "myriad",
    "plethora",
    "quintessential",
    "holistic",
)

OVERUSED_LITERARY_WORDS = (
    "glint",
    "faint",
    "sharp",
    "crisp",
    "delicate",
    "vibrant",
    "shimmer",
    "gleam",
    "cascade",
    "weave",
    "thread",
)


def _word_alternation(words: tuple[str, ...]) -> str:
    return r"\b(?:" + "|".join(words) + r")(?:s|es|d|ed|ing)?\b"


PATTERN_RULES: tuple[Rule, ...] = (
    Rule(
        name="passive_voice",
        pattern=re.compile(
            r"\b(?:it\s+was\s+\w+ed|was\s+\w+(?:ing|ed)|were\s+\w+(?:ing|ed))\b",
            re.IGNORECASE,
        ),
        category="passive_voice",
        severity="warning",
        message="Passive voice weakens agency - the student should be the actor",
        hint="Rewrite with the student as the active subject doing the action.",
    ),
    Rule(
        name="summary_language",
        pattern=re.compile(
            r"this\s+(?:taught|showed|helped)\s+me"
            r"|i\s+learned\s+that"
            r"|from\s+this,?\s+i\s+(?:realized|learned|understood)"
            r"|this\s+experience\s+(?:taught|showed)",
            re.IGNORECASE,
        ),
        category="generic_insight",
        severity="warning",
        message="Summary language tells rather than shows",
        hint="Show the realization through a specific moment or changed behavior.",
    ),
    Rule(
        name="banned_cliche",
        pattern=re.compile(_word_alternation(BANNED_CLICHES), re.IGNORECASE),
        category="ai_language",
        severity="critical",
        message="Banned cliché vocabulary that reads as machine-written",
        hint="Replace with a plain word a student would actually use.",
    ),
    Rule(
        name="assistant_boilerplate",
        pattern=re.compile(
            r"as an ai(?: language model)?|i hope this helps|here(?:'s| is) (?:a|the|your) (?:revised|rewritten)",
            re.IGNORECASE,
        ),
        category="ai_language",
        severity="critical",
        message="Assistant boilerplate leaked into the suggestion",
        hint="Return only the replacement text itself.",
    ),
    Rule(
        name="convergent_opening",
        pattern=re.compile(
            r"^\s*(?:(?:As|When|While|After|Before)\s+I\s+"
            r"|(?:Standing|Sitting|Walking|Running|Looking|Watching|Holding)\s+"
            r"|The\s+(?:golden|bright|vibrant|faint|sharp|soft|dim)\s+)",
            re.IGNORECASE,
        ),
        category="ai_convergence",
        severity="warning",
        message="AI convergence risk: formulaic opening",
        hint="Consider a varied structural approach for the first sentence.",
        informational=True,
    ),
    Rule(
        name="overused_literary_vocabulary",
        pattern=re.compile(_word_alternation(OVERUSED_LITERARY_WORDS), re.IGNORECASE),
        category="ai_convergence",
        severity="warning",
        message="Overused literary vocabulary",
        hint="Prefer more natural, student-appropriate word choices.",
        informational=True,
    ),
    Rule(
        name="em_dash_insight_ending",
        pattern=re.compile(r"(?:—|--)[^—\-]+\.\s*$"),
        category="ai_convergence",
        severity="warning",
        message="Em-dash insight ending",
        hint="Vary the closing strategy instead of ending on a dashed realization.",
        informational=True,
    ),
    Rule(
        name="flowery_comparison",
        pattern=re.compile(
            r"like\s+an?\s+\w+\s+(?:washing|crashing|flowing|blooming|rising|falling|sweeping)"
            r"|as\s+if\s+\w+\s+were",
            re.IGNORECASE,
        ),
        category="over_storytelling",
        severity="warning",
        message="Potentially flowery comparison",
        hint="Keep it only if it adds insight or reveals character.",
        informational=True,
    ),
    Rule(
        name="adjective_chain",
        pattern=re.compile(r"\b\w+,\s+\w+,\s+(?:and\s+)?\w+\s+\w+", re.IGNORECASE),
        category="word_efficiency",
        severity="warning",
        message="Adjective chain detected",
        hint="Verify each adjective reveals character or insight, not decoration.",
        informational=True,
    ),
)


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def check_rhythmic_repetition(text: str) -> list[Finding]:
    """Flag three or more sentences that all sit within 3 words of the mean."""
    lengths = [len(s.split()) for s in split_sentences(text)]
    if len(lengths) < 3:
        return []
    avg = sum(lengths) / len(lengths)
    if all(abs(length - avg) < 3 for length in lengths):
        return [
            Finding(
                rule="rhythmic_repetition",
                category="ai_convergence",
                severity="warning",
                message="Rhythmic repetition",
                evidence=f"all sentences ~{round(avg)} words",
                fix_hint="Vary sentence length and structure.",
                informational=True,
            )
        ]
    return []


def check_repeated_openers(text: str) -> list[Finding]:
    """Flag the same first word opening three or more sentences."""
    openers = [s.split()[0].lower() for s in split_sentences(text) if s.split()]
    if len(openers) < 3:
        return []
    word, count = Counter(openers).most_common(1)[0]
    if count >= 3:
        return [
            Finding(
                rule="repeated_openers",
                category="ai_convergence",
                severity="warning",
                message="Repetitive sentence openings",
                evidence=f'{count} sentences start with "{word}"',
                fix_hint="Open sentences with action, dialogue, or thought for variety.",
                informational=True,
            )
        ]
    return []


def check_description_saturation(text: str) -> list[Finding]:
    """Flag text where more than half the sentences are pure sensory description."""
    sentences = split_sentences(text)
    if len(sentences) < 2:
        return []
    sensory = [
        s for s in sentences if _SENSORY_RE.search(s) and not _REFLECTIVE_RE.search(s)
    ]
    ratio = len(sensory) / len(sentences)
    if ratio > 0.5:
        return [
            Finding(
                rule="description_saturation",
                category="over_storytelling",
                severity="warning",
                message="Description saturation",
                evidence=f"{round(ratio * 100)}% of sentences are pure description",
                fix_hint="Balance description with insight or character revelation.",
                informational=True,
            )
        ]
    return []


def check_scene_setting_without_agency(text: str) -> list[Finding]:
    """Flag long descriptive sentences in which the student never acts."""
    for sentence in split_sentences(text):
        if (
            len(sentence) > 100
            and len(sentence.split()) > 15
            and not _AGENT_RE.search(sentence)
        ):
            return [
                Finding(
                    rule="scene_setting_without_agency",
                    category="over_storytelling",
                    severity="warning",
                    message="Long scene-setting without student agency",
                    evidence=sentence[:60] + "...",
                    fix_hint="Verify this reveals character or advances the narrative.",
                    informational=True,
                )
            ]
    return []


STRUCTURAL_CHECKS: tuple[Callable[[str], list[Finding]], ...] = (
    check_rhythmic_repetition,
    check_repeated_openers,
    check_description_saturation,
    check_scene_setting_without_agency,
)


def check_text(text: str) -> RuleReport:
    """Run every pattern rule and structural check against ``text``."""
    if not text or not text.strip():
        return RuleReport(
            findings=(
                Finding(
                    rule="empty_text",
                    category="missing_specificity",
                    severity="critical",
                    message="Suggestion text is empty",
                    evidence="",
                    fix_hint="Provide concrete replacement text.",
                ),
            )
        )
    findings: list[Finding] = []
    for rule in PATTERN_RULES:
        findings.extend(rule.apply(text))
    for check in STRUCTURAL_CHECKS:
        findings.extend(check(text))
    return RuleReport(findings=tuple(findings))

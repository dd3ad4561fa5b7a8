"""
Guardian summary builder for SonoReport.

Explains a report's findings and impression to a child's guardian.
Two providers implement the same interface:

- FallbackSummaryProvider: deterministic, always available
- AISummaryProvider: asks the language model for a richer wording

The AI path only ever enriches the fallback; any failure there is
absorbed and the fallback is returned instead.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from sonoreport.core.guardian_guide import build_guardian_guide
from sonoreport.core.llm_engine import LLMEngine, get_llm_engine
from sonoreport.core.redaction import redact
from sonoreport.models.schemas import (
    GuardianSummary,
    GuardianSummaryResult,
    SummarySource,
)
from sonoreport.utils.logger import get_logger

logger = get_logger("guardian_summary")


MAX_KEY_POINTS = 4
MAX_NEXT_STEPS = 3
MAX_REASSURANCE = 3

DEFAULT_NEXT_STEPS = (
    "Please discuss any further tests or treatment plans with your doctor.",
    "If symptoms continue or anything worries you, let the clinic know.",
)

SYSTEM_PROMPT = "\n".join([
    "You are a pediatric radiologist explaining an ultrasound report to a child's guardian.",
    "Write a guardian-facing explanation based only on the Findings and Impression.",
    "Use simple words and short sentences.",
    "Do not add any new diagnosis or speculation.",
    "Keep it short enough to fit on one A4 page.",
    "Output nothing but JSON.",
    "The only allowed JSON keys are summary, keyPoints, nextSteps, reassurance.",
    "summary is 2-3 sentences.",
    "keyPoints has 3-4 items.",
    "nextSteps has 2-3 items.",
    "reassurance has exactly 2 items.",
    "Do not put bullets or numbers in front of any item.",
])

# Bullets, or list numbers like "1." / "2)" followed by whitespace
_LEADING_MARKER = re.compile(r"^(?:[\s*\-•]+|\d+[.)](?:\s+|$))+")
_WHITESPACE_RUN = re.compile(r"\s+")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")
_NEWLINE_RUN = re.compile(r"\n+")


def clean_text(value: str) -> str:
    """Unify line breaks, collapse spaces and blank lines, trim."""
    value = value.replace("\r\n", "\n")
    value = _HORIZONTAL_SPACE.sub(" ", value)
    value = _NEWLINE_RUN.sub("\n", value)
    return value.strip()


def clean_line(value: str) -> str:
    """Strip leading bullet/number glyphs and collapse internal whitespace."""
    value = _LEADING_MARKER.sub("", value)
    return _WHITESPACE_RUN.sub(" ", value).strip()


def coerce_list(value: Any, fallback: Sequence[str], max_items: int) -> List[str]:
    """
    Validate a list field from the model.

    Accepts a JSON array or a newline-separated string. Falls back when
    nothing usable remains.
    """
    if isinstance(value, list):
        raw = value
    elif isinstance(value, str):
        raw = _NEWLINE_RUN.split(value)
    else:
        raw = []

    cleaned = [clean_line(str(item)) for item in raw if item is not None]
    cleaned = [item for item in cleaned if item]
    return list(cleaned or fallback)[:max_items]


def coerce_summary(value: Any, fallback: str) -> str:
    """Validate the summary field from the model."""
    if not isinstance(value, str):
        return fallback
    return clean_text(value) or fallback


class SummaryProvider(ABC):
    """Produces a guardian summary from redacted findings and impression."""

    source: SummarySource

    @abstractmethod
    def summarize(self, findings: str, impression: str) -> GuardianSummary:
        """Build the summary; may raise on failure."""


class FallbackSummaryProvider(SummaryProvider):
    """Rule-table summary. Deterministic and never fails."""

    source = SummarySource.FALLBACK

    def summarize(self, findings: str, impression: str) -> GuardianSummary:
        guide = build_guardian_guide(findings, impression)

        if guide.terms:
            next_steps = [f"{term.title}: {term.description}" for term in guide.terms]
        else:
            next_steps = list(DEFAULT_NEXT_STEPS)

        return GuardianSummary(
            summary=guide.intro,
            key_points=guide.highlights[:MAX_KEY_POINTS],
            next_steps=next_steps[:MAX_NEXT_STEPS],
            reassurance=guide.reassurance[:MAX_REASSURANCE],
        )


class AISummaryProvider(SummaryProvider):
    """
    Model-written summary.

    Every field of the model answer is validated on its own; a missing
    or empty field takes the value from the fallback summary.
    """

    source = SummarySource.AI

    def __init__(self, engine: LLMEngine, fallback: GuardianSummary):
        self.engine = engine
        self.fallback = fallback

    def summarize(self, findings: str, impression: str) -> GuardianSummary:
        sections = []
        if findings:
            sections.append(f"Findings\n{findings}")
        if impression:
            sections.append(f"Impression\n{impression}")

        parsed = self.engine.complete_json(SYSTEM_PROMPT, "\n\n".join(sections))

        return GuardianSummary(
            summary=coerce_summary(parsed.get("summary"), self.fallback.summary),
            key_points=coerce_list(parsed.get("keyPoints"), self.fallback.key_points, MAX_KEY_POINTS),
            next_steps=coerce_list(parsed.get("nextSteps"), self.fallback.next_steps, MAX_NEXT_STEPS),
            reassurance=coerce_list(parsed.get("reassurance"), self.fallback.reassurance, MAX_REASSURANCE),
        )


class GuardianSummaryBuilder:
    """
    Chooses between the AI and fallback providers.

    The fallback is always computed first. The model is only called when
    there is something to explain and the engine is configured.
    """

    def __init__(self, engine: Optional[LLMEngine] = None):
        self._engine = engine
        self.fallback_provider = FallbackSummaryProvider()

    @property
    def engine(self) -> LLMEngine:
        if self._engine is None:
            self._engine = get_llm_engine()
        return self._engine

    def build(
        self,
        findings: Optional[str],
        impression: Optional[str]
    ) -> GuardianSummaryResult:
        """
        Build the guardian summary.

        Args:
            findings: Report findings (may contain identifiers; redacted here)
            impression: Report impression

        Returns:
            GuardianSummaryResult with the summary and its source
        """
        clean_findings = clean_text(redact(findings))
        clean_impression = clean_text(redact(impression))

        fallback = self.fallback_provider.summarize(clean_findings, clean_impression)
        fallback_result = GuardianSummaryResult(summary=fallback, source=self.fallback_provider.source)

        if not clean_findings and not clean_impression:
            return fallback_result
        if not self.engine.is_available():
            return fallback_result

        provider = AISummaryProvider(self.engine, fallback)
        try:
            summary = provider.summarize(clean_findings, clean_impression)
        except Exception as e:
            logger.info("Guardian summary model unavailable, using fallback", reason=type(e).__name__)
            return fallback_result

        logger.info(
            "Guardian summary generated",
            source=provider.source.value,
            key_points=len(summary.key_points),
            next_steps=len(summary.next_steps)
        )
        return GuardianSummaryResult(summary=summary, source=provider.source)


# Singleton instance
guardian_summary_builder = GuardianSummaryBuilder()

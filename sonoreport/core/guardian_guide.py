"""
Rule tables for the guardian guide.

The guide explains a report to a child's guardian without any model
call. Two ordered tables drive it:

- HIGHLIGHT_RULES: general remarks about the wording of the report
- TERM_GUIDES: lay explanations of common ultrasound terms

Both are scanned in table order and every rule that matches is kept,
so the output order never depends on where a word appears in the text.
Patterns cover English and Korean report wording.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple


def _patterns(*sources: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


@dataclass(frozen=True)
class GuideRule:
    id: str
    patterns: Tuple[Pattern[str], ...]
    text: str

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


@dataclass(frozen=True)
class TermGuide:
    id: str
    patterns: Tuple[Pattern[str], ...]
    title: str
    description: str

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


@dataclass(frozen=True)
class GuardianGuide:
    intro: str
    highlights: List[str]
    terms: List[TermGuide]
    reassurance: List[str]


HIGHLIGHT_RULES: Tuple[GuideRule, ...] = (
    GuideRule(
        id="normal",
        patterns=_patterns(
            r"특이\s*소견\s*없",
            r"특별한\s*이상\s*없",
            r"정상\s*(범위|소견)",
            r"\bnormal\b",
            r"unremarkable",
            r"within\s+normal\s+limits",
            r"no\s+(abnormal|evidence|sign|finding)",
        ),
        text=(
            "The report uses words like 'normal' or 'unremarkable'. "
            "This means no clear abnormality was seen."
        ),
    ),
    GuideRule(
        id="follow-up",
        patterns=_patterns(
            r"추적", r"재검", r"경과\s*관찰",
            r"follow[- ]?up", r"recheck", r"monitor", r"surveillance", r"f/u",
        ),
        text=(
            "The report may mention follow-up or a repeat exam. "
            "This means checking again after some time, together with your child's symptoms."
        ),
    ),
    GuideRule(
        id="compare",
        patterns=_patterns(
            r"비교", r"이전",
            r"previous", r"prior", r"compared", r"comparison",
        ),
        text=(
            "The report compares this exam with an earlier one. "
            "This is done to see whether anything has changed."
        ),
    ),
)

TERM_GUIDES: Tuple[TermGuide, ...] = (
    TermGuide(
        id="nodule",
        patterns=_patterns(r"결절", r"종괴", r"혹", r"\bnodule\b", r"\bmass\b", r"\blesion\b"),
        title="Nodule / lump",
        description=(
            "A small lump or bump. Its size and shape are checked, "
            "and it is watched over time if needed."
        ),
    ),
    TermGuide(
        id="cyst",
        patterns=_patterns(r"낭종", r"물혹", r"\bcyst\b"),
        title="Cyst",
        description="A small pocket filled with fluid. Most are simply watched to check their size.",
    ),
    TermGuide(
        id="inflammation",
        patterns=_patterns(r"염증", r"감염", r"inflamm", r"infection"),
        title="Inflammation / irritation",
        description=(
            "Tissue that is swollen or irritated. "
            "Whether treatment is needed is decided together with the symptoms."
        ),
    ),
    TermGuide(
        id="fluid",
        patterns=_patterns(
            r"액체", r"저류", r"삼출", r"복수", r"흉수",
            r"\bfluid\b", r"effusion", r"ascites", r"collection",
        ),
        title="Fluid collection",
        description=(
            "Fluid has gathered in one place. "
            "Its location and amount help decide what to do next."
        ),
    ),
    TermGuide(
        id="enlarged",
        patterns=_patterns(r"비대", r"확장", r"enlarged", r"dilat", r"dilation", r"dilated"),
        title="Enlargement / dilatation",
        description=(
            "A tube or organ looks larger than usual. "
            "The cause is checked and the change is followed over time."
        ),
    ),
    TermGuide(
        id="lymph",
        patterns=_patterns(r"림프", r"lymph"),
        title="Lymph node",
        description=(
            "A small structure that is part of the immune system. "
            "Its size and shape show whether it matters."
        ),
    ),
    TermGuide(
        id="stone",
        patterns=_patterns(r"결석", r"석회", r"calcification", r"\bstone\b"),
        title="Stone / calcification",
        description="A small hardened spot. Its location and size are checked.",
    ),
)

MAX_TERMS = 4

DEFAULT_INTRO = (
    "This guide explains the findings and the impression in plain words for guardians. "
    "Your doctor will give the final explanation."
)

DEFAULT_REASSURANCE = (
    "Ultrasound is a safe exam that uses no radiation.",
    "Most findings are watched calmly over time before any decision is made.",
    "Please feel free to ask any questions at the clinic.",
)

EMPTY_RECORD_HIGHLIGHTS = (
    "The exam record has not been entered yet. Please check your doctor's explanation first.",
    "Write down any questions in advance and ask them at the clinic.",
)

GENERIC_HIGHLIGHTS = (
    "The findings describe what was seen on the ultrasound.",
    "The impression briefly sums up what the findings mean.",
)


def build_guardian_guide(
    findings: Optional[str],
    impression: Optional[str]
) -> GuardianGuide:
    """
    Build the rule-based guide for a report.

    Args:
        findings: Findings text (already redacted)
        impression: Impression text (already redacted)

    Returns:
        GuardianGuide with highlights, up to four terms and reassurance
    """
    combined = f"{findings or ''}\n{impression or ''}".strip()

    if not combined:
        return GuardianGuide(
            intro=DEFAULT_INTRO,
            highlights=list(EMPTY_RECORD_HIGHLIGHTS),
            terms=[],
            reassurance=list(DEFAULT_REASSURANCE),
        )

    highlights = [rule.text for rule in HIGHLIGHT_RULES if rule.matches(combined)]
    if not highlights:
        highlights = list(GENERIC_HIGHLIGHTS)

    terms = [term for term in TERM_GUIDES if term.matches(combined)][:MAX_TERMS]

    return GuardianGuide(
        intro=DEFAULT_INTRO,
        highlights=highlights,
        terms=terms,
        reassurance=list(DEFAULT_REASSURANCE),
    )

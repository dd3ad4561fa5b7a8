"""
K-TIRADS management recommendations for thyroid nodules.

Maps a K-TIRADS category (1-5) and a measured size in millimetres to the
recommended next step. The table below is the clinical policy of the
system; thresholds are inclusive on the lower bound.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

CATEGORIES = (1, 2, 3, 4, 5)

GENERIC_ADVICE = (
    "Clinical correlation needed: consider appropriate follow-up or "
    "further evaluation (FNA, follow-up US)."
)


@dataclass(frozen=True)
class SizeBand:
    """Applies when size_mm >= min_size_mm."""
    min_size_mm: float
    action: str


@dataclass(frozen=True)
class CategoryRule:
    category: int
    label: str
    # Used verbatim when size does not matter for this category
    fixed: Optional[str] = None
    # Checked in order, largest threshold first
    bands: Tuple[SizeBand, ...] = ()

    @property
    def unknown_size(self) -> str:
        return (
            f"{self.label}. Insufficient size information: decide on FNA or "
            "follow-up US by clinical and imaging correlation."
        )


RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(
        category=1,
        label="K-TIRADS 1 (no nodule)",
        fixed="No nodule. Clinical follow-up US if indicated.",
    ),
    CategoryRule(
        category=2,
        label="K-TIRADS 2 (benign)",
        fixed="K-TIRADS 2 (benign). No FNA needed. Follow-up US only if clinically indicated.",
    ),
    CategoryRule(
        category=3,
        label="K-TIRADS 3 (low suspicion)",
        bands=(
            SizeBand(20, "≥20 mm: FNA recommended."),
            SizeBand(15, "15–19 mm: follow-up US recommended."),
            SizeBand(0, "<15 mm: optional follow-up US if clinically indicated."),
        ),
    ),
    CategoryRule(
        category=4,
        label="K-TIRADS 4 (intermediate suspicion)",
        bands=(
            SizeBand(15, "≥15 mm: FNA recommended."),
            SizeBand(10, "10–14 mm: follow-up US recommended."),
            SizeBand(0, "<10 mm: optional follow-up US if clinically indicated."),
        ),
    ),
    CategoryRule(
        category=5,
        label="K-TIRADS 5 (high suspicion)",
        bands=(
            SizeBand(10, "≥10 mm: FNA recommended."),
            SizeBand(5, "5–9 mm: consider FNA or close follow-up US."),
            SizeBand(0, "<5 mm: close follow-up US recommended."),
        ),
    ),
)

_RULES_BY_CATEGORY = {rule.category: rule for rule in RULES}


def coerce_category(value: Any) -> Optional[int]:
    """
    Coerce a model-supplied category to 1..5.

    Accepts numbers and numeric strings; anything else, including
    out-of-range values and booleans, gives None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number) or not number.is_integer():
        return None
    category = int(number)
    return category if category in CATEGORIES else None


def coerce_size_mm(value: Any) -> Optional[float]:
    """Return a finite, non-negative size in mm, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        size = float(value)
    elif isinstance(value, str):
        try:
            size = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(size) or size < 0:
        return None
    return size


def recommend(category: Any, size_mm: Any = None) -> str:
    """
    Look up the management recommendation.

    Args:
        category: K-TIRADS category (coerced with coerce_category)
        size_mm: Maximum nodule diameter in mm, or None when unknown

    Returns:
        Recommendation text; a generic advisory when the category is unusable
    """
    rule = _RULES_BY_CATEGORY.get(coerce_category(category))
    if rule is None:
        return GENERIC_ADVICE
    if rule.fixed is not None:
        return rule.fixed

    size = coerce_size_mm(size_mm)
    if size is None:
        return rule.unknown_size

    for band in rule.bands:
        if size >= band.min_size_mm:
            return f"{rule.label}. {band.action}"
    return GENERIC_ADVICE

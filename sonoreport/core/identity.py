"""
Patient identity derivation from a national registration number.

The 13-digit number encodes the birth date (YYMMDD) followed by a
century/sex digit. Everything here is a pure function: malformed input
yields the empty result, never an exception.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

_NON_DIGIT = re.compile(r"[^0-9]")
_HYPHENATED_ID = re.compile(r"^(\d{6})-(\d)(\d+)$")

# Century/sex digit -> century of birth
_CENTURY_BY_DIGIT = {
    1: 1900, 2: 1900, 5: 1900, 6: 1900,
    3: 2000, 4: 2000, 7: 2000, 8: 2000,
}


@dataclass(frozen=True)
class PatientIdentity:
    """Sex and age text derived for one exam."""
    sex: str = ""
    age_text: str = ""
    birth_date: Optional[date] = None

    @property
    def is_empty(self) -> bool:
        return not self.sex and not self.age_text


EMPTY_IDENTITY = PatientIdentity()


def parse_birth_date(national_id: Optional[str]) -> Optional[tuple[date, str]]:
    """
    Parse birth date and sex from a national registration number.

    Returns:
        (birth_date, "M" | "F"), or None if the number is unusable
    """
    digits = _NON_DIGIT.sub("", national_id or "")
    if len(digits) < 13:
        return None

    yy = int(digits[0:2])
    mm = int(digits[2:4])
    dd = int(digits[4:6])
    s = int(digits[6])

    century = _CENTURY_BY_DIGIT.get(s)
    if century is None:
        return None

    sex = "M" if s % 2 == 1 else "F"
    try:
        birth_date = date(century + yy, mm, dd)
    except ValueError:
        return None
    return birth_date, sex


def _coerce_exam_date(exam_date: Union[date, str, None]) -> date:
    if isinstance(exam_date, date):
        return exam_date
    if exam_date:
        try:
            # Accept full ISO timestamps as well as plain dates
            return date.fromisoformat(str(exam_date).strip()[:10])
        except ValueError:
            pass
    return date.today()


def format_age_text(birth_date: date, exam_date: date) -> str:
    """Render the age at exam as "{m}m", "{y}y" or "{y}y {m}m"."""
    months = (exam_date.year - birth_date.year) * 12 + (exam_date.month - birth_date.month)
    if exam_date.day < birth_date.day:
        months -= 1
    months = max(months, 0)

    years, rem_months = divmod(months, 12)
    if years == 0:
        return f"{rem_months}m"
    if rem_months == 0:
        return f"{years}y"
    return f"{years}y {rem_months}m"


def derive_identity(
    national_id: Optional[str],
    exam_date: Union[date, str, None] = None
) -> PatientIdentity:
    """
    Derive sex and age text for an exam.

    Args:
        national_id: Registration number, hyphenated or not
        exam_date: Exam date (date or ISO string); today when absent or invalid

    Returns:
        PatientIdentity, empty when the number cannot be parsed
    """
    parsed = parse_birth_date(national_id)
    if parsed is None:
        return EMPTY_IDENTITY

    birth_date, sex = parsed
    return PatientIdentity(
        sex=sex,
        age_text=format_age_text(birth_date, _coerce_exam_date(exam_date)),
        birth_date=birth_date,
    )


def mask_national_id(national_id: Optional[str]) -> str:
    """
    Mask a registration number for display.

    "990101-1234567" becomes "990101-1******"; other shapes keep their
    first 8 characters. Values of 8 characters or fewer are unchanged.
    """
    trimmed = (national_id or "").strip()
    if not trimmed:
        return ""

    match = _HYPHENATED_ID.match(trimmed)
    if match:
        birth, first, rest = match.groups()
        return f"{birth}-{first}{'*' * len(rest)}"

    if len(trimmed) <= 8:
        return trimmed
    return trimmed[:8] + "*" * (len(trimmed) - 8)

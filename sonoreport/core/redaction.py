"""
Identifier redaction for SonoReport.

Scrubs national registration numbers and long digit runs (chart numbers,
phone numbers) from free text before it is sent to any external model.
Over-matching is accepted: any word-bounded run of 8+ digits is removed.
The original value is discarded and cannot be recovered.
"""

import re
from typing import Dict, Mapping, Optional

REDACTED_TOKEN = "[REDACTED]"

# Order matters: the hyphenated ID first, then bare long digit runs
_REDACTION_PATTERNS = (
    re.compile(r"\b\d{6}-\d{7}\b"),
    re.compile(r"\b\d{8,}\b"),
)


def redact(text: Optional[str]) -> str:
    """
    Replace identifying digit sequences with the placeholder token.

    Args:
        text: Free text from the clinician (history, image context, findings)

    Returns:
        Text safe to transmit to an external collaborator
    """
    if not text:
        return ""
    for pattern in _REDACTION_PATTERNS:
        text = pattern.sub(REDACTED_TOKEN, text)
    return text


def redact_fields(fields: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """Redact every value of a mapping, returning a new dict."""
    return {name: redact(value) for name, value in fields.items()}

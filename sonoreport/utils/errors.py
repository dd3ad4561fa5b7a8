"""
Error types and message helpers for SonoReport.
"""

import json
from typing import Any, Optional


class DraftingError(Exception):
    """
    Raised when the drafting model cannot produce a usable draft.

    The message is shown to the clinician as-is, so it carries the
    collaborator's own error text whenever one is available.
    """

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def describe_error(err: Any) -> str:
    """
    Turn any raised value into a human-readable message.

    Checks, in order: exception message, a ``message`` / ``details`` /
    ``error_description`` attribute or key, a JSON dump, and finally str().
    """
    if isinstance(err, DraftingError):
        return err.message
    if isinstance(err, BaseException):
        text = str(err)
        if text:
            return text
        return type(err).__name__
    if isinstance(err, str):
        return err

    for key in ("message", "details", "error_description"):
        value = _lookup(err, key)
        if isinstance(value, str) and value:
            return value

    try:
        dumped = json.dumps(err)
    except (TypeError, ValueError):
        dumped = None
    if dumped and dumped != "{}":
        return dumped
    return str(err)


def _lookup(obj: Any, key: str) -> Optional[Any]:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)

"""
Text processing utilities for SonoReport.

Cleans and reshapes the free text returned by the drafting model
before it is stored or printed as a report:

- comparable-text normalization (comparison key only, never displayed)
- impression deduplication against the findings
- diagnosis-line compression
- one-sentence-per-line reflow
"""

import re
from typing import Optional

from sonoreport.utils.logger import get_logger

logger = get_logger("text_processor")


# Impressions whose normalized form starts with this many characters of the
# normalized findings are treated as an echo of the findings.
FINDINGS_ECHO_PREFIX = 160


class ReportTextProcessor:
    """
    Deterministic transformations over report text.

    Every method is pure: it takes text, returns text, and never raises
    for odd input. None is accepted anywhere a string is.
    """

    # "impression" header, optional :, -, en dash or em dash, optional space
    IMPRESSION_HEADER = re.compile(r"\bimpression\b\s*[:\-–—]?\s*", re.IGNORECASE)
    FINDINGS_HEADER = re.compile(r"^\s*findings\b\s*[:\-–—]?\s*", re.IGNORECASE)

    _LINE_BREAK = re.compile(r"\r\n|\r")
    _LINE_SPLIT = re.compile(r"\r\n|\r|\n")
    _HORIZONTAL_SPACE = re.compile(r"[ \t]+")
    _NEWLINE_RUN = re.compile(r"\n+")
    _PARAGRAPH_RUN = re.compile(r"\n{3,}")
    _PERIOD_BREAK = re.compile(r"\. +")
    _FULL_STOP_BREAK = re.compile(r"。 +")
    _TRAILING_TERMINATORS = re.compile(r"[.。]+$")

    def _unify_line_breaks(self, text: Optional[str]) -> str:
        return self._LINE_BREAK.sub("\n", text or "")

    def normalize(self, text: Optional[str]) -> str:
        """
        Build the comparison key for a piece of text.

        Line breaks are unified, horizontal whitespace and blank lines
        collapsed, the result trimmed and lower-cased.
        """
        text = self._unify_line_breaks(text)
        text = self._HORIZONTAL_SPACE.sub(" ", text)
        text = self._NEWLINE_RUN.sub("\n", text)
        return text.strip().lower()

    def extract_after_last_header(self, text: str) -> str:
        """Return the text after the last "impression" header, or the text unchanged."""
        matches = list(self.IMPRESSION_HEADER.finditer(text))
        if not matches:
            return text
        return text[matches[-1].end():].strip()

    def _echoes_findings(self, normalized_impression: str, normalized_findings: str) -> bool:
        """Whether an impression repeats the findings outright or starts with their first 160 characters."""
        if not normalized_findings:
            return False
        if normalized_impression == normalized_findings:
            return True
        if len(normalized_findings) >= FINDINGS_ECHO_PREFIX:
            if normalized_impression.startswith(normalized_findings[:FINDINGS_ECHO_PREFIX]):
                logger.info("Impression echoed findings, dropped", impression_length=len(normalized_impression))
                return True
        return False

    def clean_impression(
        self,
        impression_raw: Optional[str],
        findings_final: Optional[str]
    ) -> str:
        """
        Strip header echoes and findings duplication from a drafted impression.

        Args:
            impression_raw: Impression text as returned by the model
            findings_final: Findings after formatting

        Returns:
            The impression with case and formatting preserved, or "" when
            nothing diagnostic remains
        """
        raw = self._unify_line_breaks(impression_raw).strip()
        if not raw:
            return ""

        normalized_findings = self.normalize(findings_final)
        # Checked before header extraction too: an echoed findings text may
        # itself contain the word "impression"
        if self._echoes_findings(self.normalize(raw), normalized_findings):
            return ""

        cleaned = self.extract_after_last_header(raw)
        cleaned = self.FINDINGS_HEADER.sub("", cleaned, count=1).strip()

        normalized_impression = self.normalize(cleaned)
        if not normalized_impression:
            return ""
        if self._echoes_findings(normalized_impression, normalized_findings):
            return ""

        return cleaned

    def to_diagnosis_line(self, impression: Optional[str]) -> str:
        """
        Collapse a multi-line impression into one comma-joined diagnosis line.

        Each line loses its trailing "." / "。" run so no diagnosis in the
        joined line ends with a period.
        """
        lines = [
            self._TRAILING_TERMINATORS.sub("", line.strip()).strip()
            for line in self._LINE_SPLIT.split(impression or "")
        ]
        return ", ".join(line for line in lines if line)

    def reflow(self, text: Optional[str]) -> str:
        """
        Put each sentence on its own line.

        A period (or ideographic full stop) followed by spaces ends the line;
        three or more consecutive line breaks become a single blank line.
        Reflowing already reflowed text changes nothing.
        """
        text = self._unify_line_breaks(text)
        text = self._PERIOD_BREAK.sub(".\n", text)
        text = self._FULL_STOP_BREAK.sub("。\n", text)
        text = self._PARAGRAPH_RUN.sub("\n\n", text)
        return text.strip()


# Singleton instance
text_processor = ReportTextProcessor()

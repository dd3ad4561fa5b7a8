"""
Tests for report text processing.
"""

import pytest

from sonoreport.core.text_processor import FINDINGS_ECHO_PREFIX, text_processor


SAMPLES = [
    "",
    "Liver normal. Spleen normal.",
    "Liver normal.  Spleen normal.\r\n\r\n\r\nNo ascites.   ",
    "간 실질은 정상이다。 비장은 정상이다。  담낭 정상.",
    "Size 3.5 cm. Echogenic.\n\n\n\n\nNext paragraph. End",
    "  Mixed\tTABS\t\tand   spaces\r\nand CR LF  ",
    "A. \nB.",
]


class TestNormalize:
    """Test suite for comparable-text normalization."""

    def test_collapses_whitespace_and_lowercases(self):
        text = "  Hello\r\n\r\n  World\t\tX "
        assert text_processor.normalize(text) == "hello\n world x"

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = text_processor.normalize(text)
        assert text_processor.normalize(once) == once

    def test_none(self):
        assert text_processor.normalize(None) == ""


class TestCleanImpression:
    """Test suite for impression deduplication."""

    def test_empty(self):
        assert text_processor.clean_impression("   ", "Liver normal.") == ""
        assert text_processor.clean_impression(None, None) == ""

    def test_header_stripped(self):
        result = text_processor.clean_impression("Impression: Fatty liver", "Liver echogenic.")
        assert result == "Fatty liver"

    def test_last_header_wins(self):
        """Reasoning before the final header is dropped."""
        raw = "The impression is uncertain.\nIMPRESSION — Hepatomegaly"
        assert text_processor.clean_impression(raw, "") == "Hepatomegaly"

    def test_header_punctuation_variants(self):
        for raw in ("Impression - Cyst", "impression– Cyst", "IMPRESSION:Cyst", "Impression Cyst"):
            assert text_processor.clean_impression(raw, "") == "Cyst"

    def test_leading_findings_header_stripped(self):
        result = text_processor.clean_impression("Findings: Mild hydronephrosis", "Other text.")
        assert result == "Mild hydronephrosis"

    def test_no_header_kept_unchanged(self):
        result = text_processor.clean_impression("  Acute Appendicitis  ", "Appendix 8 mm.")
        assert result == "Acute Appendicitis"

    def test_equal_to_findings_dropped(self):
        findings = "liver   normal.\n\nspleen normal."
        assert text_processor.clean_impression("Liver normal.\nSpleen normal.", findings) == ""

    def test_findings_echo_prefix_dropped(self):
        findings = " ".join(["Liver normal in size and echogenicity without focal lesion."] * 4)
        assert len(text_processor.normalize(findings)) >= FINDINGS_ECHO_PREFIX

        impression = findings + " Additional conclusion."
        assert text_processor.clean_impression(impression, findings) == ""

    def test_findings_echo_containing_impression_word_dropped(self):
        """An echoed findings text that uses the word "impression" is still a duplicate."""
        findings = (
            "Liver normal in size and echogenicity without focal lesion. "
            "Gallbladder wall gives the impression of mild wall thickening without stone. "
            "Both kidneys normal in size without hydronephrosis. No ascites."
        )
        assert len(text_processor.normalize(findings)) >= FINDINGS_ECHO_PREFIX
        assert "impression" in findings[:FINDINGS_ECHO_PREFIX]

        impression = findings + " Mild cholecystitis"
        assert text_processor.clean_impression(impression, findings) == ""

    def test_short_findings_prefix_kept(self):
        """Below the prefix window a shared start is not a duplicate."""
        result = text_processor.clean_impression("Liver normal. Fatty change.", "Liver normal.")
        assert result == "Liver normal. Fatty change."

    def test_case_preserved(self):
        result = text_processor.clean_impression("Impression:  Acute Appendicitis  ", "")
        assert result == "Acute Appendicitis"


class TestDiagnosisLine:
    """Test suite for diagnosis compression."""

    def test_lines_joined_without_trailing_period(self):
        result = text_processor.to_diagnosis_line("Normal study.\n\nNo focal lesion.")
        assert result == "Normal study, No focal lesion"

    def test_sentence_periods_inside_a_line_kept(self):
        result = text_processor.to_diagnosis_line("S/P op. Fatty liver.\nGB sludge")
        assert result == "S/P op. Fatty liver, GB sludge"

    def test_terminator_only_line_dropped(self):
        assert text_processor.to_diagnosis_line("Cyst\n.\n") == "Cyst"

    def test_ideographic_full_stop_stripped(self):
        assert text_processor.to_diagnosis_line("지방간。") == "지방간"

    def test_multiple_terminators_stripped(self):
        assert text_processor.to_diagnosis_line("Cyst...") == "Cyst"

    def test_crlf_and_blank_lines(self):
        assert text_processor.to_diagnosis_line(" A \r\n\r\n B \r\n") == "A, B"

    def test_empty(self):
        assert text_processor.to_diagnosis_line("") == ""
        assert text_processor.to_diagnosis_line(None) == ""


class TestReflow:
    """Test suite for one-sentence-per-line formatting."""

    def test_sentence_per_line(self):
        assert text_processor.reflow("Liver normal. Spleen normal.") == "Liver normal.\nSpleen normal."

    def test_ideographic_full_stop(self):
        assert text_processor.reflow("A.  B。 C") == "A.\nB。\nC"

    def test_paragraph_runs_collapsed(self):
        assert text_processor.reflow("A.\n\n\n\nB") == "A.\n\nB"

    def test_decimal_not_split(self):
        assert text_processor.reflow("Nodule 3.5 cm.") == "Nodule 3.5 cm."

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = text_processor.reflow(text)
        assert text_processor.reflow(once) == once

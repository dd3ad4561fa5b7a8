"""
Tests for identifier redaction.
"""

from sonoreport.core.redaction import REDACTED_TOKEN, redact, redact_fields


class TestRedact:
    """Test suite for redact()."""

    def test_national_id_redacted(self):
        """Hyphenated 6-7 digit IDs are replaced."""
        assert redact("990101-1234567") == REDACTED_TOKEN

    def test_long_digit_run_redacted(self):
        """Runs of 8+ digits are replaced."""
        assert redact("01012345678") == REDACTED_TOKEN

    def test_short_digit_run_kept(self):
        """Seven digits are not an identifier."""
        assert redact("1234567") == "1234567"

    def test_embedded_in_sentence(self):
        text = "Chart 12345678, RRN 990101-1234567, nodule 12 mm"
        assert redact(text) == "Chart [REDACTED], RRN [REDACTED], nodule 12 mm"

    def test_hyphenated_phone_kept(self):
        """Short hyphenated groups are not matched."""
        assert redact("call 010-1234-5678") == "call 010-1234-5678"

    def test_digits_glued_to_letters_kept(self):
        """Word boundaries are required around the digit run."""
        assert redact("ID abc123456789") == "ID abc123456789"

    def test_empty_and_none(self):
        assert redact("") == ""
        assert redact(None) == ""


class TestRedactFields:
    """Test suite for redact_fields()."""

    def test_all_fields_redacted(self):
        fields = {"history": "chart 123456789", "context": None}
        result = redact_fields(fields)

        assert result == {"history": "chart [REDACTED]", "context": ""}
        # Input is left untouched
        assert fields["history"] == "chart 123456789"

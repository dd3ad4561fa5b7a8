"""
Tests for plain-text report rendering.
"""

from sonoreport.models.schemas import PlainTextReportRequest
from sonoreport.services.report_generator import ReportGenerator


def make_report(**overrides):
    fields = {
        "hospital_name": "Seoul Children's Clinic",
        "doctor_name": "Dr Kim",
        "license_no": "12345",
        "patient_name": "Hong Gildong",
        "chart_no": "C-001",
        "national_id": "990101-1234567",
        "exam_date": "2024-01-01",
        "clinical_history": "RUQ pain",
        "findings": "Liver normal.\nSpleen normal.",
        "impression": "Unremarkable abdominal ultrasound",
        "recommendations": "Clinical follow-up.",
    }
    fields.update(overrides)
    return PlainTextReportRequest(**fields)


class TestReportGenerator:
    """Test suite for ReportGenerator."""

    def setup_method(self):
        self.generator = ReportGenerator()

    def test_full_report(self):
        text = self.generator.generate_text(make_report())

        assert text.startswith("Ultrasound report\nSeoul Children's Clinic\n\nPatient: Hong Gildong\n")
        assert "RRN: 990101-1******\n" in text
        assert "1234567" not in text
        assert "Findings\nLiver normal.\nSpleen normal.\n" in text
        assert text.endswith("Signed: Dr Kim / 12345\n")

    def test_age_and_sex_derived_from_national_id(self):
        text = self.generator.generate_text(make_report())
        assert "Age/Sex: 25y / M\n" in text

    def test_explicit_age_and_sex_kept(self):
        text = self.generator.generate_text(make_report(age_text="7y", sex="F"))
        assert "Age/Sex: 7y / F\n" in text

    def test_no_separator_when_only_one_present(self):
        text = self.generator.generate_text(make_report(national_id="", sex="F"))
        assert "Age/Sex: F\n" in text

    def test_blank_lines_collapsed(self):
        text = self.generator.generate_text(make_report(
            hospital_name="",
            clinical_history="",
            recommendations="",
            doctor_name="",
            license_no="",
        ))

        assert text.startswith("Ultrasound report\n\nPatient:")
        assert "\n\n\n" not in text
        assert "Signed" not in text
        assert text.endswith("Recommendations\n")

    def test_signature_without_license(self):
        text = self.generator.generate_text(make_report(license_no=""))
        assert text.endswith("Signed: Dr Kim\n")

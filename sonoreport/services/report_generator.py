"""
Plain-text report generator for SonoReport.

Renders a finished ultrasound report as plain text for copy/paste into
hospital systems. The national ID is always printed masked.
"""

import re
from typing import Optional

from jinja2 import Environment, StrictUndefined

from sonoreport.core.identity import derive_identity, mask_national_id
from sonoreport.models.schemas import PlainTextReportRequest
from sonoreport.utils.logger import get_logger

logger = get_logger("report_generator")

_BLANK_LINE_RUN = re.compile(r"\n(?:[ \t]*\n)+")


class ReportGenerator:
    """
    Generates plain-text ultrasound reports.

    Uses a Jinja2 template; repeated blank lines left by empty sections
    are collapsed after rendering.
    """

    REPORT_TEMPLATE = """\
Ultrasound report
{{ hospital_name }}

Patient: {{ patient_name }}
Chart No: {{ chart_no }}
RRN: {{ national_id }}
Age/Sex: {{ age_text }}{% if age_text and sex %} / {% endif %}{{ sex }}
Exam date: {{ exam_date }}

Clinical history
{{ clinical_history }}

Findings
{{ findings }}

Impression
{{ impression }}

Recommendations
{{ recommendations }}

{% if signature %}Signed: {{ signature }}{% endif %}
"""

    def __init__(self):
        self._env = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._template = self._env.from_string(self.REPORT_TEMPLATE)

    def _prepare_template_data(self, report: PlainTextReportRequest) -> dict:
        """Prepare data for template rendering."""
        age_text = report.age_text.strip()
        sex = report.sex.strip()
        if not age_text and not sex and report.national_id:
            identity = derive_identity(report.national_id, report.exam_date or None)
            age_text, sex = identity.age_text, identity.sex

        signature = " / ".join(part for part in (report.doctor_name, report.license_no) if part)

        return {
            "hospital_name": report.hospital_name,
            "patient_name": report.patient_name,
            "chart_no": report.chart_no,
            "national_id": mask_national_id(report.national_id),
            "age_text": age_text,
            "sex": sex,
            "exam_date": report.exam_date,
            "clinical_history": report.clinical_history,
            "findings": report.findings,
            "impression": report.impression,
            "recommendations": report.recommendations,
            "signature": signature,
        }

    def generate_text(self, report: PlainTextReportRequest) -> str:
        """
        Render the report.

        Args:
            report: Finished report fields

        Returns:
            Report text with single blank lines between sections and a
            trailing newline
        """
        rendered = self._template.render(**self._prepare_template_data(report))
        text = _BLANK_LINE_RUN.sub("\n\n", rendered).strip() + "\n"

        logger.info("Plain-text report generated", length=len(text))
        return text


# Lazy-loaded singleton
_report_generator: Optional[ReportGenerator] = None


def get_report_generator() -> ReportGenerator:
    """Get or create report generator singleton."""
    global _report_generator
    if _report_generator is None:
        _report_generator = ReportGenerator()
    return _report_generator

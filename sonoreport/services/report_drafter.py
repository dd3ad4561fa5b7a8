"""
Report drafting service for SonoReport.

Orchestrates the drafting pipelines:

1. Redact every free-text field
2. Ask the drafting model for a JSON draft
3. Validate each returned field on its own
4. Reflow, deduplicate and compress the text before it is returned

A failed model call is raised to the caller as DraftingError; no
best-guess draft is ever fabricated.
"""

from typing import Any, List, Optional, Sequence

from sonoreport.config import settings
from sonoreport.core.catalog import describe_exam_type
from sonoreport.core.ktirads import coerce_category, coerce_size_mm, recommend
from sonoreport.core.llm_engine import LLMEngine, get_llm_engine
from sonoreport.core.redaction import redact
from sonoreport.core.text_processor import text_processor
from sonoreport.models.schemas import (
    ConfidenceLevel,
    DraftRequest,
    ImageAssignment,
    ImageInput,
    Nodule,
    PolishedReport,
    PolishRequest,
    ReportDraft,
    Side,
    ThyroidDraft,
    ThyroidDraftRequest,
)
from sonoreport.utils.logger import get_logger

logger = get_logger("report_drafter")


# =============================================================================
# Prompts
# =============================================================================

ANALYZE_SYSTEM_PROMPT = "\n".join([
    "You are a board-certified radiologist.",
    "Analyze the provided ultrasound images in the context of the ultrasound type and clinical history.",
    "Write a hospital-grade radiology report: concise, high-signal, and sectioned into short paragraphs.",
    "Findings should be professional and focused on the key sonographic observations.",
    "Findings and Impression must be in English only.",
    "Impression must be diagnosis names only (no explanation), very short, preferably 1 line.",
    "Separate multiple diagnoses with commas. Do NOT write full sentences.",
    "Impression must NOT repeat the Findings.",
    "Recommendations should be practical and conservative, based on the Impression.",
    "Formatting requirement: after every '.' end the sentence and start a new line. "
    "Use blank lines to separate paragraphs when helpful.",
    "Do NOT add patient identifiers.",
    "Return ONLY valid JSON with keys: findings, impression, recommendations.",
])

THYROID_SYSTEM_PROMPT = "\n".join([
    "You are a board-certified radiologist specialized in thyroid ultrasound.",
    "Analyze the provided thyroid ultrasound images and classify visible thyroid nodules "
    "using K-TIRADS (Korean Thyroid Imaging Reporting and Data System).",
    "If laterality is not clear, use side='unknown'. If a lesion is in the isthmus, use side='isthmus'.",
    "For each nodule, estimate size in mm when possible and extract features: "
    "composition, echogenicity, shape, margin, echogenic foci.",
    "Assign kTirads category as an integer 1-5 (use 1 when no nodule is seen for that side).",
    "Generate hospital-grade draft Findings and a short Impression.",
    "Impression must be diagnosis names only (no explanation), very short, preferably 1 line.",
    "Separate multiple diagnoses with commas. Do NOT write full sentences.",
    "Impression must not repeat Findings.",
    "Formatting requirement: after every '.' end the sentence and start a new line. "
    "Use blank lines to separate paragraphs when helpful.",
    "Do not include any patient identifiers.",
    "Return ONLY valid JSON with keys: imageAssignments, nodules, findings, impression.",
    "imageAssignments is an array of { filename, side } where side is one of left|right|isthmus|unknown.",
    "nodules is an array where each item includes: side, location, sizeMm, composition, "
    "echogenicity, shape, margin, echogenicFoci, kTirads, rationale, confidence.",
])

POLISH_SYSTEM_PROMPT = "\n".join([
    "You are a board-certified radiologist.",
    "Rewrite the provided ultrasound Findings into a polished radiology-style report.",
    "Also produce a concise Impression consistent with the Findings and Clinical history.",
    "Impression must NOT repeat the Findings; it should be a brief conclusion (1-3 sentences).",
    "Use professional medical terminology and plain sentences.",
    "Do NOT use special symbols or bullets (no '-', '*', '•', '#', ':', ';').",
    "Do NOT add patient identifiers.",
    "Return ONLY valid JSON with keys: findings, impression.",
])


# =============================================================================
# Field validation
# =============================================================================

def coerce_text(value: Any) -> str:
    """Model text field -> trimmed string; missing or null -> ""."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def coerce_side(value: Any) -> Side:
    try:
        return Side(coerce_text(value).lower())
    except ValueError:
        return Side.UNKNOWN


def coerce_confidence(value: Any) -> Optional[ConfidenceLevel]:
    try:
        return ConfidenceLevel(coerce_text(value).lower())
    except ValueError:
        return None


def coerce_image_assignments(value: Any) -> List[ImageAssignment]:
    if not isinstance(value, list):
        return []
    assignments = []
    for item in value:
        if not isinstance(item, dict):
            continue
        assignments.append(ImageAssignment(
            filename=coerce_text(item.get("filename")),
            side=coerce_side(item.get("side")),
        ))
    return assignments


def coerce_nodule(item: Any) -> Optional[Nodule]:
    """
    Validate one nodule record from the model.

    Unknown or malformed fields become empty/None; non-object records
    are dropped. The K-TIRADS recommendation is filled in here.
    """
    if not isinstance(item, dict):
        return None

    category = coerce_category(item.get("kTirads"))
    size_mm = coerce_size_mm(item.get("sizeMm"))

    return Nodule(
        side=coerce_side(item.get("side")),
        location=coerce_text(item.get("location")),
        size_mm=size_mm,
        composition=coerce_text(item.get("composition")),
        echogenicity=coerce_text(item.get("echogenicity")),
        shape=coerce_text(item.get("shape")),
        margin=coerce_text(item.get("margin")),
        echogenic_foci=coerce_text(item.get("echogenicFoci")),
        k_tirads=category,
        rationale=coerce_text(item.get("rationale")),
        confidence=coerce_confidence(item.get("confidence")),
        recommendation=recommend(category, size_mm),
    )


def coerce_nodules(value: Any) -> List[Nodule]:
    if not isinstance(value, list):
        return []
    nodules = [coerce_nodule(item) for item in value]
    return [nodule for nodule in nodules if nodule is not None]


# =============================================================================
# Service
# =============================================================================

class ReportDrafter:
    """
    Drafting pipelines for general, thyroid and polish requests.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(self, engine: Optional[LLMEngine] = None):
        self._engine = engine

    @property
    def engine(self) -> LLMEngine:
        if self._engine is None:
            self._engine = get_llm_engine()
        return self._engine

    def _validate_images(self, images: Sequence[ImageInput]) -> List[ImageInput]:
        usable = [image for image in images if image.url.strip()]
        if not usable:
            raise ValueError("images is required")
        if len(usable) > settings.max_images:
            raise ValueError(f"Too many images (max {settings.max_images}).")
        return usable

    def finalize_text(self, findings_raw: Any, impression_raw: Any) -> tuple[str, str]:
        """Reflow findings, then clean and compress the impression against them."""
        findings = text_processor.reflow(coerce_text(findings_raw))
        impression = text_processor.clean_impression(coerce_text(impression_raw), findings)
        return findings, text_processor.to_diagnosis_line(impression)

    def draft(self, request: DraftRequest) -> ReportDraft:
        """
        Draft a general ultrasound report.

        Args:
            request: Exam type, clinical text and images

        Returns:
            ReportDraft with reflowed findings and recommendations and a
            single-line impression

        Raises:
            ValueError: exam type or images missing
            DraftingError: the model call failed
        """
        exam_type = describe_exam_type(request.exam_type)
        if not exam_type:
            raise ValueError("exam_type is required")
        images = self._validate_images(request.images)

        clinical_history = redact(request.clinical_history.strip())
        image_context = redact(request.image_context.strip())

        sections = [f"Ultrasound type:\n{exam_type}"]
        if clinical_history:
            sections.append(f"Clinical history:\n{clinical_history}")
        if image_context:
            sections.append(f"Image context:\n{image_context}")
        sections.append("Task:\n- Review the images.\n- Draft Findings, Impression, and Recommendations.\n")

        logger.info("Drafting report", exam_type=exam_type, images=len(images))
        parsed = self.engine.complete_json(
            ANALYZE_SYSTEM_PROMPT,
            self.engine.build_content("\n\n".join(sections), images),
        )

        findings, impression = self.finalize_text(parsed.get("findings"), parsed.get("impression"))
        recommendations = text_processor.reflow(coerce_text(parsed.get("recommendations")))

        return ReportDraft(
            findings=findings,
            impression=impression,
            recommendations=recommendations,
        )

    def draft_thyroid(self, request: ThyroidDraftRequest) -> ThyroidDraft:
        """
        Draft a thyroid report with K-TIRADS staged nodules.

        Raises:
            ValueError: images missing or too many
            DraftingError: the model call failed
        """
        images = self._validate_images(request.images)

        clinical_info = redact(request.clinical_info.strip())
        image_context = redact(request.image_context.strip())

        sections = []
        if clinical_info:
            sections.append(f"Clinical information:\n{clinical_info}")
        if image_context:
            sections.append(f"Image context:\n{image_context}")
        sections.append(
            "Task:\n- Detect thyroid nodules if present.\n"
            "- Classify with K-TIRADS.\n- Provide structured output.\n"
        )

        logger.info("Drafting thyroid report", images=len(images))
        parsed = self.engine.complete_json(
            THYROID_SYSTEM_PROMPT,
            self.engine.build_content("\n\n".join(sections), images),
        )

        findings, impression = self.finalize_text(parsed.get("findings"), parsed.get("impression"))
        nodules = coerce_nodules(parsed.get("nodules"))

        logger.info("Thyroid draft parsed", nodules=len(nodules))
        return ThyroidDraft(
            findings=findings,
            impression=impression,
            image_assignments=coerce_image_assignments(parsed.get("imageAssignments")),
            nodules=nodules,
        )

    def polish(self, request: PolishRequest) -> PolishedReport:
        """
        Polish clinician-entered findings and propose an impression.

        The input findings are kept when the model returns none; the
        clinician's impression is kept when the model's one is empty or
        only repeats the findings.

        Raises:
            ValueError: findings missing
            DraftingError: the model call failed
        """
        findings = redact(request.findings.strip())
        if not findings:
            raise ValueError("findings is required")

        exam_type = describe_exam_type(request.exam_type)
        clinical_history = redact(request.clinical_history.strip())

        sections = []
        if exam_type:
            sections.append(f"Ultrasound type\n{exam_type}")
        if clinical_history:
            sections.append(f"Clinical history\n{clinical_history}")
        sections.append(f"Findings draft\n{findings}")

        logger.info("Polishing findings", findings_length=len(findings))
        parsed = self.engine.complete_json(POLISH_SYSTEM_PROMPT, "\n".join(sections))

        next_findings = coerce_text(parsed.get("findings")) or findings
        next_impression = text_processor.clean_impression(
            coerce_text(parsed.get("impression")), next_findings
        )

        return PolishedReport(
            findings=next_findings,
            impression=next_impression or request.impression.strip(),
        )


# Singleton instance
report_drafter = ReportDrafter()

"""
Pydantic schemas for SonoReport API.

Defines request/response models for all API endpoints and the
post-pipeline values handed to persistence collaborators.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class Side(str, Enum):
    """Thyroid lobe a nodule or image belongs to."""
    LEFT = "left"
    RIGHT = "right"
    ISTHMUS = "isthmus"
    UNKNOWN = "unknown"


class ConfidenceLevel(str, Enum):
    """Model-reported confidence for a nodule."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SummarySource(str, Enum):
    """Which path produced a guardian summary."""
    AI = "ai"
    FALLBACK = "fallback"


# =============================================================================
# Drafting Requests
# =============================================================================

class ImageInput(BaseModel):
    """An ultrasound image reachable by the drafting model."""

    filename: str = Field(description="Original image filename")
    url: str = Field(description="Signed or data URL for the image")


class DraftRequest(BaseModel):
    """Request to draft a general ultrasound report."""

    exam_type: str = Field(
        min_length=1,
        description="Exam type catalog key (e.g. 'abdominal') or free text"
    )
    clinical_history: str = Field(default="", description="Clinical history")
    image_context: str = Field(default="", description="Notes about the images")
    images: List[ImageInput] = Field(description="Images to review")


class ThyroidDraftRequest(BaseModel):
    """Request to draft a thyroid report with K-TIRADS staging."""

    clinical_info: str = Field(default="", description="Clinical information")
    image_context: str = Field(default="", description="Notes about the images")
    images: List[ImageInput] = Field(description="Images to review")


class PolishRequest(BaseModel):
    """Request to polish clinician-entered findings."""

    exam_type: str = Field(default="", description="Exam type key or free text")
    clinical_history: str = Field(default="")
    findings: str = Field(description="Findings draft written by the clinician")
    impression: str = Field(
        default="",
        description="Clinician impression, kept when the model's one is unusable"
    )


# =============================================================================
# Drafting Results
# =============================================================================

class ReportDraft(BaseModel):
    """Post-pipeline report text ready for review and persistence."""

    findings: str = ""
    impression: str = ""
    recommendations: str = ""


class ImageAssignment(BaseModel):
    """Which thyroid side an image shows."""

    filename: str = ""
    side: Side = Side.UNKNOWN


class Nodule(BaseModel):
    """A thyroid nodule reported by the drafting model, validated."""

    side: Side = Side.UNKNOWN
    location: str = ""
    size_mm: Optional[float] = Field(default=None, ge=0)
    composition: str = ""
    echogenicity: str = ""
    shape: str = ""
    margin: str = ""
    echogenic_foci: str = ""
    k_tirads: Optional[int] = Field(default=None, ge=1, le=5)
    rationale: str = ""
    confidence: Optional[ConfidenceLevel] = None
    recommendation: str = Field(
        default="",
        description="K-TIRADS management recommendation"
    )


class ThyroidDraft(BaseModel):
    """Thyroid drafting result."""

    findings: str = ""
    impression: str = ""
    image_assignments: List[ImageAssignment] = Field(default_factory=list)
    nodules: List[Nodule] = Field(default_factory=list)


class PolishedReport(BaseModel):
    """Polished findings and impression."""

    findings: str
    impression: str


# =============================================================================
# Guardian Summary
# =============================================================================

class GuardianSummaryRequest(BaseModel):
    """Findings and impression to explain to a guardian."""

    findings: Optional[str] = Field(default="")
    impression: Optional[str] = Field(default="")


class GuardianSummary(BaseModel):
    """Lay-audience explanation of a report."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    key_points: List[str] = Field(alias="keyPoints")
    next_steps: List[str] = Field(alias="nextSteps")
    reassurance: List[str]


class GuardianSummaryResult(BaseModel):
    """Guardian summary plus the path that produced it."""

    summary: GuardianSummary
    source: SummarySource


# =============================================================================
# Identity & K-TIRADS
# =============================================================================

class IdentityRequest(BaseModel):
    """National ID and exam date to derive sex and age from."""

    national_id: str
    exam_date: Optional[str] = Field(
        default=None,
        description="ISO exam date; today when omitted or invalid"
    )


class IdentityResponse(BaseModel):
    """Derived sex ('M', 'F' or '') and age text."""

    sex: str
    age_text: str


class NationalIdRequest(BaseModel):
    national_id: str = ""


class SecureNationalIdResponse(BaseModel):
    """Masked display form and encrypted storage form of a national ID."""

    masked: str
    encrypted: str


class KtiradsRequest(BaseModel):
    """Category and size to look up a recommendation for."""

    category: Union[int, float, str, None] = None
    size_mm: Optional[float] = None


class KtiradsResponse(BaseModel):
    category: Optional[int]
    size_mm: Optional[float]
    recommendation: str


# =============================================================================
# Plain-text Report
# =============================================================================

class PlainTextReportRequest(BaseModel):
    """A finished report to render as plain text."""

    hospital_name: str = ""
    doctor_name: str = ""
    license_no: str = ""
    patient_name: str = ""
    chart_no: str = ""
    national_id: str = ""
    age_text: str = ""
    sex: str = ""
    exam_date: str = ""
    clinical_history: str = ""
    findings: str = ""
    impression: str = ""
    recommendations: str = ""


class PlainTextReportResponse(BaseModel):
    text: str


class ExamTypeInfo(BaseModel):
    """Exam type catalog entry."""

    key: str
    label: str
    normal_findings: str
    default_impression: str


# =============================================================================
# Health & Errors
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    llm_configured: bool = Field(default=False)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(description="Error type")
    message: str = Field(description="Human-readable error message")
    error_code: str = Field(description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(from_attributes=True)


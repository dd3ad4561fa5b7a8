"""
API routes for SonoReport.

Defines all REST API endpoints for drafting, staging and explaining
ultrasound reports.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from sonoreport.api.middleware import RATE_LIMIT, limiter
from sonoreport.config import settings
from sonoreport.core.catalog import EXAM_TYPES
from sonoreport.core.identity import derive_identity
from sonoreport.core.ktirads import coerce_category, coerce_size_mm, recommend
from sonoreport.models.schemas import (
    DraftRequest,
    ErrorResponse,
    ExamTypeInfo,
    GuardianSummaryRequest,
    GuardianSummaryResult,
    HealthResponse,
    IdentityRequest,
    IdentityResponse,
    KtiradsRequest,
    KtiradsResponse,
    NationalIdRequest,
    PlainTextReportRequest,
    PlainTextReportResponse,
    PolishedReport,
    PolishRequest,
    ReportDraft,
    SecureNationalIdResponse,
    ThyroidDraft,
    ThyroidDraftRequest,
)
from sonoreport.services.guardian_summary import GuardianSummaryBuilder, guardian_summary_builder
from sonoreport.services.id_vault import NationalIdVault
from sonoreport.services.report_drafter import ReportDrafter, report_drafter
from sonoreport.services.report_generator import get_report_generator
from sonoreport.utils.errors import DraftingError, describe_error
from sonoreport.utils.logger import get_logger

logger = get_logger("routes")

# Create router
router = APIRouter()

DRAFTING_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    500: {"model": ErrorResponse, "description": "Drafting model not configured"},
    502: {"model": ErrorResponse, "description": "Drafting model failed"},
}


def get_drafter() -> ReportDrafter:
    """Report drafter dependency."""
    return report_drafter


def get_summary_builder() -> GuardianSummaryBuilder:
    """Guardian summary builder dependency."""
    return guardian_summary_builder


async def _run_drafting(func, body):
    """Run a blocking drafting call and map its errors to HTTP responses."""
    try:
        return await run_in_threadpool(func, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DraftingError as e:
        logger.warning("Drafting failed", status_code=e.status_code)
        raise HTTPException(status_code=e.status_code, detail=describe_error(e))


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check():
    """
    Check if the service is healthy and running.

    Returns basic health status, version and whether the drafting model
    is configured.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        llm_configured=settings.llm_configured
    )


@router.get(
    "/exam-types",
    response_model=List[ExamTypeInfo],
    tags=["Catalog"],
    summary="List ultrasound exam types"
)
async def list_exam_types():
    """Exam types with their normal-findings templates and default impressions."""
    return [
        ExamTypeInfo(
            key=exam.key,
            label=exam.label,
            normal_findings=exam.normal_findings,
            default_impression=exam.default_impression
        )
        for exam in EXAM_TYPES
    ]


# =============================================================================
# Drafting
# =============================================================================

@router.post(
    "/ai/analyze",
    response_model=ReportDraft,
    tags=["Drafting"],
    summary="Draft a general ultrasound report",
    responses=DRAFTING_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def analyze(
    request: Request,
    body: DraftRequest,
    drafter: ReportDrafter = Depends(get_drafter)
):
    """
    Draft findings, impression and recommendations from ultrasound images.

    Clinical history and image context are redacted before they are sent
    to the model. The impression comes back as a single diagnosis line.
    """
    draft = await _run_drafting(drafter.draft, body)
    logger.info(
        "Report drafted",
        findings_length=len(draft.findings),
        has_impression=bool(draft.impression)
    )
    return draft


@router.post(
    "/ai/thyroid",
    response_model=ThyroidDraft,
    tags=["Drafting"],
    summary="Draft a thyroid report with K-TIRADS staging",
    responses=DRAFTING_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def analyze_thyroid(
    request: Request,
    body: ThyroidDraftRequest,
    drafter: ReportDrafter = Depends(get_drafter)
):
    """
    Draft a thyroid report.

    Every nodule returned by the model is validated field by field and
    receives a K-TIRADS management recommendation.
    """
    draft = await _run_drafting(drafter.draft_thyroid, body)
    logger.info("Thyroid report drafted", nodules=len(draft.nodules))
    return draft


@router.post(
    "/ai/polish",
    response_model=PolishedReport,
    tags=["Drafting"],
    summary="Polish clinician findings",
    responses=DRAFTING_RESPONSES
)
@limiter.limit(RATE_LIMIT)
async def polish(
    request: Request,
    body: PolishRequest,
    drafter: ReportDrafter = Depends(get_drafter)
):
    """Rewrite clinician-entered findings and propose a concise impression."""
    return await _run_drafting(drafter.polish, body)


# =============================================================================
# Guardian Summary
# =============================================================================

@router.post(
    "/guardian-summary",
    response_model=GuardianSummaryResult,
    tags=["Guardian"],
    summary="Explain a report to a guardian"
)
@limiter.limit(RATE_LIMIT)
async def guardian_summary(
    request: Request,
    body: GuardianSummaryRequest,
    builder: GuardianSummaryBuilder = Depends(get_summary_builder)
):
    """
    Build a lay-audience summary of findings and impression.

    Always succeeds: when the language model is unavailable or fails,
    the rule-based summary is returned and `source` is "fallback".
    """
    return await run_in_threadpool(builder.build, body.findings, body.impression)


# =============================================================================
# Identity & National ID
# =============================================================================

@router.post(
    "/identity/derive",
    response_model=IdentityResponse,
    tags=["Identity"],
    summary="Derive sex and age from a national ID"
)
async def derive_patient_identity(body: IdentityRequest):
    """Sex and age text at the exam date; empty strings for an unusable ID."""
    identity = derive_identity(body.national_id, body.exam_date)
    return IdentityResponse(sex=identity.sex, age_text=identity.age_text)


@router.post(
    "/secure/national-id",
    response_model=SecureNationalIdResponse,
    tags=["Identity"],
    summary="Mask and encrypt a national ID",
    responses={500: {"model": ErrorResponse, "description": "Encryption not configured"}}
)
@limiter.limit(RATE_LIMIT)
async def secure_national_id(request: Request, body: NationalIdRequest):
    """Return the masked display form and the encrypted storage form."""
    if not body.national_id.strip():
        return SecureNationalIdResponse(masked="", encrypted="")
    try:
        vault = NationalIdVault()
        return vault.protect(body.national_id)
    except RuntimeError as e:
        logger.error("National ID encryption unavailable")
        raise HTTPException(status_code=500, detail=describe_error(e))


# =============================================================================
# K-TIRADS
# =============================================================================

@router.post(
    "/ktirads/recommend",
    response_model=KtiradsResponse,
    tags=["K-TIRADS"],
    summary="K-TIRADS management recommendation"
)
async def ktirads_recommend(body: KtiradsRequest):
    """
    Look up the management recommendation for a category and size.

    An unusable category gives a generic advisory rather than an error.
    """
    return KtiradsResponse(
        category=coerce_category(body.category),
        size_mm=coerce_size_mm(body.size_mm),
        recommendation=recommend(body.category, body.size_mm)
    )


# =============================================================================
# Reports
# =============================================================================

@router.post(
    "/reports/plain-text",
    response_model=PlainTextReportResponse,
    tags=["Reports"],
    summary="Render a report as plain text"
)
async def plain_text_report(body: PlainTextReportRequest):
    """Render a finished report for copy/paste; the national ID is masked."""
    generator = get_report_generator()
    return PlainTextReportResponse(text=generator.generate_text(body))

"""
SonoReport - FastAPI Application

Drafts ultrasound reports with AI assistance under clinician review,
stages thyroid nodules with K-TIRADS and explains reports to guardians.

IMPORTANT: Every AI draft must be reviewed by a clinician.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sonoreport.config import settings
from sonoreport.api.routes import router
from sonoreport.api.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    setup_rate_limiting
)
from sonoreport.utils.logger import get_logger, configure_logging

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    configure_logging(
        log_level=settings.log_level,
        json_format=not settings.debug
    )

    logger.info(
        "Starting SonoReport",
        version=settings.app_version,
        debug=settings.debug,
        llm_configured=settings.llm_configured
    )

    yield

    logger.info("Shutting down SonoReport")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## SonoReport - Ultrasound Report Drafting

Drafts structured ultrasound reports with AI-assisted text for clinician review.

### Important

- Drafts are suggestions; a clinician reviews every report
- Patient identifiers are redacted before any text leaves the service
- Guardian summaries always fall back to a rule-based explanation

### API Endpoints

| Endpoint | Method | Description |
|----------|--------|-------------|
| `/ai/analyze` | POST | Draft a general ultrasound report |
| `/ai/thyroid` | POST | Draft a thyroid report with K-TIRADS |
| `/ai/polish` | POST | Polish clinician findings |
| `/guardian-summary` | POST | Guardian-facing explanation |
| `/identity/derive` | POST | Sex and age from national ID |
| `/secure/national-id` | POST | Mask and encrypt a national ID |
| `/ktirads/recommend` | POST | K-TIRADS management recommendation |
| `/reports/plain-text` | POST | Plain-text report |
| `/exam-types` | GET | Exam type catalog |
| `/health` | GET | Health check |
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.debug else None,
    )

    # Setup middleware (order matters - last added is outermost)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_rate_limiting(app)

    app.include_router(router, tags=["API"])

    return app


# Create app instance
app = create_app()


# Run with: uvicorn sonoreport.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sonoreport.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

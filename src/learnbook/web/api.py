"""FastAPI application factory.

Main entry point for the LearnBook Web API. Every response uses the
``{success, data}`` / ``{success: false, error}`` envelope; the exception
handlers below map domain errors onto it.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnbook.config import load_app_config
from learnbook.core.curriculum import CurriculumError
from learnbook.db.database import init_db
from learnbook.integrations.google_api import IntegrationError
from learnbook.llm.client import (
    LLMError,
    LLMNotConfiguredError,
    LLMRateLimitError,
    get_ai_client,
)
from learnbook.web.routes import (
    ai_router,
    chat_router,
    curriculum_router,
    google_router,
    health_router,
    profile_router,
    progress_router,
    roadmap_router,
    study_router,
    subjects_router,
    tasks_router,
)
from learnbook.web.schemas import error_envelope

logger = structlog.get_logger(__name__)

RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again in a minute."
INVALID_BODY_MESSAGE = "Invalid request body"
INTERNAL_ERROR_MESSAGE = "Internal server error"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    init_db(Path(config.paths["db_path"]))
    logger.info("api_startup", providers=get_ai_client().status())
    yield


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content=error_envelope(INVALID_BODY_MESSAGE))


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_envelope(str(exc.detail)))


async def _rate_limited(request: Request, exc: LLMRateLimitError) -> JSONResponse:
    logger.warning("request_rate_limited", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=429,
        content=error_envelope(RATE_LIMIT_MESSAGE, can_retry=True),
    )


async def _not_configured(request: Request, exc: LLMNotConfiguredError) -> JSONResponse:
    logger.error("request_provider_not_configured", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_envelope(str(exc)))


async def _llm_error(request: Request, exc: LLMError) -> JSONResponse:
    logger.error("request_ai_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_envelope(str(exc), can_retry=True))


async def _curriculum_error(request: Request, exc: CurriculumError) -> JSONResponse:
    return JSONResponse(status_code=400, content=error_envelope(str(exc)))


async def _value_error(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content=error_envelope(str(exc)))


async def _integration_error(request: Request, exc: IntegrationError) -> JSONResponse:
    logger.error(
        "request_integration_failed",
        path=request.url.path,
        status=exc.status_code,
        error=str(exc),
    )
    return JSONResponse(status_code=exc.status_code or 502, content=error_envelope(str(exc)))


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_envelope(INTERNAL_ERROR_MESSAGE))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="LearnBook API",
        description="AI study planning, curriculum and notes backend",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(LLMRateLimitError, _rate_limited)
    app.add_exception_handler(LLMNotConfiguredError, _not_configured)
    app.add_exception_handler(LLMError, _llm_error)
    app.add_exception_handler(CurriculumError, _curriculum_error)
    app.add_exception_handler(IntegrationError, _integration_error)
    app.add_exception_handler(ValueError, _value_error)
    app.add_exception_handler(Exception, _unexpected_error)

    app.include_router(health_router)
    app.include_router(curriculum_router)
    app.include_router(chat_router)
    app.include_router(study_router)
    app.include_router(ai_router)
    app.include_router(profile_router)
    app.include_router(subjects_router)
    app.include_router(tasks_router)
    app.include_router(progress_router)
    app.include_router(roadmap_router)
    app.include_router(google_router)

    return app


# Default app instance for uvicorn
app = create_app()

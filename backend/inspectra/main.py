"""
Inspectra Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers.
Who:   uvicorn (uvicorn inspectra.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware:  Request ID → Logging → GZip → CORS        │
    │                                                         │
    │  Routes:                                                │
    │  ┌──────────┐ ┌───────────┐ ┌────────────┐ ┌─────────┐  │
    │  │ sessions │ │ extract   │ │ summary    │ │ /health │  │
    │  └──────────┘ └───────────┘ └────────────┘ └─────────┘  │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400 │ NotFound→404 │ Config→500 │ LLM→503   │
    └─────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from inspectra import __version__
from inspectra.config import settings
from inspectra.exceptions import (
    ConfigurationError,
    EmptySummaryInputError,
    InspectraError,
    LLMServiceError,
    NotFoundError,
    SummaryError,
    ValidationError,
)
from inspectra.middleware.logging import RequestLoggingMiddleware
from inspectra.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from inspectra.routes import extraction, health, sessions, summary

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once, on stdout, at settings.log_level."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Inspectra Backend %s starting up...", __version__)

    # The server still starts: text notes work and /health reports the problem
    if not settings.has_api_key:
        logger.warning("OPENAI_API_KEY is not set; image extraction and summaries will fail.")
    else:
        logger.info("Inference model: %s", settings.openai_model)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Inspectra Backend shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, exc: InspectraError, details: bool = True) -> JSONResponse:
    content = {
        "error": error,
        "message": exc.message,
        "request_id": request_id_var.get(""),
    }
    if details and exc.context:
        content["details"] = exc.context
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto the JSON error envelope.

    Handler hierarchy:
        ValidationError          → 400
        EmptySummaryInputError   → 400
        NotFoundError            → 404
        ConfigurationError       → 500 (setup hint in the message)
        LLMServiceError          → 503
        SummaryError             → 503
        InspectraError (base)    → 500
        Exception (fallback)     → 500, details logged server-side only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc)

    @app.exception_handler(EmptySummaryInputError)
    async def handle_empty_summary(request: Request, exc: EmptySummaryInputError):
        return _error_response(400, "empty_input", exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc, details=False)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] Configuration error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "configuration_error", exc, details=False)

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        logger.error("[%s] LLM service error: %s", request_id_var.get(""), exc.message)
        return _error_response(503, "llm_service_error", exc)

    @app.exception_handler(SummaryError)
    async def handle_summary_error(request: Request, exc: SummaryError):
        logger.error("[%s] Summary error: %s", request_id_var.get(""), exc.message)
        return _error_response(503, "summary_error", exc)

    @app.exception_handler(InspectraError)
    async def handle_inspectra_error(request: Request, exc: InspectraError):
        logger.error("[%s] %s: %s | Context: %s", request_id_var.get(""), type(exc).__name__, exc.message, exc.context)
        return _error_response(500, "server_error", exc, details=False)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Inspectra API",
        description=(
            "Digitizes handwritten and typed notes: detects each image's language, "
            "transcribes it three ways, reconciles the transcriptions into one text "
            "and summarizes everything in the language of your choice."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Executes in reverse order of addition: Request ID runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(sessions.router)
    app.include_router(extraction.router)
    app.include_router(summary.router)
    app.include_router(health.router)

    return app


app = create_app()

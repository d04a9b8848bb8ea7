"""
Atelier Backend — FastAPI Application Factory
===============================================

What:  Builds the FastAPI app: middleware, exception handlers, routers and
       the lifespan that wires the studio transition timer.
Who:   uvicorn (`uvicorn atelier.main:app`) and the test client.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: RateLimit → RequestID → Logging → GZip/CORS │
    │                                                          │
    │  Routes:                                                 │
    │   /api/studio/*   ──▶ StudioHud ──▶ studio_store          │
    │   /api/webhooks/square ──▶ webhook_service ──▶ DB, Resend │
    │   /api/cron/*     ──▶ cron_service ──▶ DB, Resend         │
    │   /health                                                │
    │                                                          │
    │  Exception handlers:                                     │
    │   Validation 400 │ Unauthorized 401 │ Signature 403      │
    │   Integration 502 │ Database 500 │ Unexpected 500        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config report → attach TransitionTimer to studio_store
    Shutdown: detach timer → dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from atelier import __version__
from atelier.config import settings
from atelier.database import dispose_engine
from atelier.exceptions import (
    AtelierError,
    DatabaseError,
    IntegrationError,
    UnauthorizedError,
    ValidationError,
    WebhookSignatureError,
)
from atelier.middleware.logging import RequestLoggingMiddleware
from atelier.middleware.rate_limit import RateLimitMiddleware
from atelier.middleware.request_id import RequestIDMiddleware, request_id_var
from atelier.routes import cron, health, studio, webhooks
from atelier.studio.store import studio_store
from atelier.studio.timer import TransitionTimer

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once: one line per record on stdout."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Atelier Backend %s starting up...", __version__)

    # Missing integration secrets degrade features; they do not stop the server
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("%s", str(e))

    timer = TransitionTimer(studio_store, settings.studio_transition_seconds)
    timer.attach()
    app.state.transition_timer = timer
    logger.info(
        "Studio transition timer attached (%.2fs per transition)",
        settings.studio_transition_seconds,
    )

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Atelier Backend shutting down...")
    timer.detach()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, error: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the AtelierError hierarchy to HTTP responses.

        ValidationError         → 400
        UnauthorizedError       → 401
        WebhookSignatureError   → 403
        IntegrationError        → 502
        DatabaseError           → 500 (generic message)
        AtelierError / other    → 500 (generic message)

    Responses never include stack traces, SQL or secrets; those are logged.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.warning("[%s] Unauthorized %s %s", request_id_var.get(""), request.method, request.url.path)
        return _error(401, "unauthorized", exc.message)

    @app.exception_handler(WebhookSignatureError)
    async def handle_bad_signature(request: Request, exc: WebhookSignatureError):
        return _error(403, "invalid_signature", exc.message)

    @app.exception_handler(IntegrationError)
    async def handle_integration_error(request: Request, exc: IntegrationError):
        logger.error(
            "[%s] %s integration error: %s | Context: %s",
            request_id_var.get(""), exc.provider, exc.message, exc.context,
        )
        return _error(502, "integration_error", exc.message, {"provider": exc.provider})

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(AtelierError)
    async def handle_atelier_error(request: Request, exc: AtelierError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Atelier API",
        description=(
            "Backend for the T Creative virtual studio: zone navigation state, "
            "Square payment webhooks and scheduled client emails."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(studio.router)
    app.include_router(webhooks.router)
    app.include_router(cron.router)
    app.include_router(health.router)

    return app


app = create_app()

"""
PrepForge - FastAPI Application.

Main FastAPI app that serves the PrepForge API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from src.api.routes import limiter, router as api_router, to_http_error
from src.core.config import configure_logging, get_settings
from src.core.exceptions import PrepForgeError
from src.infra.prompts.template_store import get_template_store

# Configure logging
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup warms the template cache for the active prompt version so a
    broken template directory fails loudly before the first request.
    """
    logger.info("🚀 PrepForge API starting...")

    store = get_template_store()
    version = get_settings().PROMPT_VERSION or store.latest_version()
    store.get_version(version)
    logger.info(f"📄 Active prompt version: v{version}")

    yield

    logger.info("👋 PrepForge API shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="PrepForge",
        description="Interview problem generation and round sessions API",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PrepForgeError)
    async def domain_error_handler(request: Request, exc: PrepForgeError):
        # Errors raised while resolving dependencies, outside the route bodies
        error = to_http_error(exc)
        logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    app.include_router(api_router)

    return app


# Create app instance
app = create_app()

"""
ProjectFlow Voice Backend - FastAPI Application

Voice-driven task creation for ProjectFlow.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (parent of backend/)
# Must happen before importing modules that use environment variables
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from projectflow.api.dependencies import cleanup_dependencies, init_dependencies  # noqa: E402
from projectflow.api.routes import commands_router, voice_router  # noqa: E402
from projectflow.config import (  # noqa: E402
    CORS_ALLOWED_HEADERS,
    CORS_ALLOWED_METHODS,
    get_cors_allow_credentials,
    get_cors_origins,
    get_log_level,
)
from projectflow.infrastructure.usage_tracker import get_usage_summary  # noqa: E402

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for startup/shutdown events.

    Startup:
    - Initialize singleton dependencies (voice pipeline, task repository)

    Shutdown:
    - Stop the voice session
    - Close HTTP connections
    """
    logger.info("Starting ProjectFlow voice backend...")

    await init_dependencies()
    logger.info("Dependencies initialized")

    yield

    logger.info("Shutting down ProjectFlow voice backend...")
    await cleanup_dependencies()
    logger.info("Shutdown complete")


app = FastAPI(
    title="ProjectFlow Voice API",
    description="Voice-driven task creation for ProjectFlow",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration - loaded from environment with restrictive defaults
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=get_cors_allow_credentials(),
    allow_methods=CORS_ALLOWED_METHODS,
    allow_headers=CORS_ALLOWED_HEADERS,
)

# Register API routers
app.include_router(voice_router)
app.include_router(commands_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "projectflow-voice-backend",
        "version": "0.1.0",
    }


@app.get("/api/usage")
async def usage() -> dict:
    """Claude usage and cost summary from the usage ledger."""
    return get_usage_summary()

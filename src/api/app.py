"""
FastAPI application factory.

``create_app()`` assembles the server the recording client talks to:
CORS, error handlers, the health endpoint and the two AI routes. The
module-level ``app`` instance allows ``uvicorn src.api.app:app --reload``.
"""

from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import register_error_handlers
from src.api.routes import analyze, transcribe
from src.core.config import get_settings
from src.core.models import HealthResponse


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="ToneCoach",
        description="Live transcription and Non-Violent Communication feedback.",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    app.include_router(transcribe.router, prefix="/api")
    app.include_router(analyze.router, prefix="/api")

    return app


app = create_app()

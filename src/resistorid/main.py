"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resistorid.analysis.client import GeminiAnalysisClient
from resistorid.api.routes import router
from resistorid.capture.camera import CameraSession, opencv_factory
from resistorid.config import Settings, get_settings
from resistorid.presentation.session import AnalysisSession

logger = logging.getLogger(__name__)


def build_session(settings: Settings) -> AnalysisSession:
    """Wire the analysis client and camera handle into a session."""
    camera = CameraSession(opencv_factory(settings), jpeg_quality=settings.jpeg_quality)
    return AnalysisSession(
        GeminiAnalysisClient(settings.gemini_model),
        camera,
        max_file_size=settings.max_file_size,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting ResistorID (model=%s, camera_index=%s, credential=%s)",
        settings.gemini_model,
        settings.camera_index,
        "set" if settings.gemini_api_key else "missing",
    )

    session = build_session(settings)
    app.state.session = session

    logger.info("ResistorID ready")
    yield

    logger.info("Shutting down ResistorID")
    session.close()
    logger.info("ResistorID shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="ResistorID",
        description="Resistor color band identification from uploaded or captured photos",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run("resistorid.main:app", host=settings.host, port=settings.port)

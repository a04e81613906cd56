"""Pydantic request/response schemas for the ResistorID API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from resistorid.capture.camera import CaptureMode


class ModeRequest(BaseModel):
    """Switch between file upload and live camera capture."""

    mode: CaptureMode


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    model: str = Field(description="Inference model used for analysis")
    camera_active: bool


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str

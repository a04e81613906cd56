"""API route definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from resistorid.api.middleware import verify_api_key
from resistorid.api.schemas import ErrorResponse, HealthResponse, ModeRequest
from resistorid.capture.payload import read_upload
from resistorid.errors import AnalysisUnavailableError, DeviceError, FileReadError
from resistorid.presentation.view import SessionView, render

if TYPE_CHECKING:
    from resistorid.config import Settings
    from resistorid.presentation.session import AnalysisSession

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])

_CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_session(request: Request) -> AnalysisSession:
    session: AnalysisSession = request.app.state.session
    return session


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    session = _get_session(request)
    return HealthResponse(
        status="ok",
        model=settings.gemini_model,
        camera_active=session.camera.is_active,
    )


@router.get(
    "/session",
    response_model=SessionView,
    summary="Current session view",
)
async def get_session(request: Request) -> SessionView:
    return render(_get_session(request))


@router.post(
    "/session/mode",
    response_model=SessionView,
    summary="Switch capture mode",
)
async def switch_mode(request: Request, body: ModeRequest) -> SessionView:
    """Stop any camera, clear the session, and activate the requested mode."""
    session = _get_session(request)
    await run_in_threadpool(session.switch_mode, body.mode)
    return render(session)


@router.post(
    "/session/upload",
    response_model=SessionView,
    summary="Select an image file",
)
async def upload_image(request: Request, file: UploadFile) -> SessionView:
    """Select an uploaded image for analysis.

    Unreadable or non-image files put the session into the failed state
    rather than returning an HTTP error.
    """
    settings = _get_settings(request)
    session = _get_session(request)
    try:
        payload = await read_upload(file, max_bytes=settings.max_file_size)
    except FileReadError as exc:
        session.reject_file(exc)
    else:
        session.select_payload(payload)
    return render(session)


@router.post(
    "/session/camera/start",
    response_model=SessionView,
    summary="Start the camera stream",
)
async def start_camera(request: Request) -> SessionView:
    session = _get_session(request)
    await run_in_threadpool(session.start_camera)
    return render(session)


@router.post(
    "/session/camera/capture",
    response_model=SessionView,
    responses=_CONFLICT,
    summary="Capture a camera frame",
)
async def capture_frame(request: Request) -> SessionView:
    """Capture one frame from the running camera and stop the stream."""
    session = _get_session(request)
    try:
        await run_in_threadpool(session.capture_frame)
    except DeviceError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.user_message) from exc
    return render(session)


@router.post(
    "/session/analyze",
    response_model=SessionView,
    responses=_CONFLICT,
    summary="Analyze the selected image",
)
async def analyze(request: Request) -> SessionView:
    """Run the analysis and return the final view.

    Returns 409 when no image is waiting, including while another analysis
    is in flight.
    """
    session = _get_session(request)
    try:
        await session.analyze()
    except AnalysisUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.user_message) from exc
    return render(session)


@router.post(
    "/session/clear",
    response_model=SessionView,
    summary="Clear the session",
)
async def clear_session(request: Request) -> SessionView:
    session = _get_session(request)
    await run_in_threadpool(session.clear)
    return render(session)

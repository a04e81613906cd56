"""Render session state into a view model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from resistorid.presentation.state import Analyzing, Failed, ImageSelected, StateTag, Succeeded

if TYPE_CHECKING:
    from resistorid.presentation.session import AnalysisSession

LOADING_MESSAGE = "AI is analyzing the image..."
LOADING_DETAIL = "This may take a few moments."
FAILURE_TITLE = "Analysis Failed"

FALLBACK_SWATCH = "#374151"

BAND_SWATCHES: dict[str, str] = {
    "black": "#000000",
    "brown": "#92400e",
    "red": "#dc2626",
    "orange": "#f97316",
    "yellow": "#facc15",
    "green": "#16a34a",
    "blue": "#2563eb",
    "violet": "#7c3aed",
    "purple": "#9333ea",
    "grey": "#6b7280",
    "gray": "#6b7280",
    "white": "#ffffff",
    "gold": "#eab308",
    "silver": "#94a3b8",
}


def band_swatch(color: str) -> str:
    return BAND_SWATCHES.get(color.strip().lower(), FALLBACK_SWATCH)


class BandView(BaseModel):
    color: str
    meaning: str
    swatch: str = Field(description="CSS color used to draw the band")


class ResultView(BaseModel):
    resistance: str
    tolerance: str
    bands: list[BandView]
    explanation: str


class ErrorView(BaseModel):
    title: str = FAILURE_TITLE
    message: str


class LoadingView(BaseModel):
    message: str = LOADING_MESSAGE
    detail: str = LOADING_DETAIL


class CameraView(BaseModel):
    active: bool
    error: str | None = None


class SessionView(BaseModel):
    """Everything a client needs to draw the current screen."""

    state: StateTag
    mode: str
    camera: CameraView
    image_data_url: str | None = None
    can_analyze: bool = False
    loading: LoadingView | None = None
    error: ErrorView | None = None
    result: ResultView | None = None


def render(session: AnalysisSession) -> SessionView:
    state = session.state
    camera = session.camera
    image = state.image

    view = SessionView(
        state=state.tag,
        mode=str(session.mode),
        camera=CameraView(active=camera.is_active, error=camera.error),
        image_data_url=image.data_url if image is not None else None,
        can_analyze=isinstance(state, ImageSelected),
    )

    if isinstance(state, Analyzing):
        view.loading = LoadingView()
    elif isinstance(state, Failed):
        view.error = ErrorView(message=state.message)
    elif isinstance(state, Succeeded):
        result = state.result
        view.result = ResultView(
            resistance=result.resistance,
            tolerance=result.tolerance,
            bands=[BandView(color=b.color, meaning=b.meaning, swatch=band_swatch(b.color)) for b in result.bands],
            explanation=result.explanation,
        )
    return view

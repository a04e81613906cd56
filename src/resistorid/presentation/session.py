"""Session controller driving the presentation state machine.

Transitions::

    Idle --capture--> ImageSelected --analyze--> Analyzing --> Succeeded | Failed
    any  --clear / mode switch / new capture--> Idle

Every reset bumps a generation counter. An analysis response that comes back
after a reset belongs to an older generation and is discarded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from resistorid.capture.camera import CaptureMode
from resistorid.capture.payload import select_from_file
from resistorid.errors import (
    UNKNOWN_ERROR_MESSAGE,
    AnalysisUnavailableError,
    DeviceError,
    FileReadError,
    ResistorIdError,
)
from resistorid.presentation.state import (
    Analyzing,
    Failed,
    Idle,
    ImageSelected,
    SessionState,
    Succeeded,
    classify_result,
)

if TYPE_CHECKING:
    from resistorid.analysis.client import AnalysisClient
    from resistorid.capture.camera import CameraSession
    from resistorid.capture.payload import ImagePayload

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Owns the capture mode, the camera handle, and the current state."""

    def __init__(
        self,
        analyzer: AnalysisClient,
        camera: CameraSession,
        *,
        max_file_size: int | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._camera = camera
        self._max_file_size = max_file_size
        self._state: SessionState = Idle()
        self._mode = CaptureMode.UPLOAD
        self._generation = 0

    # -- Inspection ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def mode(self) -> CaptureMode:
        return self._mode

    @property
    def camera(self) -> CameraSession:
        return self._camera

    @property
    def can_analyze(self) -> bool:
        return isinstance(self._state, ImageSelected)

    # -- Capture ------------------------------------------------------------

    def switch_mode(self, mode: CaptureMode) -> SessionState:
        """Stop any camera, reset to Idle, then activate ``mode``."""
        self._camera.stop()
        self._reset()
        self._mode = mode
        logger.info("Capture mode switched to %s", mode)
        if mode is CaptureMode.CAMERA:
            self._camera.start()
        return self._state

    def start_camera(self) -> SessionState:
        """(Re)start the camera stream in camera mode.

        The image and result state is left alone; a failure is only recorded
        on the camera handle.
        """
        if self._mode is not CaptureMode.CAMERA:
            return self.switch_mode(CaptureMode.CAMERA)
        self._camera.start()
        return self._state

    def select_payload(self, payload: ImagePayload) -> SessionState:
        self._reset()
        self._state = ImageSelected(image=payload)
        return self._state

    def select_file(self, data: bytes, mime_type: str | None) -> SessionState:
        """Select an uploaded file, or fail with a read error."""
        try:
            payload = select_from_file(data, mime_type, max_bytes=self._max_file_size)
        except FileReadError as exc:
            return self.reject_file(exc)
        return self.select_payload(payload)

    def reject_file(self, exc: FileReadError) -> SessionState:
        """Reset and fail with the read error's message."""
        logger.info("Rejected selected file: %s", exc)
        self._reset()
        self._state = Failed(message=exc.user_message)
        return self._state

    def capture_frame(self) -> SessionState:
        """Capture one frame from the running camera.

        Raises:
            DeviceError: If the camera is not streaming.
        """
        try:
            payload = self._camera.capture_frame()
        except DeviceError as exc:
            self._camera.error = exc.user_message
            raise
        return self.select_payload(payload)

    # -- Analysis -----------------------------------------------------------

    async def analyze(self) -> SessionState:
        """Run one analysis for the selected image.

        Raises:
            AnalysisUnavailableError: If no image is waiting for analysis,
                including while a previous request is still in flight.
        """
        state = self._state
        if not isinstance(state, ImageSelected):
            raise AnalysisUnavailableError(f"Cannot analyze while {state.tag}")

        generation = self._generation
        image = state.image
        self._state = Analyzing(image=image)

        try:
            result = await self._analyzer.analyze(image)
        except ResistorIdError as exc:
            outcome: SessionState = Failed(message=exc.user_message, image=image)
        except Exception:
            if generation == self._generation:
                self._state = Failed(message=UNKNOWN_ERROR_MESSAGE, image=image)
            raise
        else:
            failure = classify_result(result)
            if failure is None:
                outcome = Succeeded(image=image, result=result)
            else:
                kind, message = failure
                logger.info("Analysis returned no usable value (%s)", kind)
                outcome = Failed(message=message, image=image)

        if generation != self._generation:
            logger.info("Discarding stale analysis response (generation %d)", generation)
            return self._state

        self._state = outcome
        logger.info("Analysis finished: %s", outcome.tag)
        return self._state

    # -- Reset --------------------------------------------------------------

    def clear(self) -> SessionState:
        """Drop the image, result, and error; stop the camera."""
        self._camera.stop()
        self._reset()
        return self._state

    def close(self) -> None:
        self.clear()

    def _reset(self) -> None:
        self._generation += 1
        self._state = Idle()

"""Camera access with one-shot JPEG capture.

A ``CameraSession`` owns at most one open ``CameraDevice`` at a time. Every
exit path (capture, mode switch, clear, shutdown) goes through ``stop()``,
which is safe to call repeatedly.
"""

from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

import cv2

from resistorid.capture.payload import JPEG_MIME_TYPE, ImagePayload
from resistorid.errors import DeviceError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from resistorid.config import Settings

logger = logging.getLogger(__name__)


class CaptureMode(StrEnum):
    UPLOAD = "upload"
    CAMERA = "camera"


# ---------------------------------------------------------------------------
# Protocol (kept for test stubbing)
# ---------------------------------------------------------------------------


class CameraDevice(Protocol):
    """Protocol for an opened video device."""

    def read_jpeg(self, quality: int) -> bytes:
        """Grab the current frame and return it JPEG-encoded."""
        ...

    def release(self) -> None:
        """Release the underlying device."""
        ...


# ---------------------------------------------------------------------------
# OpenCV implementation
# ---------------------------------------------------------------------------


class OpenCvCamera:
    """A ``cv2.VideoCapture`` device."""

    def __init__(self, index: int) -> None:
        self._index = index
        self._capture = cv2.VideoCapture(index)
        if not self._capture.isOpened():
            self._capture.release()
            raise DeviceError(f"Camera {index} is unavailable")

    def read_jpeg(self, quality: int) -> bytes:
        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise DeviceError(f"Camera {self._index} returned no frame")

        ok, encoded = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
        if not ok:
            raise DeviceError("Failed to encode camera frame as JPEG")
        return encoded.tobytes()

    def release(self) -> None:
        self._capture.release()


def opencv_factory(settings: Settings) -> Callable[[], CameraDevice]:
    """Return a device factory bound to the configured camera index."""

    def _open() -> CameraDevice:
        return OpenCvCamera(settings.camera_index)

    return _open


# ---------------------------------------------------------------------------
# Scoped session handle
# ---------------------------------------------------------------------------


class CameraSession:
    """Exclusive owner of a single camera device."""

    def __init__(self, open_device: Callable[[], CameraDevice], *, jpeg_quality: int = 90) -> None:
        self._open_device = open_device
        self._jpeg_quality = jpeg_quality
        self._lock = threading.Lock()
        self._device: CameraDevice | None = None
        self.error: str | None = None

    # -- Public API ---------------------------------------------------------

    @property
    def is_active(self) -> bool:
        # Lock-free: the lock is held for the whole device open, and this is
        # read from the event loop.
        return self._device is not None

    @property
    def active_count(self) -> int:
        """Number of open devices held by this session (0 or 1)."""
        return 1 if self.is_active else 0

    def start(self) -> bool:
        """Open the camera, tearing down any previous stream first.

        Returns:
            True if the camera is streaming. On failure the user-facing
            message is stored in ``error`` and False is returned.
        """
        with self._lock:
            self._release_locked()
            self.error = None
            try:
                self._device = self._open_device()
            except (DeviceError, OSError) as exc:
                logger.warning("Camera access failed: %s", exc)
                self.error = DeviceError.default_message
                return False
        logger.info("Camera started")
        return True

    def stop(self) -> None:
        """Release the active device. No-op when nothing is open."""
        with self._lock:
            self._release_locked()

    def capture_frame(self) -> ImagePayload:
        """Capture one JPEG frame and stop the stream.

        Raises:
            DeviceError: If no stream is active or the frame cannot be read.
        """
        with self._lock:
            device = self._device
            if device is None:
                raise DeviceError("Camera is not active")
            try:
                data = device.read_jpeg(self._jpeg_quality)
            finally:
                self._release_locked()

        logger.info("Captured camera frame (%d bytes)", len(data))
        return ImagePayload.from_bytes(data, JPEG_MIME_TYPE)

    def __enter__(self) -> CameraSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    # -- Internal -----------------------------------------------------------

    def _release_locked(self) -> None:
        device, self._device = self._device, None
        if device is None:
            return
        try:
            device.release()
        except OSError as exc:
            logger.warning("Error releasing camera: %s", exc)
        else:
            logger.info("Camera stopped")

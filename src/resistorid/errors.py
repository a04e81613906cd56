"""Exception hierarchy shared by the capture, analysis, and presentation layers.

Every error carries a ``user_message`` that the presentation layer shows
as-is in the ``Failed`` state.
"""

from __future__ import annotations

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
FILE_READ_MESSAGE = "Could not read the selected file."
CAMERA_ACCESS_MESSAGE = "Could not access camera. Please check permissions."
NOT_UNDERSTOOD_MESSAGE = "Could not understand the response from the AI. The image may be unclear."


class ResistorIdError(Exception):
    """Base class for all ResistorID failures."""

    default_message = UNKNOWN_ERROR_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class ConfigurationError(ResistorIdError):
    """A required setting (the inference credential) is missing."""


class DeviceError(ResistorIdError):
    """The camera could not be opened or read."""

    default_message = CAMERA_ACCESS_MESSAGE


class FileReadError(ResistorIdError):
    """An uploaded file could not be turned into an image payload."""

    default_message = FILE_READ_MESSAGE


class TransportError(ResistorIdError):
    """The call to the inference service failed."""


class SchemaViolationError(ResistorIdError):
    """The service response is not valid JSON for the declared schema."""

    default_message = NOT_UNDERSTOOD_MESSAGE


class AnalysisUnavailableError(ResistorIdError):
    """Analysis was triggered while the trigger is disabled."""

    default_message = "No image is ready for analysis."

"""Presentation states as a tagged union.

Each state carries only the data valid for it, so combinations such as
"loading with a result" cannot be constructed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resistorid.analysis.contracts import AnalysisResult
    from resistorid.capture.payload import ImagePayload

AMBIGUOUS_RESULT_MESSAGE = (
    "Could not determine resistance. The image might be unclear or doesn't contain a standard resistor."
)


class StateTag(StrEnum):
    IDLE = "idle"
    IMAGE_SELECTED = "image_selected"
    ANALYZING = "analyzing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Idle:
    tag = StateTag.IDLE

    @property
    def image(self) -> ImagePayload | None:
        return None


@dataclass(frozen=True)
class ImageSelected:
    image: ImagePayload
    tag = StateTag.IMAGE_SELECTED


@dataclass(frozen=True)
class Analyzing:
    image: ImagePayload
    tag = StateTag.ANALYZING


@dataclass(frozen=True)
class Succeeded:
    image: ImagePayload
    result: AnalysisResult
    tag = StateTag.SUCCEEDED


@dataclass(frozen=True)
class Failed:
    message: str
    image: ImagePayload | None = None
    tag = StateTag.FAILED


SessionState = Idle | ImageSelected | Analyzing | Succeeded | Failed


class FailureKind(StrEnum):
    SERVICE_DECLARED = "service_declared"
    AMBIGUOUS = "ambiguous"


def classify_result(result: AnalysisResult) -> tuple[FailureKind, str] | None:
    """Decide whether a parsed result is a failure.

    A service-declared error wins over the empty-resistance check.

    Returns:
        ``(kind, message)`` for a failed result, or None for a usable one.
    """
    if result.error and result.error.strip():
        return FailureKind.SERVICE_DECLARED, result.error
    if not result.resistance or not result.resistance.strip():
        return FailureKind.AMBIGUOUS, AMBIGUOUS_RESULT_MESSAGE
    return None

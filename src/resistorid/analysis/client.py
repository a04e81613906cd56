"""Gemini-backed analysis client.

One awaited ``generate_content_async`` call per analysis: the image, a fixed
instruction, and a JSON response schema go out, JSON text comes back and is
validated into an ``AnalysisResult``. No retries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import google.generativeai as genai
from pydantic import ValidationError

from resistorid.analysis.contracts import ANALYSIS_PROMPT, RESPONSE_SCHEMA, AnalysisResult
from resistorid.config import get_settings
from resistorid.errors import ConfigurationError, SchemaViolationError, TransportError

if TYPE_CHECKING:
    from resistorid.capture.payload import ImagePayload

logger = logging.getLogger(__name__)

CREDENTIAL_ENV_VAR = "RESISTORID_GEMINI_API_KEY"


class AnalysisClient(Protocol):
    """Protocol for anything that can analyze an image payload."""

    async def analyze(self, payload: ImagePayload) -> AnalysisResult:
        """Submit the payload and return the parsed result."""
        ...


class GeminiAnalysisClient:
    """Sends resistor images to a Gemini model with a constrained JSON schema."""

    def __init__(self, model_name: str) -> None:
        self._model_name = model_name

    async def analyze(self, payload: ImagePayload) -> AnalysisResult:
        """Analyze one image.

        The credential is read from the environment on every call.

        Raises:
            ConfigurationError: If the credential is not configured.
            TransportError: If the service call fails.
            SchemaViolationError: If the response is not valid for the schema.
        """
        api_key = get_settings().gemini_api_key
        if not api_key or not api_key.strip():
            raise ConfigurationError(f"{CREDENTIAL_ENV_VAR} environment variable is not set.")

        text = await self._generate(api_key, payload)
        return self._parse(text)

    # -- Internal -----------------------------------------------------------

    async def _generate(self, api_key: str, payload: ImagePayload) -> str:
        image_part = {"mime_type": payload.mime_type, "data": payload.raw_bytes()}

        logger.info("Requesting analysis from %s (%s)", self._model_name, payload.mime_type)
        try:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(
                self._model_name,
                generation_config={
                    "response_mime_type": "application/json",
                    "response_schema": RESPONSE_SCHEMA,
                },
            )
            response = await model.generate_content_async([image_part, ANALYSIS_PROMPT])
            return response.text
        except Exception as exc:
            logger.error("Inference call to %s failed: %s", self._model_name, exc)
            raise TransportError(str(exc) or None) from exc

    @staticmethod
    def _parse(text: str) -> AnalysisResult:
        try:
            return AnalysisResult.model_validate_json(text or "")
        except ValidationError as exc:
            logger.error("Failed to parse inference response: %s", exc)
            raise SchemaViolationError() from exc

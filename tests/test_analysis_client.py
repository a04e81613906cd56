"""Tests for the Gemini analysis client."""

from __future__ import annotations

import json
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from resistorid.analysis.client import GeminiAnalysisClient
from resistorid.analysis.contracts import ANALYSIS_PROMPT, RESPONSE_SCHEMA, AnalysisResult
from resistorid.capture.payload import ImagePayload
from resistorid.errors import (
    NOT_UNDERSTOOD_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    ConfigurationError,
    SchemaViolationError,
    TransportError,
)

KEY_ENV = {"RESISTORID_GEMINI_API_KEY": "test-gemini-key"}

FOUR_BAND_RESPONSE = {
    "resistance": "4.7 kΩ",
    "tolerance": "±5%",
    "bands": [
        {"color": "Yellow", "meaning": "1st Digit: 4"},
        {"color": "Violet", "meaning": "2nd Digit: 7"},
        {"color": "Red", "meaning": "Multiplier: x100"},
        {"color": "Gold", "meaning": "Tolerance: ±5%"},
    ],
    "explanation": "47 x 100 = 4700 Ω",
    "error": "",
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _payload() -> ImagePayload:
    return ImagePayload.from_bytes(b"\xff\xd8resistor", "image/jpeg")


def _stub_response(mock_genai: MagicMock, text: str) -> AsyncMock:
    generate = AsyncMock(return_value=MagicMock(text=text))
    mock_genai.GenerativeModel.return_value.generate_content_async = generate
    return generate


# ---------------------------------------------------------------------------
# Credential precondition
# ---------------------------------------------------------------------------


class TestCredential:
    @patch("resistorid.analysis.client.genai")
    async def test_missing_key_raises_before_request(
        self, mock_genai: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("RESISTORID_GEMINI_API_KEY", raising=False)
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with pytest.raises(ConfigurationError, match="RESISTORID_GEMINI_API_KEY"):
            await client.analyze(_payload())

        mock_genai.configure.assert_not_called()
        mock_genai.GenerativeModel.assert_not_called()

    @patch("resistorid.analysis.client.genai")
    async def test_blank_key_is_missing(self, mock_genai: MagicMock) -> None:
        client = GeminiAnalysisClient("gemini-2.5-flash")
        with patch.dict(os.environ, {"RESISTORID_GEMINI_API_KEY": "   "}):
            with pytest.raises(ConfigurationError):
                await client.analyze(_payload())
        mock_genai.GenerativeModel.assert_not_called()

    @patch("resistorid.analysis.client.genai")
    async def test_key_read_at_call_time(self, mock_genai: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RESISTORID_GEMINI_API_KEY", raising=False)
        client = GeminiAnalysisClient("gemini-2.5-flash")
        _stub_response(mock_genai, json.dumps(FOUR_BAND_RESPONSE))

        with patch.dict(os.environ, KEY_ENV):
            await client.analyze(_payload())

        mock_genai.configure.assert_called_once_with(api_key="test-gemini-key")


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    @patch("resistorid.analysis.client.genai")
    async def test_single_schema_constrained_request(self, mock_genai: MagicMock) -> None:
        generate = _stub_response(mock_genai, json.dumps(FOUR_BAND_RESPONSE))
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            await client.analyze(_payload())

        mock_genai.GenerativeModel.assert_called_once_with(
            "gemini-2.5-flash",
            generation_config={
                "response_mime_type": "application/json",
                "response_schema": RESPONSE_SCHEMA,
            },
        )
        generate.assert_awaited_once()
        (contents,), _ = generate.call_args
        image_part, prompt = contents
        assert image_part == {"mime_type": "image/jpeg", "data": b"\xff\xd8resistor"}
        assert prompt == ANALYSIS_PROMPT

    def test_schema_requires_all_keys(self) -> None:
        assert set(RESPONSE_SCHEMA["required"]) == {"resistance", "tolerance", "bands", "explanation", "error"}
        assert RESPONSE_SCHEMA["properties"]["bands"]["items"]["required"] == ["color", "meaning"]


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestResponseParsing:
    @patch("resistorid.analysis.client.genai")
    async def test_parses_valid_response(self, mock_genai: MagicMock) -> None:
        _stub_response(mock_genai, json.dumps(FOUR_BAND_RESPONSE))
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            result = await client.analyze(_payload())

        assert isinstance(result, AnalysisResult)
        assert result.resistance == "4.7 kΩ"
        assert [b.color for b in result.bands] == ["Yellow", "Violet", "Red", "Gold"]

    @patch("resistorid.analysis.client.genai")
    async def test_returns_service_error_uninterpreted(self, mock_genai: MagicMock) -> None:
        body = {**FOUR_BAND_RESPONSE, "resistance": "", "bands": [], "error": "Not a resistor."}
        _stub_response(mock_genai, json.dumps(body))
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            result = await client.analyze(_payload())

        assert result.error == "Not a resistor."
        assert result.resistance == ""

    @pytest.mark.parametrize(
        "text",
        [
            "The resistor is 4.7k ohms",
            "",
            '{"resistance": "4.7 kΩ"',
            json.dumps({k: v for k, v in FOUR_BAND_RESPONSE.items() if k != "error"}),
            json.dumps({**FOUR_BAND_RESPONSE, "bands": [{"color": "Red"}]}),
        ],
    )
    @patch("resistorid.analysis.client.genai")
    async def test_non_conforming_text_raises(self, mock_genai: MagicMock, text: str) -> None:
        _stub_response(mock_genai, text)
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            with pytest.raises(SchemaViolationError) as excinfo:
                await client.analyze(_payload())

        assert excinfo.value.user_message == NOT_UNDERSTOOD_MESSAGE


# ---------------------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------------------


class TestTransport:
    @patch("resistorid.analysis.client.genai")
    async def test_model_setup_failure_is_transport_error(self, mock_genai: MagicMock) -> None:
        mock_genai.GenerativeModel.side_effect = ValueError("Unknown model: gemini-9")
        client = GeminiAnalysisClient("gemini-9")

        with patch.dict(os.environ, KEY_ENV):
            with pytest.raises(TransportError, match="Unknown model: gemini-9"):
                await client.analyze(_payload())

    @patch("resistorid.analysis.client.genai")
    async def test_configure_failure_is_transport_error(self, mock_genai: MagicMock) -> None:
        mock_genai.configure.side_effect = RuntimeError("bad transport")
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            with pytest.raises(TransportError, match="bad transport"):
                await client.analyze(_payload())

    @patch("resistorid.analysis.client.genai")
    async def test_transport_message_surfaced(self, mock_genai: MagicMock) -> None:
        generate = AsyncMock(side_effect=RuntimeError("429 Resource exhausted"))
        mock_genai.GenerativeModel.return_value.generate_content_async = generate
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            with pytest.raises(TransportError, match="429 Resource exhausted"):
                await client.analyze(_payload())

        generate.assert_awaited_once()

    @patch("resistorid.analysis.client.genai")
    async def test_empty_transport_message_falls_back(self, mock_genai: MagicMock) -> None:
        mock_genai.GenerativeModel.return_value.generate_content_async = AsyncMock(side_effect=ConnectionError())
        client = GeminiAnalysisClient("gemini-2.5-flash")

        with patch.dict(os.environ, KEY_ENV):
            with pytest.raises(TransportError) as excinfo:
                await client.analyze(_payload())

        assert excinfo.value.user_message == UNKNOWN_ERROR_MESSAGE

"""Request/response contract for resistor analysis."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ColorBand(BaseModel):
    """One colored stripe, in left-to-right order."""

    color: str = Field(description="Name of the identified color, e.g. 'Brown'")
    meaning: str = Field(description="Role of this band at its position, e.g. '1st Digit: 1'")


class AnalysisResult(BaseModel):
    """Structured output returned by the inference service.

    The client does not judge success; ``error`` and an empty ``resistance``
    are interpreted by the presentation layer.
    """

    resistance: str
    tolerance: str
    bands: list[ColorBand]
    explanation: str
    error: str


RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "resistance": {
            "type": "string",
            "description": (
                'The final calculated resistance value, including units (e.g., "4.7 kΩ", "1 MΩ"). '
                "Empty if not identified."
            ),
        },
        "tolerance": {
            "type": "string",
            "description": (
                'The tolerance of the resistor, including the percent sign (e.g., "±5%", "±10%"). '
                "Empty if not identified."
            ),
        },
        "bands": {
            "type": "array",
            "description": "An array of objects, one for each identified color band, in order from left to right.",
            "items": {
                "type": "object",
                "properties": {
                    "color": {
                        "type": "string",
                        "description": 'The name of the color identified (e.g., "Brown", "Red").',
                    },
                    "meaning": {
                        "type": "string",
                        "description": (
                            "The meaning of this band in its position "
                            '(e.g., "1st Digit: 1", "Multiplier: x100", "Tolerance: ±2%").'
                        ),
                    },
                },
                "required": ["color", "meaning"],
            },
        },
        "explanation": {
            "type": "string",
            "description": (
                "A brief, step-by-step explanation of how the resistance value was calculated. "
                "Empty if not identified."
            ),
        },
        "error": {
            "type": "string",
            "description": (
                "An error message if a resistor or its bands could not be identified clearly. "
                "Should be an empty string on success."
            ),
        },
    },
    "required": ["resistance", "tolerance", "bands", "explanation", "error"],
}

ANALYSIS_PROMPT = (
    "You are an expert electronics engineer. Analyze the provided image of a resistor. "
    "Identify the color bands in their correct order, from left to right. "
    "Based on the standard 4-band or 5-band resistor color code, determine the significant digits, "
    "the multiplier, and the tolerance. "
    "Calculate the final resistance value and express it with appropriate units (e.g., Ω, kΩ, MΩ). "
    "Also, state the tolerance percentage. Provide a step-by-step explanation of your calculation. "
    "If you cannot clearly identify the bands or if the component is not a resistor, "
    "please state that in the 'error' field. "
    "Respond ONLY with a JSON object that matches the provided schema."
)

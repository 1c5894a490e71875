"""Meal photo analysis through a remote vision classifier."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrilog.domain.analysis import AnalysisOutcome, FailureKind, MealAnalysis

_logger = logging.getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "Could not reach the analysis service. Please try again."
PARSE_ERROR_MESSAGE = (
    "Could not read the analysis result. Try again or enter the meal manually."
)

_RANGE_FIELDS = [
    f"{nutrient}_{bound}"
    for nutrient in (
        "calories",
        "protein",
        "carbs",
        "fat",
        "sugar",
        "fiber",
        "sodium",
    )
    for bound in ("min", "max")
]

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "portion": {"type": "string"},
                    **{name: {"type": "number"} for name in _RANGE_FIELDS},
                },
                "required": ["name", "portion", *_RANGE_FIELDS],
                "additionalProperties": False,
            },
        },
        "total_calories_min": {"type": "number"},
        "total_calories_max": {"type": "number"},
        "total_protein_min": {"type": "number"},
        "total_protein_max": {"type": "number"},
        "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
        "tips": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "items",
        "total_calories_min",
        "total_calories_max",
        "total_protein_min",
        "total_protein_max",
        "confidence",
        "tips",
    ],
    "additionalProperties": False,
}

ANALYSIS_PROMPT = (
    "Analyze this meal photo and identify all visible food items. For each item:\n"
    "1. Identify the food\n"
    "2. Estimate portion size using visual cues (plate size, comparisons)\n"
    "3. Provide calorie and macro ranges plus sugar (g), fiber (g) "
    "and sodium (mg) ranges\n"
    "4. Be conservative with estimates\n\n"
    "Confidence: high for a clear view of common foods in standard portions, "
    "medium for partial views or mixed dishes, low for poor lighting or "
    "unclear items.\n"
    "Include 1-2 tips to improve photo accuracy if needed."
)


class VisionClient(Protocol):
    """Interface for the remote meal classifier."""

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured analysis data."""


@dataclass
class AnalysisService:
    """Calls the classifier and turns its reply into a tagged outcome."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze(self, image_bytes: bytes) -> AnalysisOutcome:
        """Analyze a meal photo. Failures are returned, never raised."""
        try:
            raw = await self.client.extract(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=_to_data_url(image_bytes),
                schema=ANALYSIS_SCHEMA,
                prompt=ANALYSIS_PROMPT,
            )
        except ValueError as exc:
            _logger.warning("Classifier returned unparseable output: %s", exc)
            return AnalysisOutcome.failed(FailureKind.PARSE, PARSE_ERROR_MESSAGE)
        except Exception:
            _logger.exception("Classifier call failed")
            return AnalysisOutcome.failed(
                FailureKind.TRANSPORT, TRANSPORT_ERROR_MESSAGE
            )
        return parse_analysis(raw)


def parse_analysis(raw: object) -> AnalysisOutcome:
    """Strictly validate a classifier payload into a MealAnalysis."""
    try:
        analysis = MealAnalysis.model_validate(raw)
    except ValidationError as exc:
        _logger.warning(
            "Classifier payload failed validation: %s errors", exc.error_count()
        )
        return AnalysisOutcome.failed(FailureKind.PARSE, PARSE_ERROR_MESSAGE)
    return AnalysisOutcome.success(analysis)


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"

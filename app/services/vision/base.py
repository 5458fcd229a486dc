"""
Base Vision Provider Interface
Abstract class for job sheet extraction providers (Gemini, OpenAI)
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict

from fastapi import status
from pydantic import ValidationError

from app.core.errors import AppError
from app.schemas.vision import ExtractedForm, ExtractionResult

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are an OCR extraction engine specializing in repair service forms.

Extract ONLY customer and device information from this form.
Ignore company contact details.

Return ONLY valid JSON using this exact structure:

{
  "jobNumber": string | null,
  "customerName": string | null,
  "customerMobileNo": string | null,
  "customerEmail": string | null,
  "item": string | null,
  "make": string | null,
  "model": string | null,
  "serialNumber": string | null,
  "date": string | null,
  "accessories": {
    "powerAdapter": boolean,
    "powerCord": boolean,
    "carryCase": boolean,
    "battery": boolean,
    "others": string | null
  },
  "remarks": string | null,
  "handwrittenNotes": string | null
}

Rules:
- If a field is missing or unreadable, return null.
- For checkboxes ("accessories"), return true if checked, false otherwise.
- Extract handwritten notes as accurately as possible.
- Do NOT wrap the JSON in markdown code blocks.
- Return ONLY the JSON object.
"""


class VisionProvider(ABC):
    """Base class for all vision providers"""

    @abstractmethod
    async def extract_form(self, image_bytes: bytes, mime_type: str) -> Dict:
        """
        Read a photographed job sheet.

        Returns the raw decoded JSON object produced by the model. Provider
        failures are raised as AppError with the HTTP status to report.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass

    def parse_response_text(self, text: str) -> Dict:
        try:
            result = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"{self.name} returned invalid JSON: {e}")
            raise AppError("AI returned invalid JSON", status.HTTP_500_INTERNAL_SERVER_ERROR)
        if not isinstance(result, dict):
            raise AppError("AI returned invalid JSON", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return result


def build_form(raw: Dict) -> ExtractedForm:
    """Validate raw model output and derive the flat job-form fields."""
    try:
        data = ExtractionResult.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Vision output failed validation: {e.error_count()} errors")
        raise AppError("AI response failed validation", status.HTTP_500_INTERNAL_SERVER_ERROR)

    combined_brand = " ".join(part for part in (data.make, data.model) if part)
    return ExtractedForm(
        **data.model_dump(),
        brand=combined_brand or data.item or "",
        phoneNumber=data.customerMobileNo or "",
        issue=data.remarks or data.handwrittenNotes or "",
    )

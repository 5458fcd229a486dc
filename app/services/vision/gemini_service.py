"""
Google Gemini Vision Implementation
Default provider for job sheet extraction
"""
import logging
from typing import Dict

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from fastapi import status

from app.config import settings
from app.core.errors import AppError
from .base import EXTRACTION_PROMPT, VisionProvider

logger = logging.getLogger(__name__)


class GeminiVisionService(VisionProvider):
    """Google Gemini API implementation"""

    def __init__(self):
        genai.configure(api_key=settings.GEMINI_API_KEY)
        self.model = genai.GenerativeModel(settings.GEMINI_MODEL)

    async def extract_form(self, image_bytes: bytes, mime_type: str) -> Dict:
        try:
            response = await self.model.generate_content_async(
                [EXTRACTION_PROMPT, {"mime_type": mime_type, "data": image_bytes}],
                generation_config=genai.types.GenerationConfig(
                    temperature=0,
                    response_mime_type="application/json",
                ),
            )
            text = response.text
        except google_exceptions.ResourceExhausted as e:
            logger.warning(f"Gemini quota exceeded: {e}")
            raise AppError(
                "Gemini API quota exceeded. Please wait a moment or try again later.",
                status.HTTP_429_TOO_MANY_REQUESTS,
            )
        except google_exceptions.GoogleAPIError as e:
            if "API_KEY_INVALID" in str(e) or "API key not valid" in str(e):
                logger.error("Gemini rejected the configured API key")
                raise AppError("Invalid vision API key", status.HTTP_500_INTERNAL_SERVER_ERROR)
            logger.error(f"Gemini extraction failed: {e}")
            raise AppError(
                f"Vision extraction service failure: {e}",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except ValueError as e:
            # response.text raises when the candidate was blocked or empty
            logger.error(f"Gemini returned no usable text: {e}")
            raise AppError(
                f"Vision extraction service failure: {e}",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        result = self.parse_response_text(text)
        logger.info(f"Gemini extracted job sheet: {result.get('jobNumber') or 'N/A'}")
        return result

    @property
    def name(self) -> str:
        return "gemini"

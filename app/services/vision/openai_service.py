"""
OpenAI Vision Implementation
Uses a GPT-4o family model with image input and JSON output
"""
import base64
import logging
from typing import Dict

import openai
from openai import AsyncOpenAI
from fastapi import status

from app.config import settings
from app.core.errors import AppError
from .base import EXTRACTION_PROMPT, VisionProvider

logger = logging.getLogger(__name__)


class OpenAIVisionService(VisionProvider):
    """OpenAI API implementation"""

    def __init__(self):
        self.client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.chat_model = settings.OPENAI_VISION_MODEL

    async def extract_form(self, image_bytes: bytes, mime_type: str) -> Dict:
        data_uri = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        try:
            response = await self.client.chat.completions.create(
                model=self.chat_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": EXTRACTION_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_uri}},
                        ],
                    }
                ],
                response_format={"type": "json_object"},
                temperature=0,
            )
        except openai.RateLimitError as e:
            logger.warning(f"OpenAI quota exceeded: {e}")
            raise AppError(
                "OpenAI API quota exceeded. Please wait a moment or try again later.",
                status.HTTP_429_TOO_MANY_REQUESTS,
            )
        except openai.AuthenticationError:
            logger.error("OpenAI rejected the configured API key")
            raise AppError("Invalid vision API key", status.HTTP_500_INTERNAL_SERVER_ERROR)
        except openai.OpenAIError as e:
            logger.error(f"OpenAI extraction failed: {e}")
            raise AppError(
                f"Vision extraction service failure: {e}",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        result = self.parse_response_text(response.choices[0].message.content)
        logger.info(f"OpenAI extracted job sheet: {result.get('jobNumber') or 'N/A'}")
        return result

    @property
    def name(self) -> str:
        return "openai"

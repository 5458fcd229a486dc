"""
Vision Provider Factory
Centralized access to the configured vision provider
"""
import logging
from typing import Optional

from fastapi import status

from app.config import settings
from app.core.errors import AppError
from .base import VisionProvider
from .gemini_service import GeminiVisionService
from .openai_service import OpenAIVisionService

logger = logging.getLogger(__name__)


class VisionFactory:
    """Factory to get the vision provider based on configuration"""

    _providers = {
        'gemini': GeminiVisionService,
        'openai': OpenAIVisionService,
    }

    _key_settings = {
        'gemini': 'GEMINI_API_KEY',
        'openai': 'OPENAI_API_KEY',
    }

    _instances = {}  # Singleton instances

    @classmethod
    def get_provider(cls, provider_name: Optional[str] = None) -> VisionProvider:
        """
        Get vision provider instance

        Raises:
            AppError (503): unknown provider or missing API key
        """
        if provider_name is None:
            provider_name = settings.VISION_PROVIDER

        if provider_name in cls._instances:
            return cls._instances[provider_name]

        provider_class = cls._providers.get(provider_name)
        if not provider_class:
            available = ', '.join(cls._providers)
            logger.error(f"Unknown vision provider: {provider_name}. Available providers: {available}")
            raise AppError("Vision provider is not configured", status.HTTP_503_SERVICE_UNAVAILABLE)

        if not getattr(settings, cls._key_settings[provider_name], None):
            logger.error(f"{provider_name} requires {cls._key_settings[provider_name]} to be set")
            raise AppError("Vision provider is not configured", status.HTTP_503_SERVICE_UNAVAILABLE)

        instance = provider_class()
        cls._instances[provider_name] = instance
        logger.info(f"Initialized vision provider: {provider_name}")
        return instance


def get_vision_provider(provider_name: Optional[str] = None) -> VisionProvider:
    """Get vision provider instance (convenience function)"""
    return VisionFactory.get_provider(provider_name)

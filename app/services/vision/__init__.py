"""Vision services package"""
from .base import VisionProvider, build_form
from .factory import VisionFactory, get_vision_provider

__all__ = ['VisionFactory', 'VisionProvider', 'build_form', 'get_vision_provider']

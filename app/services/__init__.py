"""
Services layer for data access and external communications.

This layer handles:
- Profile lookups against MongoDB
- Chat color classification via the OpenAI API
"""

from . import color_service
from . import profile_service

__all__ = [
    "color_service",
    "profile_service"
]

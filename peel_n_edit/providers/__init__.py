"""API provider clients for external services."""

from .gemini import GeminiClient
from .fal import FalClient

__all__ = [
    "GeminiClient",
    "FalClient",
]

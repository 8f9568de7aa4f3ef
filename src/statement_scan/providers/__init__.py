"""Vision model providers and the ordered fallback chain."""

from .base import BaseProviderClient, ImagePayload, ProviderConfig
from .chain import ProviderResult, attempt_extraction, build_client
from .cloudflare import CloudflareClient
from .gemini import GeminiClient
from .ollama import OllamaClient
from .openai_compat import OpenAICompatibleClient

__all__ = [
    "BaseProviderClient",
    "CloudflareClient",
    "GeminiClient",
    "ImagePayload",
    "OllamaClient",
    "OpenAICompatibleClient",
    "ProviderConfig",
    "ProviderResult",
    "attempt_extraction",
    "build_client",
]

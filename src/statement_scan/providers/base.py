from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


KIND_GEMINI = "gemini"
KIND_OPENAI = "openai"
KIND_CLOUDFLARE = "cloudflare"
KIND_OLLAMA = "ollama"

PROVIDER_KINDS = (KIND_GEMINI, KIND_OPENAI, KIND_CLOUDFLARE, KIND_OLLAMA)


@dataclass(frozen=True)
class ProviderConfig:
    """One entry of the ordered provider fallback chain."""

    name: str
    kind: str
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    account_id: Optional[str] = None
    timeout_seconds: int = 120
    temperature: float = 0.1
    max_tokens: int = 4096

    @property
    def source(self) -> str:
        """Identifier reported back to callers as ``source``."""
        if self.kind == KIND_GEMINI:
            return self.model
        return f"{self.name}:{self.model}"

    def describe(self) -> Dict[str, Any]:
        # Never include credentials here; this ends up in logs and CLI output.
        return {
            "name": self.name,
            "kind": self.kind,
            "model": self.model,
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass(frozen=True)
class ImagePayload:
    """Decoded request image: mime type plus the raw base64 text."""

    mime_type: str
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class BaseProviderClient:
    """Interface for provider clients.

    Subclasses return the model's free-form text for one image + prompt, or
    raise :class:`~statement_scan.errors.ProviderError` so the chain can move
    on to the next provider.
    """

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    def complete(self, prompt: str, image: ImagePayload) -> str:
        raise NotImplementedError

    def close(self) -> None:
        return None

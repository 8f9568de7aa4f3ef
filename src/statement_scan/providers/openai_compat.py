from __future__ import annotations

from typing import Any, Optional

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from ..errors import ProviderError
from ..logging import get_logger
from .base import BaseProviderClient, ImagePayload, ProviderConfig

LOG = get_logger("provider-openai")


class OpenAICompatibleClient(BaseProviderClient):
    """Chat Completions (vision) for OpenRouter, Groq and other compatible APIs."""

    def __init__(self, config: ProviderConfig, *, client: Optional[Any] = None) -> None:
        super().__init__(config)
        self._http_client: Optional[httpx.Client] = None
        if client is None:
            self._http_client = httpx.Client(
                timeout=httpx.Timeout(connect=10.0, read=float(config.timeout_seconds), write=30.0, pool=10.0),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
            client = OpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                http_client=self._http_client,
                max_retries=0,
            )
        self.client = client

    def complete(self, prompt: str, image: ImagePayload) -> str:
        name = self.config.name
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image.data_url}},
                ],
            }
        ]
        LOG.info("Calling %s model=%s", name, self.config.model)
        try:
            completion = self.client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except APIStatusError as exc:
            body = getattr(getattr(exc, "response", None), "text", None)
            LOG.error("%s API returned %s. Body preview: %r", name, exc.status_code, body[:300] if body else None)
            raise ProviderError(
                name,
                f"{name} API error: {exc.status_code}",
                status_code=exc.status_code,
                details=body or str(exc),
            ) from exc
        except (APIConnectionError, APITimeoutError) as exc:
            LOG.error("Network/timeout while calling %s: %s", name, exc)
            raise ProviderError(name, f"{name} request failed: {exc}", details=str(exc)) from exc

        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None) if message is not None else None
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(name, f"{name} returned no content")

        usage = getattr(completion, "usage", None)
        LOG.info(
            "%s completion finished id=%s total_tokens=%s",
            name,
            getattr(completion, "id", None),
            getattr(usage, "total_tokens", None) if usage else None,
        )
        return text.strip()

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

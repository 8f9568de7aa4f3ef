from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Type

from ..errors import ConfigurationError, ProviderChainError, ProviderError
from ..logging import get_logger
from .base import (
    KIND_CLOUDFLARE,
    KIND_GEMINI,
    KIND_OLLAMA,
    KIND_OPENAI,
    BaseProviderClient,
    ImagePayload,
    ProviderConfig,
)
from .cloudflare import CloudflareClient
from .gemini import GeminiClient
from .ollama import OllamaClient
from .openai_compat import OpenAICompatibleClient

LOG = get_logger("provider-chain")

ClientFactory = Callable[[ProviderConfig], BaseProviderClient]

_CLIENTS: Dict[str, Type[BaseProviderClient]] = {
    KIND_GEMINI: GeminiClient,
    KIND_OPENAI: OpenAICompatibleClient,
    KIND_CLOUDFLARE: CloudflareClient,
    KIND_OLLAMA: OllamaClient,
}


def build_client(config: ProviderConfig) -> BaseProviderClient:
    client_cls = _CLIENTS.get(config.kind)
    if client_cls is None:
        raise ConfigurationError(f"Unsupported provider kind {config.kind!r} for {config.name}")
    return client_cls(config)


@dataclass(frozen=True)
class ProviderResult:
    provider: ProviderConfig
    text: str
    elapsed_seconds: float

    @property
    def source(self) -> str:
        return self.provider.source


def attempt_extraction(
    providers: Sequence[ProviderConfig],
    prompt: str,
    image: ImagePayload,
    *,
    client_factory: ClientFactory = build_client,
) -> ProviderResult:
    """Try each provider in order; the first non-empty response wins.

    Attempts are strictly sequential. A provider that raises ProviderError or
    answers with blank text is logged and skipped. When none succeed a
    ProviderChainError carrying every failure is raised.
    """
    if not providers:
        raise ConfigurationError("No AI provider configured")

    failures: List[ProviderError] = []
    total = len(providers)
    for idx, config in enumerate(providers, 1):
        LOG.info("Attempt %d/%d: %s", idx, total, config.source)
        client = client_factory(config)
        t0 = time.perf_counter()
        try:
            text = client.complete(prompt, image)
        except ProviderError as exc:
            if exc.rate_limited:
                LOG.warning("%s is rate limited; trying next provider", config.source)
            else:
                LOG.error("%s failed: %s", config.source, exc)
            failures.append(exc)
            continue
        finally:
            client.close()

        elapsed = time.perf_counter() - t0
        if not text or not text.strip():
            LOG.warning("%s returned an empty response after %.2fs", config.source, elapsed)
            failures.append(ProviderError(config.name, f"{config.name} returned an empty response"))
            continue
        LOG.info("%s answered in %.2fs (%d chars)", config.source, elapsed, len(text))
        return ProviderResult(provider=config, text=text, elapsed_seconds=elapsed)

    raise ProviderChainError(failures)

"""Service layer shared by the HTTP endpoint and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import Settings, load_settings
from .domain.models import NormalizedTransaction
from .errors import ConfigurationError
from .extraction.normalizer import SplitContext, TransactionNormalizer
from .images import decode_image, load_image_file
from .logging import get_logger
from .prompt import build_prompt
from .providers.base import ImagePayload, ProviderConfig
from .providers.chain import ClientFactory, attempt_extraction, build_client

LOG = get_logger("service")


@dataclass(frozen=True)
class AnalysisResult:
    transactions: List[NormalizedTransaction] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def success(self) -> bool:
        return len(self.transactions) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "count": len(self.transactions),
            "source": self.source,
        }


class ExtractionService:
    """Run one image through the provider chain and normalize the answer."""

    def __init__(
        self,
        providers: Sequence[ProviderConfig],
        *,
        client_factory: ClientFactory = build_client,
        today: Optional[date] = None,
    ) -> None:
        self.providers: Tuple[ProviderConfig, ...] = tuple(providers)
        self.client_factory = client_factory
        self.today = today

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "ExtractionService":
        settings = settings or load_settings()
        return cls(settings.providers, **kwargs)

    @property
    def has_provider(self) -> bool:
        return bool(self.providers)

    @property
    def uses_fallback(self) -> bool:
        return len(self.providers) > 1

    def status(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "message": "Transaction extraction endpoint ready",
            "hasApiKey": self.has_provider,
            "providers": [p.source for p in self.providers],
        }

    def ensure_configured(self) -> None:
        if not self.has_provider:
            LOG.error("No provider credentials configured")
            raise ConfigurationError(
                "API key not configured. Set GEMINI_API_KEY, OPENROUTER_API_KEY, GROQ_API_KEY, "
                "CLOUDFLARE_ACCOUNT_ID/CLOUDFLARE_API_TOKEN or OLLAMA_URL."
            )

    def analyze(
        self,
        image: Any,
        *,
        prompt: Optional[str] = None,
        members: Optional[Sequence[Any]] = None,
        currency: Optional[str] = None,
    ) -> AnalysisResult:
        """Decode ``image`` (base64 or data URL) and extract its transactions."""
        self.ensure_configured()
        payload = image if isinstance(image, ImagePayload) else decode_image(image)
        return self._run(payload, prompt=prompt, members=members, currency=currency)

    def analyze_file(
        self,
        path: str,
        *,
        prompt: Optional[str] = None,
        members: Optional[Sequence[Any]] = None,
        currency: Optional[str] = None,
    ) -> AnalysisResult:
        self.ensure_configured()
        return self._run(load_image_file(path), prompt=prompt, members=members, currency=currency)

    def _run(
        self,
        image: ImagePayload,
        *,
        prompt: Optional[str],
        members: Optional[Sequence[Any]],
        currency: Optional[str],
    ) -> AnalysisResult:
        split = SplitContext.from_members(members)
        instruction = build_prompt(
            prompt,
            members=split.members if split else None,
            currency=currency,
        )
        result = attempt_extraction(
            self.providers,
            instruction,
            image,
            client_factory=self.client_factory,
        )
        LOG.debug("AI content from %s: %r", result.source, result.text[:1000])
        normalizer = TransactionNormalizer(split.members if split else None, today=self.today)
        transactions = normalizer.normalize_text(result.text)
        LOG.info("Parsed transactions: %d (source=%s)", len(transactions), result.source)
        return AnalysisResult(transactions=transactions, source=result.source)

"""Exception hierarchy shared by the service, the providers and the HTTP layer."""

from __future__ import annotations

from typing import List, Optional


class StatementScanError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(StatementScanError):
    """Operator error: a credential or binding is missing."""


class ImageDecodeError(StatementScanError):
    """Client error: the submitted image could not be decoded."""


class ProviderError(StatementScanError):
    """An upstream model call failed (non-2xx, rate limit, network, empty body)."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.details = details

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class ProviderChainError(StatementScanError):
    """Every configured provider failed."""

    def __init__(self, failures: List[ProviderError]) -> None:
        self.failures = list(failures)
        last = self.failures[-1] if self.failures else None
        message = str(last) if last else "No provider attempted"
        super().__init__(message)

    @property
    def details(self) -> Optional[str]:
        if not self.failures:
            return None
        parts = []
        for failure in self.failures:
            text = failure.details or str(failure)
            parts.append(f"{failure.provider}: {text}")
        return " | ".join(parts)

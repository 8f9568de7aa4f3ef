from __future__ import annotations

import base64
from typing import Any, Dict, List

import requests

from ..errors import ProviderError
from ..logging import get_logger
from .base import BaseProviderClient, ImagePayload

LOG = get_logger("provider-cloudflare")

# Meta vision models on Workers AI refuse requests until this prompt is sent once.
LICENSE_PROMPT = "agree"


class CloudflareClient(BaseProviderClient):
    """Cloudflare Workers AI ``/ai/run/<model>`` REST endpoint."""

    def _endpoint(self) -> str:
        base = (self.config.base_url or "").rstrip("/")
        return f"{base}/accounts/{self.config.account_id}/ai/run/{self.config.model}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        name = self.config.name
        try:
            resp = requests.post(
                self._endpoint(),
                headers=self._headers(),
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ProviderError(name, f"Cloudflare request failed: {exc}", details=str(exc)) from exc

        if resp.status_code >= 400:
            LOG.error("Cloudflare AI error: %s %s", resp.status_code, resp.text[:500])
            raise ProviderError(
                name,
                f"Cloudflare AI error: {resp.status_code}",
                status_code=resp.status_code,
                details=resp.text,
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise ProviderError(name, "Cloudflare returned a non-JSON body", details=resp.text[:500]) from exc
        if not isinstance(body, dict) or body.get("success") is False:
            errors = body.get("errors") if isinstance(body, dict) else body
            raise ProviderError(name, "Cloudflare AI reported failure", details=str(errors))
        return body

    def complete(self, prompt: str, image: ImagePayload) -> str:
        LOG.info("Calling Cloudflare Workers AI model=%s", self.config.model)
        image_bytes: List[int] = list(base64.b64decode(image.data))
        body = self._post(
            {
                "messages": [{"role": "user", "content": prompt}],
                "image": image_bytes,
                "max_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
            }
        )
        result = body.get("result") or {}
        text = result.get("response") if isinstance(result, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(self.config.name, "Cloudflare AI returned no response text", details=str(result)[:500])
        LOG.info("Cloudflare response received (%d chars)", len(text))
        return text.strip()

    def agree_to_license(self) -> Dict[str, Any]:
        """Send the one-time license acceptance prompt for the configured model."""
        LOG.info("Submitting license acceptance for %s", self.config.model)
        return self._post({"messages": [{"role": "user", "content": LICENSE_PROMPT}]})

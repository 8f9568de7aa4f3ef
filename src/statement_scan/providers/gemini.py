from __future__ import annotations

import json
from typing import Any, Dict, List

import requests

from ..errors import ProviderError
from ..logging import get_logger
from .base import BaseProviderClient, ImagePayload

LOG = get_logger("provider-gemini")


class GeminiClient(BaseProviderClient):
    """Google Gemini ``generateContent`` over plain REST."""

    def _endpoint(self) -> str:
        base = (self.config.base_url or "").rstrip("/")
        return f"{base}/models/{self.config.model}:generateContent"

    def _payload(self, prompt: str, image: ImagePayload) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"inlineData": {"mimeType": image.mime_type, "data": image.data}},
                    ]
                }
            ],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
            },
        }

    def complete(self, prompt: str, image: ImagePayload) -> str:
        name = self.config.name
        LOG.info("Calling Gemini model=%s", self.config.model)
        try:
            resp = requests.post(
                self._endpoint(),
                params={"key": self.config.api_key},
                json=self._payload(prompt, image),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ProviderError(name, f"Gemini request failed: {exc}", details=str(exc)) from exc

        if resp.status_code >= 400:
            LOG.error("Gemini API error: %s %s", resp.status_code, resp.text[:500])
            raise ProviderError(
                name,
                f"Gemini API error: {resp.status_code}",
                status_code=resp.status_code,
                details=resp.text,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise ProviderError(name, "Gemini returned a non-JSON body", details=resp.text[:500]) from exc

        text = self._candidate_text(body)
        if not text:
            LOG.error("No candidates in response: %s", json.dumps(body)[:500])
            raise ProviderError(name, "Gemini returned no candidates", details=json.dumps(body)[:500])
        LOG.info("Gemini response received (%d chars)", len(text))
        return text

    @staticmethod
    def _candidate_text(body: Any) -> str:
        if not isinstance(body, dict):
            return ""
        candidates = body.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        content = candidates[0].get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        chunks: List[str] = []
        for part in parts or []:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                chunks.append(part["text"])
        return "".join(chunks).strip()

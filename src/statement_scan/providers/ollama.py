"""Local Ollama vision models via the streaming /api/chat endpoint."""

from __future__ import annotations

import json
from typing import List

import requests

from ..errors import ProviderError
from ..logging import get_logger
from .base import BaseProviderClient, ImagePayload

LOG = get_logger("provider-ollama")


class OllamaClient(BaseProviderClient):
    def _chat_url(self) -> str:
        base = (self.config.base_url or "").rstrip("/")
        return base if base.endswith("/api/chat") else base + "/api/chat"

    def complete(self, prompt: str, image: ImagePayload) -> str:
        name = self.config.name
        url = self._chat_url()
        LOG.debug(f"Ollama URL: {url}; model: {self.config.model}; timeout: {self.config.timeout_seconds}s")
        payload = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt, "images": [image.data]}],
            "stream": True,
            "options": {
                "num_predict": self.config.max_tokens,
                "temperature": 0,
            },
        }
        try:
            response = requests.post(url, json=payload, timeout=self.config.timeout_seconds, stream=True)
        except requests.RequestException as exc:
            raise ProviderError(name, f"Ollama request failed: {exc}", details=str(exc)) from exc
        if response.status_code >= 400:
            raise ProviderError(
                name,
                f"Ollama error: {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )

        chunks: List[str] = []
        try:
            for raw_line in response.iter_lines(decode_unicode=False):
                if not raw_line:
                    continue
                if isinstance(raw_line, bytes):
                    line = raw_line.decode(response.encoding or "utf-8", errors="ignore")
                else:
                    line = str(raw_line)
                line = line.strip()
                if line.startswith("data:"):
                    line = line[5:].strip()
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    chunks.append(line)
                    continue
                if not isinstance(obj, dict):
                    chunks.append(line)
                    continue

                if obj.get("error"):
                    raise ProviderError(name, f"Ollama error: {obj['error']}", details=str(obj["error"]))
                if obj.get("done") is True:
                    break

                delta = ""
                msg = obj.get("message") or {}
                if isinstance(msg, dict):
                    delta = msg.get("content") or ""
                if not delta:
                    # /api/generate-style events
                    delta = obj.get("response") or ""
                if delta:
                    chunks.append(delta)
        except requests.RequestException as exc:
            raise ProviderError(name, f"Ollama stream interrupted: {exc}", details=str(exc)) from exc
        finally:
            response.close()

        text = "".join(chunks).strip()
        if not text:
            raise ProviderError(name, "Ollama returned empty content")
        LOG.info(f"Received {len(text)} characters from Ollama")
        return text

"""Embedding provider clients."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import httpx

from cinebot.core.errors import ProviderAttemptError, ProviderUnavailable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that can turn text into an embedding vector."""

    async def embed(self, text: str, model: str) -> list[float]: ...


class OllamaEmbeddingProvider:
    """Call an Ollama-compatible ``api/embeddings`` endpoint."""

    endpoint = "api/embeddings"

    def __init__(self, base_url: str, *, timeout: float = 300.0) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._logger = logging.getLogger("cinebot.providers.embeddings")

    async def embed(self, text: str, model: str) -> list[float]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json={"model": model, "prompt": text})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._logger.warning("Embedding request failed: %s", exc)
            raise ProviderUnavailable("embeddings", [ProviderAttemptError(self.endpoint, str(exc))]) from exc

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not embedding:
            raise ProviderUnavailable(
                "embeddings",
                [ProviderAttemptError(self.endpoint, "response carried no embedding")],
            )
        self._logger.debug("Embedded %d chars with %s (dim=%d)", len(text), model, len(embedding))
        return [float(value) for value in embedding]

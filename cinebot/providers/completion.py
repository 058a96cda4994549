"""Text completion provider clients."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence, runtime_checkable

import httpx

from cinebot.core.errors import ProviderAttemptError, ProviderUnavailable


@runtime_checkable
class CompletionProvider(Protocol):
    """Anything that can complete a prompt into text."""

    async def complete(self, prompt: str, model: str, temperature: float) -> str: ...


class OllamaCompletionProvider:
    """Generate text through an ordered list of Ollama-compatible endpoints.

    Endpoints are tried in order and the first successful response wins.
    Every failed attempt is kept so the final ``ProviderUnavailable`` says
    what went wrong where.
    """

    def __init__(
        self,
        base_url: str,
        endpoints: Sequence[str] = ("api/generate", "generate"),
        *,
        timeout: float = 300.0,
        max_tokens: int = 500,
    ) -> None:
        if not endpoints:
            raise ValueError("at least one completion endpoint is required")
        self.base_url = base_url
        self.endpoints = list(endpoints)
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._logger = logging.getLogger("cinebot.providers.completion")

    async def complete(self, prompt: str, model: str, temperature: float) -> str:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": self.max_tokens},
        }
        attempts: list[ProviderAttemptError] = []

        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            for endpoint in self.endpoints:
                try:
                    response = await client.post(endpoint, json=payload)
                    response.raise_for_status()
                    data = response.json()
                except (httpx.HTTPError, ValueError) as exc:
                    self._logger.warning("Completion endpoint %s failed: %s", endpoint, exc)
                    attempts.append(ProviderAttemptError(endpoint, str(exc)))
                    continue

                text = data.get("response") if isinstance(data, dict) else None
                if isinstance(text, str):
                    self._logger.debug("Completion via %s returned %d chars", endpoint, len(text))
                    return text.strip()
                attempts.append(ProviderAttemptError(endpoint, "response field missing"))

        raise ProviderUnavailable("completion", attempts)

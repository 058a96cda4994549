"""Language detection: script heuristics first, completion classifier second."""

from __future__ import annotations

import asyncio
import logging
import re

from cinebot.core.errors import ProviderUnavailable
from cinebot.providers.completion import CompletionProvider

from .vocabulary import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES

# Checked in order; Japanese kana must win over the Han range shared with Chinese.
SCRIPT_RANGES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("ru", re.compile(r"[Ѐ-ӿ]")),
    ("ko", re.compile(r"[가-힯ᄀ-ᇿ]")),
    ("ja", re.compile(r"[぀-ゟ゠-ヿ]")),
    ("zh", re.compile(r"[一-鿿]")),
    ("ar", re.compile(r"[؀-ۿ]")),
    ("hi", re.compile(r"[ऀ-ॿ]")),
)

CLASSIFIER_PROMPT = (
    "Identify the language of the text below. Reply with only the two-letter ISO 639-1 code, "
    "one of: {codes}.\n\nText: {text}\nCode:"
)

_CODE = re.compile(r"\b([a-z]{2})\b")


def detect_script(text: str) -> str | None:
    """Return a language code when the text contains a script that identifies it."""

    for code, pattern in SCRIPT_RANGES:
        if pattern.search(text):
            return code
    return None


class LanguageDetector:
    """Detect the language of an utterance, always returning an allowed code."""

    def __init__(
        self,
        completion: CompletionProvider | None = None,
        *,
        model: str = "llama3.1",
        timeout: float = 300.0,
    ) -> None:
        self.completion = completion
        self.model = model
        self.timeout = timeout
        self._logger = logging.getLogger("cinebot.language")

    async def detect(self, text: str) -> str:
        if not text or not text.strip():
            return DEFAULT_LANGUAGE

        scripted = detect_script(text)
        if scripted is not None:
            return scripted

        if self.completion is None:
            return DEFAULT_LANGUAGE

        prompt = CLASSIFIER_PROMPT.format(codes=", ".join(SUPPORTED_LANGUAGES), text=text.strip())
        try:
            raw = await asyncio.wait_for(
                self.completion.complete(prompt, self.model, 0.0),
                timeout=self.timeout,
            )
        except (ProviderUnavailable, asyncio.TimeoutError) as exc:
            self._logger.warning("Language classification failed, defaulting to %s: %s", DEFAULT_LANGUAGE, exc)
            return DEFAULT_LANGUAGE

        return self.parse_code(raw)

    @staticmethod
    def parse_code(raw: str | None) -> str:
        """Pick the first allowed two-letter code out of a classifier reply."""

        for candidate in _CODE.findall((raw or "").lower()):
            if candidate in SUPPORTED_LANGUAGES:
                return candidate
        return DEFAULT_LANGUAGE

"""Block translation with remote providers and an offline dictionary fallback."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Any, Dict, List, Protocol, Sequence

import requests

from .dictionary import FALLBACK_DICTIONARY
from .grouping import average_confidence, block_text, union_bbox
from .types import SupportedLanguage, TextBlock, TranslationRecord

logger = logging.getLogger(__name__)

SOURCE_LANGUAGE = "en"
DEFAULT_TARGET_LANGUAGE = "hi"
DEFAULT_FROM_LANGUAGE = "English"
MIN_BLOCK_CHARS = 2

TRANSLATOR_PROVIDERS_ENV = "TRANSLATOR_PROVIDERS"
DEFAULT_TRANSLATOR_PROVIDERS = "mymemory,libretranslate"
DEFAULT_MYMEMORY_URL = "https://api.mymemory.translated.net/get"
DEFAULT_LIBRETRANSLATE_URL = "https://libretranslate.de/translate"
DEFAULT_TIMEOUT_SECONDS = 10.0

SUPPORTED_LANGUAGES: List[SupportedLanguage] = [
    {"code": "en", "name": "English"},
    {"code": "hi", "name": "Hindi"},
    {"code": "ko", "name": "Korean"},
    {"code": "ja", "name": "Japanese"},
    {"code": "zh", "name": "Chinese"},
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "ar", "name": "Arabic"},
    {"code": "ru", "name": "Russian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "it", "name": "Italian"},
    {"code": "nl", "name": "Dutch"},
    {"code": "pl", "name": "Polish"},
    {"code": "tr", "name": "Turkish"},
]

_NON_WORD = re.compile(r"[^\w]", re.ASCII)


def language_name(code: str) -> str:
    for language in SUPPORTED_LANGUAGES:
        if language["code"] == code:
            return language["name"]
    return code


def _timeout() -> float:
    raw = os.environ.get("TRANSLATE_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid TRANSLATE_TIMEOUT_SECONDS=%r", raw)
        return DEFAULT_TIMEOUT_SECONDS


class TranslationError(Exception):
    """Raised when a remote provider cannot translate a piece of text."""


class Translator(Protocol):
    def is_available(self) -> bool:
        ...

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        ...


class MyMemoryTranslator:
    """Primary provider: MyMemory's public ``GET /get`` endpoint."""

    def __init__(self, url: str | None = None, session: requests.Session | None = None) -> None:
        self._url = url or os.environ.get("MYMEMORY_URL", DEFAULT_MYMEMORY_URL)
        self._session = session or requests.Session()
        self._timeout = _timeout()

    def is_available(self) -> bool:
        return bool(self._url)

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        try:
            response = self._session.get(
                self._url,
                params={"q": text, "langpair": f"{source_lang}|{target_lang}"},
                timeout=self._timeout,
            )
            body: Any = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise TranslationError(f"MyMemory request failed: {exc}") from exc

        if not isinstance(body, dict):
            raise TranslationError("MyMemory returned a non-object payload")
        if str(body.get("responseStatus")) != "200":
            raise TranslationError(f"MyMemory responded with status {body.get('responseStatus')!r}")
        data = body.get("responseData")
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str):
            raise TranslationError("MyMemory payload missing translatedText")
        return translated


class LibreTranslateTranslator:
    """Secondary provider: a LibreTranslate ``POST /translate`` endpoint."""

    def __init__(self, url: str | None = None, session: requests.Session | None = None) -> None:
        self._url = url or os.environ.get("LIBRETRANSLATE_URL", DEFAULT_LIBRETRANSLATE_URL)
        self._session = session or requests.Session()
        self._timeout = _timeout()

    def is_available(self) -> bool:
        return bool(self._url)

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        try:
            response = self._session.post(
                self._url,
                json={"q": text, "source": source_lang, "target": target_lang, "format": "text"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TranslationError(f"LibreTranslate request failed: {exc}") from exc

        if response.status_code != 200:
            raise TranslationError(f"LibreTranslate responded with HTTP {response.status_code}")
        try:
            body: Any = response.json()
        except ValueError as exc:
            raise TranslationError("Malformed JSON from LibreTranslate") from exc
        translated = body.get("translatedText") if isinstance(body, dict) else None
        if not isinstance(translated, str):
            raise TranslationError("LibreTranslate payload missing translatedText")
        return translated


class DictionaryTranslator:
    """Word-by-word lookup in the offline tables; unknown words pass through."""

    def __init__(self, tables: Dict[str, Dict[str, str]] | None = None) -> None:
        self._tables = tables if tables is not None else FALLBACK_DICTIONARY

    def is_available(self) -> bool:
        return True

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        table = self._tables.get(target_lang, {})
        translated: List[str] = []
        for token in text.split():
            key = _NON_WORD.sub("", token.lower())
            translated.append(table.get(key, token))
        return " ".join(translated)


class TranslatorChain:
    """Try each provider in order, ending with the offline dictionary.

    ``translate_text`` never raises: provider failures are logged and the
    next provider is tried, and the dictionary always produces a string.
    """

    def __init__(
        self,
        providers: Sequence[Translator],
        fallback: DictionaryTranslator | None = None,
    ) -> None:
        self._providers = list(providers)
        self._fallback = fallback or DictionaryTranslator()

    def is_available(self) -> bool:
        return True

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        for provider in self._providers:
            if not provider.is_available():
                continue
            try:
                return provider.translate_text(text, source_lang, target_lang)
            except TranslationError as exc:
                logger.warning(
                    "%s failed for %s->%s: %s",
                    type(provider).__name__,
                    source_lang,
                    target_lang,
                    exc,
                )
            except Exception:  # noqa: BLE001
                logger.exception(
                    "%s raised unexpectedly for %s->%s",
                    type(provider).__name__,
                    source_lang,
                    target_lang,
                )
        logger.info("Using offline dictionary for %s->%s", source_lang, target_lang)
        return self._fallback.translate_text(text, source_lang, target_lang)


def build_translator() -> TranslatorChain:
    names = os.environ.get(TRANSLATOR_PROVIDERS_ENV, DEFAULT_TRANSLATOR_PROVIDERS)
    providers: List[Translator] = []
    for name in (part.strip().lower() for part in names.split(",")):
        if not name:
            continue
        if name == "mymemory":
            providers.append(MyMemoryTranslator())
        elif name == "libretranslate":
            providers.append(LibreTranslateTranslator())
        else:
            logger.warning("Unknown translator provider '%s'; skipping", name)
    if not providers:
        logger.warning("No remote translator configured; using the offline dictionary only")
    return TranslatorChain(providers)


_translator_instance: TranslatorChain | None = None


def _get_translator() -> TranslatorChain:
    global _translator_instance
    if _translator_instance is None:
        _translator_instance = build_translator()
    return _translator_instance


def translate_text(
    text: str,
    target_lang: str,
    source_lang: str = SOURCE_LANGUAGE,
    *,
    translator: Translator | None = None,
) -> str:
    """Translate one string through the fallback chain."""
    chain = translator or _get_translator()
    return chain.translate_text(text, source_lang, target_lang)


async def translate_blocks(
    blocks: Sequence[TextBlock],
    source_lang: str = SOURCE_LANGUAGE,
    target_lang: str = DEFAULT_TARGET_LANGUAGE,
    *,
    translator: Translator | None = None,
    from_language: str | None = None,
) -> List[TranslationRecord]:
    """Translate blocks one after another, preserving block order.

    Blocks whose joined text is shorter than two characters are skipped. The
    next block is not sent until the previous one has resolved, so at most one
    provider request is in flight per pass.
    """
    chain = translator or _get_translator()
    to_language = language_name(target_lang)
    records: List[TranslationRecord] = []

    for index, block in enumerate(blocks):
        if not block:
            continue
        original_text = block_text(block)
        if len(original_text.strip()) < MIN_BLOCK_CHARS:
            logger.debug("Skipping block %s with text %r", index, original_text)
            continue

        translated = await asyncio.to_thread(
            chain.translate_text, original_text, source_lang, target_lang
        )
        records.append(
            {
                "original_text": original_text,
                "translated_text": translated,
                "from_language": from_language or DEFAULT_FROM_LANGUAGE,
                "to_language": to_language,
                "confidence": average_confidence(block),
                "bbox": union_bbox(block),
            }
        )

    logger.info("Translated %s of %s blocks to %s", len(records), len(blocks), target_lang)
    return records


def format_results_text(records: Sequence[TranslationRecord]) -> str:
    """Numbered ``original → translated`` listing, one entry per record."""
    return "\n\n".join(
        f"{index}. {record['original_text']} → {record['translated_text']}"
        for index, record in enumerate(records, start=1)
    )


__all__ = [
    "DEFAULT_TARGET_LANGUAGE",
    "DictionaryTranslator",
    "LibreTranslateTranslator",
    "MyMemoryTranslator",
    "SOURCE_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "TranslationError",
    "Translator",
    "TranslatorChain",
    "build_translator",
    "format_results_text",
    "language_name",
    "translate_blocks",
    "translate_text",
]

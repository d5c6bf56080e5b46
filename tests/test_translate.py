"""Tests for the translation providers, fallback chain and block orchestration."""

import asyncio

import pytest
import requests

from photo_translator.grouping import group_text_blocks
from photo_translator.translate import (
    DictionaryTranslator,
    LibreTranslateTranslator,
    MyMemoryTranslator,
    TranslationError,
    TranslatorChain,
    build_translator,
    format_results_text,
    language_name,
    translate_blocks,
    translate_text,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []

    def _handle(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response

    def get(self, url, **kwargs):
        return self._handle("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._handle("POST", url, **kwargs)


class TestDictionaryTranslator:
    """Offline word-by-word lookup."""

    def test_good_morning_in_hindi(self):
        assert DictionaryTranslator().translate_text("good morning", "en", "hi") == "अच्छा सुबह"

    def test_case_and_punctuation_are_ignored_for_lookup(self):
        result = DictionaryTranslator().translate_text("Good Morning, Friend!", "en", "es")

        assert result == "bueno mañana amigo"

    def test_unknown_words_pass_through_verbatim(self):
        result = DictionaryTranslator().translate_text("Hello Xyzzy", "en", "fr")

        assert result == "bonjour Xyzzy"

    def test_language_without_table_returns_input(self):
        assert DictionaryTranslator().translate_text("good morning", "en", "de") == "good morning"


class TestMyMemoryTranslator:
    """Primary HTTP provider."""

    def test_success(self):
        session = FakeSession(FakeResponse(payload={"responseStatus": 200, "responseData": {"translatedText": "hola"}}))
        translator = MyMemoryTranslator(url="https://mt.example/get", session=session)

        assert translator.translate_text("hello", "en", "es") == "hola"
        method, url, kwargs = session.requests[0]
        assert method == "GET"
        assert url == "https://mt.example/get"
        assert kwargs["params"] == {"q": "hello", "langpair": "en|es"}

    def test_non_success_status_is_failure(self):
        session = FakeSession(FakeResponse(payload={"responseStatus": 403, "responseData": {"translatedText": "x"}}))
        translator = MyMemoryTranslator(url="https://mt.example/get", session=session)

        with pytest.raises(TranslationError):
            translator.translate_text("hello", "en", "es")

    def test_missing_payload_is_failure(self):
        session = FakeSession(FakeResponse(payload={"responseStatus": 200, "responseData": None}))
        translator = MyMemoryTranslator(url="https://mt.example/get", session=session)

        with pytest.raises(TranslationError):
            translator.translate_text("hello", "en", "es")

    def test_malformed_json_is_failure(self):
        session = FakeSession(FakeResponse(json_error=True))
        translator = MyMemoryTranslator(url="https://mt.example/get", session=session)

        with pytest.raises(TranslationError):
            translator.translate_text("hello", "en", "es")

    def test_network_error_is_failure(self):
        session = FakeSession(exc=requests.ConnectionError("down"))
        translator = MyMemoryTranslator(url="https://mt.example/get", session=session)

        with pytest.raises(TranslationError):
            translator.translate_text("hello", "en", "es")


class TestLibreTranslateTranslator:
    """Secondary HTTP provider."""

    def test_success_posts_json_body(self):
        session = FakeSession(FakeResponse(payload={"translatedText": "bonjour"}))
        translator = LibreTranslateTranslator(url="https://lt.example/translate", session=session)

        assert translator.translate_text("hello", "en", "fr") == "bonjour"
        method, _, kwargs = session.requests[0]
        assert method == "POST"
        assert kwargs["json"] == {"q": "hello", "source": "en", "target": "fr", "format": "text"}

    def test_non_200_is_failure(self):
        session = FakeSession(FakeResponse(status_code=503, payload={}))
        translator = LibreTranslateTranslator(url="https://lt.example/translate", session=session)

        with pytest.raises(TranslationError):
            translator.translate_text("hello", "en", "fr")


class TestTranslatorChain:
    """Provider fallback order."""

    def test_both_services_failing_uses_dictionary(self, failing_translator):
        secondary = type(failing_translator)()
        chain = TranslatorChain([failing_translator, secondary])

        assert chain.translate_text("good morning", "en", "hi") == "अच्छा सुबह"
        assert failing_translator.calls == 1
        assert secondary.calls == 1

    def test_secondary_used_when_primary_fails(self, failing_translator, recording_translator):
        chain = TranslatorChain([failing_translator, recording_translator])

        assert chain.translate_text("hello", "en", "es") == "[es] hello"

    def test_unexpected_provider_error_moves_to_next(self, recording_translator, caplog):
        class BuggyTranslator:
            def is_available(self):
                return True

            def translate_text(self, text, source_lang, target_lang):
                raise KeyError("responseData")

        chain = TranslatorChain([BuggyTranslator(), recording_translator])

        assert chain.translate_text("hello", "en", "es") == "[es] hello"
        assert "BuggyTranslator raised unexpectedly" in caplog.text

    def test_primary_result_short_circuits(self, recording_translator, failing_translator):
        chain = TranslatorChain([recording_translator, failing_translator])

        assert chain.translate_text("hello", "en", "es") == "[es] hello"
        assert failing_translator.calls == 0

    @pytest.mark.parametrize("text", ["", "   ", "good", "!!!", "unknown words only", "नमस्ते"])
    def test_fallback_always_returns_a_string(self, failing_translator, text):
        chain = TranslatorChain([failing_translator])

        for target in ("hi", "es", "fr", "de", "zz"):
            assert isinstance(chain.translate_text(text, "en", target), str)

    def test_translate_text_helper(self, failing_translator):
        assert translate_text("good morning", "hi", translator=TranslatorChain([failing_translator])) == "अच्छा सुबह"

    def test_build_translator_without_providers(self, monkeypatch):
        monkeypatch.setenv("TRANSLATOR_PROVIDERS", "")

        chain = build_translator()

        assert chain.translate_text("good morning", "en", "hi") == "अच्छा सुबह"

    def test_build_translator_skips_unknown_provider(self, monkeypatch, caplog):
        monkeypatch.setenv("TRANSLATOR_PROVIDERS", "bogus")

        chain = build_translator()

        assert "bogus" in caplog.text
        assert chain.translate_text("hello", "en", "es") == "hola"


class TestTranslateBlocks:
    """Sequential block translation into records."""

    def test_records_follow_block_order(self, hello_world_words, recording_translator):
        blocks = group_text_blocks(hello_world_words)

        records = asyncio.run(translate_blocks(blocks, "en", "es", translator=recording_translator))

        assert [r["original_text"] for r in records] == ["Hello World", "Bye"]
        assert [r["translated_text"] for r in records] == ["[es] Hello World", "[es] Bye"]
        assert [call[0] for call in recording_translator.calls] == ["Hello World", "Bye"]
        assert recording_translator.max_active == 1

    def test_record_fields(self, hello_world_words, recording_translator):
        blocks = group_text_blocks(hello_world_words)

        first = asyncio.run(translate_blocks(blocks, "en", "hi", translator=recording_translator))[0]

        assert first["confidence"] == pytest.approx(89.0, abs=1e-6)
        assert first["bbox"] == {"x0": 0, "y0": 0, "x1": 110, "y1": 20}
        assert first["from_language"] == "English"
        assert first["to_language"] == "Hindi"

    def test_detected_language_is_reported(self, hello_world_words, recording_translator):
        blocks = group_text_blocks(hello_world_words)

        records = asyncio.run(
            translate_blocks(blocks, "en", "fr", translator=recording_translator, from_language="Korean")
        )

        assert {r["from_language"] for r in records} == {"Korean"}

    def test_short_blocks_are_skipped(self, word, recording_translator):
        blocks = [[word("a", 90, 0, 0, 10, 10)], [word(" ", 90, 0, 50, 10, 60)], [word("ok", 90, 0, 100, 20, 110)]]

        records = asyncio.run(translate_blocks(blocks, "en", "es", translator=recording_translator))

        assert [r["original_text"] for r in records] == ["ok"]
        assert len(recording_translator.calls) == 1

    def test_failing_services_fall_back_per_block(self, hello_world_words, failing_translator):
        blocks = group_text_blocks(hello_world_words)
        chain = TranslatorChain([failing_translator])

        records = asyncio.run(translate_blocks(blocks, "en", "hi", translator=chain))

        assert [r["translated_text"] for r in records] == ["नमस्ते दुनिया", "Bye"]


class TestFormatting:
    def test_format_results_text(self):
        records = [
            {"original_text": "Hello", "translated_text": "Hola"},
            {"original_text": "Bye", "translated_text": "Adiós"},
        ]

        assert format_results_text(records) == "1. Hello → Hola\n\n2. Bye → Adiós"

    def test_language_name(self):
        assert language_name("ja") == "Japanese"
        assert language_name("xx") == "xx"

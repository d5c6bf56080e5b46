import io
import threading
from typing import Callable, Dict, List, Tuple

import pytest
from PIL import Image

from photo_translator.types import RecognizedWord
from photo_translator.translate import TranslationError


def make_word(text: str, confidence: float, x0: float, y0: float, x1: float, y1: float) -> RecognizedWord:
    return {
        "text": text,
        "confidence": confidence,
        "bbox": {"x0": x0, "y0": y0, "x1": x1, "y1": y1},
    }


def make_png(size: Tuple[int, int] = (200, 100), color=(255, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeOCREngine:
    """Returns canned words; counts how often it is asked."""

    def __init__(self, words: List[RecognizedWord], full_text: str = "") -> None:
        self.words = words
        self.full_text = full_text
        self.calls: List[bytes] = []

    def recognize(self, image_bytes: bytes):
        self.calls.append(image_bytes)
        return [dict(word) for word in self.words], self.full_text


class RecordingTranslator:
    """Tags text with the target language and records every call."""

    def __init__(self, delay: Dict[str, float] | None = None) -> None:
        self.calls: List[Tuple[str, str, str]] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()
        self._delay = delay or {}

    def is_available(self) -> bool:
        return True

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        with self._lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
            self.calls.append((text, source_lang, target_lang))
        try:
            pause = self._delay.get(target_lang)
            if pause:
                threading.Event().wait(pause)
            return f"[{target_lang}] {text}"
        finally:
            with self._lock:
                self._active -= 1


class FailingTranslator:
    def __init__(self) -> None:
        self.calls = 0

    def is_available(self) -> bool:
        return True

    def translate_text(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls += 1
        raise TranslationError("service unavailable")


@pytest.fixture
def word() -> Callable[..., RecognizedWord]:
    return make_word


@pytest.fixture
def png() -> Callable[..., bytes]:
    return make_png


@pytest.fixture
def hello_world_words() -> List[RecognizedWord]:
    return [
        make_word("Hello", 90, 0, 0, 50, 20),
        make_word("World", 88, 60, 0, 110, 20),
        make_word("Bye", 85, 0, 40, 40, 60),
    ]


@pytest.fixture
def recording_translator() -> RecordingTranslator:
    return RecordingTranslator()


@pytest.fixture
def failing_translator() -> FailingTranslator:
    return FailingTranslator()


@pytest.fixture
def fake_ocr_engine(hello_world_words) -> FakeOCREngine:
    return FakeOCREngine(hello_world_words, full_text="Hello World\nBye")


@pytest.fixture
def ocr_engine_class():
    return FakeOCREngine


@pytest.fixture
def slow_spanish_translator() -> RecordingTranslator:
    return RecordingTranslator(delay={"es": 0.2})

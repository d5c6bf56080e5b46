"""OCR helpers: engine adapter, word filtering and language detection."""

from __future__ import annotations

import importlib
import io
import logging
import os
import re
import threading
from typing import Any, Iterable, List, Protocol, Tuple

from PIL import Image, UnidentifiedImageError

from .progress import ProgressFeed
from .types import BBox, ProcessedImage, RecognizedWord

logger = logging.getLogger(__name__)

DEFAULT_MAX_WIDTH = 800
DEFAULT_MIN_CONFIDENCE = 25.0
DEFAULT_LANGUAGE_HINT = "en"
PREPARED_JPEG_QUALITY = 60

# Checked in order; the first script found wins.
_LANGUAGE_PATTERNS: List[Tuple[str, re.Pattern[str]]] = [
    ("Korean", re.compile(r"[\u3131-\u3163\uAC00-\uD7A3]")),
    ("Chinese", re.compile(r"[\u4E00-\u9FFF]")),
    ("Arabic", re.compile(r"[\u0600-\u06FF]")),
    ("Hindi", re.compile(r"[\u0900-\u097F]")),
    ("Japanese", re.compile(r"[\u3040-\u309F\u30A0-\u30FF]")),
]


class RecognitionError(Exception):
    """Raised when an image cannot be read or the OCR engine fails."""


class OCREngine(Protocol):
    def recognize(self, image_bytes: bytes) -> Tuple[List[RecognizedWord], str]:
        """Return recognized words (pixel coordinates of ``image_bytes``) and the full text."""
        ...


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default


def _vertices_to_bbox(vertices: Iterable[Any]) -> BBox:
    points = [(float(getattr(v, "x", 0)), float(getattr(v, "y", 0))) for v in vertices]
    if not points:
        return {"x0": 0.0, "y0": 0.0, "x1": 0.0, "y1": 0.0}
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return {"x0": min(xs), "y0": min(ys), "x1": max(xs), "y1": max(ys)}


class VisionOCREngine:
    """Google Cloud Vision ``document_text_detection`` adapter.

    The client is created on first use and reused for later images.
    """

    def __init__(self, language_hint: str | None = None) -> None:
        self._language_hint = language_hint or os.environ.get("OCR_LANGUAGE_HINT", DEFAULT_LANGUAGE_HINT)
        self._vision: Any | None = None
        self._client: Any | None = None
        self._lock = threading.Lock()

    def _ensure_client(self) -> Tuple[Any, Any]:
        with self._lock:
            if self._client is None:
                try:
                    vision = importlib.import_module("google.cloud.vision")
                except ImportError as exc:
                    raise RecognitionError(
                        "google-cloud-vision is not installed; install the 'vision' extra"
                    ) from exc
                try:
                    self._client = vision.ImageAnnotatorClient()
                except Exception as exc:  # noqa: BLE001
                    raise RecognitionError(f"Could not create Vision client: {exc}") from exc
                self._vision = vision
                logger.info("Google Cloud Vision client initialised")
            return self._vision, self._client

    def recognize(self, image_bytes: bytes) -> Tuple[List[RecognizedWord], str]:
        vision, client = self._ensure_client()
        image = vision.Image(content=image_bytes)
        image_context: Any | None = None
        if self._language_hint:
            image_context = vision.ImageContext(language_hints=[self._language_hint])

        try:
            response: Any = client.document_text_detection(image=image, image_context=image_context)
        except Exception as exc:  # noqa: BLE001
            raise RecognitionError(f"Vision OCR request failed: {exc}") from exc

        error_message = getattr(getattr(response, "error", None), "message", "")
        if error_message:
            raise RecognitionError(f"Vision OCR error: {error_message}")

        words: List[RecognizedWord] = []
        annotation: Any = getattr(response, "full_text_annotation", None)
        pages: Iterable[Any] = getattr(annotation, "pages", [])
        for page in pages:
            for block in getattr(page, "blocks", []):
                for paragraph in getattr(block, "paragraphs", []):
                    for word in getattr(paragraph, "words", []):
                        symbols: Iterable[Any] = getattr(word, "symbols", [])
                        text = "".join(str(getattr(symbol, "text", "")) for symbol in symbols)
                        bounding_box: Any = getattr(word, "bounding_box", None)
                        words.append(
                            {
                                "text": text,
                                "confidence": float(getattr(word, "confidence", 0.0)) * 100.0,
                                "bbox": _vertices_to_bbox(getattr(bounding_box, "vertices", [])),
                            }
                        )
        full_text = str(getattr(annotation, "text", "") or "")
        return words, full_text


def detect_language(text: str) -> str:
    """Name of the first non-Latin script found in ``text``, else English."""
    for name, pattern in _LANGUAGE_PATTERNS:
        if pattern.search(text):
            return name
    return "English"


def filter_words(words: Iterable[RecognizedWord], min_confidence: float = DEFAULT_MIN_CONFIDENCE) -> List[RecognizedWord]:
    """Drop low-confidence words and words that are empty after trimming."""
    return [
        word
        for word in words
        if word["confidence"] > min_confidence and word["text"].strip()
    ]


def prepare_for_ocr(image: Image.Image, max_width: int = DEFAULT_MAX_WIDTH) -> Tuple[bytes, float]:
    """Downscale wide images and re-encode as JPEG.

    Returns the encoded bytes and the scale applied (``<= 1``); divide
    recognized coordinates by the scale to map them back to the original.
    """
    scale = min(1.0, max_width / image.width) if image.width else 1.0
    prepared = image.convert("RGB")
    if scale < 1.0:
        size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
        prepared = prepared.resize(size, Image.Resampling.LANCZOS)
    buffer = io.BytesIO()
    prepared.save(buffer, format="JPEG", quality=PREPARED_JPEG_QUALITY)
    return buffer.getvalue(), scale


def rescale_words(words: Iterable[RecognizedWord], scale: float) -> List[RecognizedWord]:
    if scale == 1.0:
        return list(words)
    rescaled: List[RecognizedWord] = []
    for word in words:
        bbox = word["bbox"]
        rescaled.append(
            {
                "text": word["text"],
                "confidence": word["confidence"],
                "bbox": {
                    "x0": bbox["x0"] / scale,
                    "y0": bbox["y0"] / scale,
                    "x1": bbox["x1"] / scale,
                    "y1": bbox["y1"] / scale,
                },
            }
        )
    return rescaled


def recognize_image(
    engine: OCREngine,
    image_bytes: bytes,
    *,
    progress: ProgressFeed | None = None,
    max_width: int | None = None,
    min_confidence: float | None = None,
) -> ProcessedImage:
    """Run OCR on ``image_bytes`` and build the hand-off for translation.

    Raises ``RecognitionError`` when the image cannot be decoded or the engine
    fails; recognition is not retried.
    """
    feed = progress or ProgressFeed()
    width_limit = max_width or int(_env_float("OCR_MAX_WIDTH", DEFAULT_MAX_WIDTH))
    threshold = min_confidence if min_confidence is not None else _env_float(
        "OCR_MIN_CONFIDENCE", DEFAULT_MIN_CONFIDENCE
    )

    feed.publish("preparing", 0.05, "Preparing image...")
    try:
        with Image.open(io.BytesIO(image_bytes)) as im:
            im.load()
            size = im.size
            prepared, scale = prepare_for_ocr(im, width_limit)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise RecognitionError(f"Unreadable image: {exc}") from exc

    feed.publish("recognizing", 0.25, "Extracting text...")
    raw_words, full_text = engine.recognize(prepared)

    feed.publish("processing", 0.95, "Processing results...")
    words = rescale_words(filter_words(raw_words, threshold), scale)
    processed: ProcessedImage = {
        "original_image": image_bytes,
        "extracted_texts": words,
        "full_text": full_text,
        "detected_language": detect_language(full_text),
        "image_size": {"w": size[0], "h": size[1]},
    }
    logger.info(
        "Recognized %s words (%s before filtering) in %sx%s image",
        len(words),
        len(raw_words),
        size[0],
        size[1],
    )
    feed.publish("complete", 1.0, "Complete!")
    return processed


__all__ = [
    "OCREngine",
    "RecognitionError",
    "VisionOCREngine",
    "detect_language",
    "filter_words",
    "prepare_for_ocr",
    "recognize_image",
    "rescale_words",
]

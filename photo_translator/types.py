"""Typed structures shared by the translator modules."""

from __future__ import annotations

from typing import List, Optional, Tuple, TypedDict

RGBA = Tuple[int, int, int, int]


class BBox(TypedDict):
    """Axis-aligned box in pixel coordinates with ``x0 <= x1`` and ``y0 <= y1``."""

    x0: float
    y0: float
    x1: float
    y1: float


class RecognizedWord(TypedDict):
    """Single OCR word with its confidence (0-100) and bounding box."""

    text: str
    confidence: float
    bbox: BBox


TextBlock = List[RecognizedWord]


class TranslationRecord(TypedDict):
    original_text: str
    translated_text: str
    from_language: str
    to_language: str
    confidence: float
    bbox: BBox


class OverlayColors(TypedDict):
    """Colors for one overlay block; ``None`` means the part is not drawn."""

    background_color: Optional[RGBA]
    text_color: RGBA
    border_color: Optional[RGBA]


class ImageSize(TypedDict):
    w: int
    h: int


class ProcessedImage(TypedDict):
    """Output of the recognition stage, handed explicitly to translation."""

    original_image: bytes
    extracted_texts: List[RecognizedWord]
    full_text: str
    detected_language: str
    image_size: ImageSize


class ProgressEvent(TypedDict):
    stage: str
    progress: float
    message: str


class SupportedLanguage(TypedDict):
    code: str
    name: str


__all__ = [
    "RGBA",
    "BBox",
    "RecognizedWord",
    "TextBlock",
    "TranslationRecord",
    "OverlayColors",
    "ImageSize",
    "ProcessedImage",
    "ProgressEvent",
    "SupportedLanguage",
]

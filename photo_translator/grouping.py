"""Group OCR words into line/phrase text blocks."""

from __future__ import annotations

from functools import cmp_to_key
from typing import List, Sequence

from .types import BBox, RecognizedWord, TextBlock

# Fixed policy values in source-image pixels; they do not scale with DPI.
LINE_THRESHOLD_PX = 30.0
GAP_THRESHOLD_PX = 100.0


def _reading_order(a: RecognizedWord, b: RecognizedWord) -> float:
    y_diff = a["bbox"]["y0"] - b["bbox"]["y0"]
    if abs(y_diff) > LINE_THRESHOLD_PX:
        return y_diff
    return a["bbox"]["x0"] - b["bbox"]["x0"]


def _compare(a: RecognizedWord, b: RecognizedWord) -> int:
    diff = _reading_order(a, b)
    if diff < 0:
        return -1
    if diff > 0:
        return 1
    return 0


def group_text_blocks(words: Sequence[RecognizedWord]) -> List[TextBlock]:
    """Split recognized words into blocks in reading order.

    A new block starts when a word sits more than ``LINE_THRESHOLD_PX`` above
    or below the previous one, or when it begins more than
    ``GAP_THRESHOLD_PX`` to the right of the previous word's right edge.
    Every input word ends up in exactly one block.
    """
    if not words:
        return []

    ordered = sorted(words, key=cmp_to_key(_compare))
    blocks: List[TextBlock] = []
    current: TextBlock = []
    last_y: float | None = None
    last_x: float | None = None

    for word in ordered:
        y0 = word["bbox"]["y0"]
        x0 = word["bbox"]["x0"]
        is_new_line = last_y is not None and abs(y0 - last_y) > LINE_THRESHOLD_PX
        is_large_gap = last_x is not None and (x0 - last_x) > GAP_THRESHOLD_PX
        if current and (is_new_line or is_large_gap):
            blocks.append(current)
            current = []
        current.append(word)
        last_y = y0
        last_x = word["bbox"]["x1"]

    if current:
        blocks.append(current)
    return blocks


def block_text(block: Sequence[RecognizedWord]) -> str:
    return " ".join(word["text"] for word in block)


def union_bbox(block: Sequence[RecognizedWord]) -> BBox:
    """Smallest box covering every word of ``block``."""
    if not block:
        raise ValueError("cannot compute the bounding box of an empty block")
    return {
        "x0": min(word["bbox"]["x0"] for word in block),
        "y0": min(word["bbox"]["y0"] for word in block),
        "x1": max(word["bbox"]["x1"] for word in block),
        "y1": max(word["bbox"]["y1"] for word in block),
    }


def average_confidence(block: Sequence[RecognizedWord]) -> float:
    if not block:
        return 0.0
    return sum(word["confidence"] for word in block) / len(block)


__all__ = [
    "GAP_THRESHOLD_PX",
    "LINE_THRESHOLD_PX",
    "average_confidence",
    "block_text",
    "group_text_blocks",
    "union_bbox",
]

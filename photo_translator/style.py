"""Overlay color selection, including brightness-adaptive styling."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from PIL import Image

from .types import BBox, OverlayColors, RGBA

logger = logging.getLogger(__name__)

SAMPLE_MAX_WIDTH = 50
SAMPLE_MAX_HEIGHT = 20
LIGHT_BACKGROUND_THRESHOLD = 128.0

ADAPTIVE = "adaptive"
SOLID = "solid"
TRANSPARENT = "transparent"
OUTLINE = "outline"
SHADOW = "shadow"

OVERLAY_STYLES: Dict[str, str] = {
    ADAPTIVE: "Smart Adaptive",
    SOLID: "Solid Background",
    TRANSPARENT: "Semi-Transparent",
    OUTLINE: "Outline Only",
    SHADOW: "Text Shadow",
}
DEFAULT_STYLE = ADAPTIVE


def rgba(r: int, g: int, b: int, alpha: float = 1.0) -> RGBA:
    """CSS-style ``rgba()`` with a 0-1 alpha, as an 8-bit RGBA tuple."""
    return (r, g, b, int(round(alpha * 255)))


WHITE = rgba(255, 255, 255)
BLACK = rgba(0, 0, 0)

FIXED_STYLES: Dict[str, OverlayColors] = {
    SOLID: {
        "background_color": rgba(59, 130, 246, 0.95),
        "text_color": WHITE,
        "border_color": rgba(59, 130, 246, 1),
    },
    TRANSPARENT: {
        "background_color": rgba(59, 130, 246, 0.7),
        "text_color": WHITE,
        "border_color": rgba(59, 130, 246, 0.8),
    },
    OUTLINE: {
        "background_color": None,
        "text_color": WHITE,
        "border_color": rgba(59, 130, 246, 1),
    },
    SHADOW: {
        "background_color": None,
        "text_color": WHITE,
        "border_color": None,
    },
}

# Light surroundings get a dark box, dark surroundings a light one.
ON_LIGHT: OverlayColors = {
    "background_color": rgba(0, 0, 0, 0.8),
    "text_color": WHITE,
    "border_color": rgba(0, 0, 0, 0.9),
}
ON_DARK: OverlayColors = {
    "background_color": rgba(255, 255, 255, 0.9),
    "text_color": BLACK,
    "border_color": rgba(255, 255, 255, 1),
}
NEUTRAL: OverlayColors = {
    "background_color": rgba(59, 130, 246, 0.9),
    "text_color": WHITE,
    "border_color": rgba(59, 130, 246, 1),
}


class SamplingError(Exception):
    """Raised when pixels under a box cannot be read."""


class PixelSampler(Protocol):
    def sample(self, x: int, y: int, width: int, height: int) -> List[RGBA]:
        ...


class ImagePixelSampler:
    """Read RGBA pixels from an in-memory Pillow image."""

    def __init__(self, image: Image.Image) -> None:
        self._image = image if image.mode == "RGBA" else image.convert("RGBA")

    def sample(self, x: int, y: int, width: int, height: int) -> List[RGBA]:
        img_w, img_h = self._image.size
        left = max(0, x)
        top = max(0, y)
        right = min(img_w, x + width)
        bottom = min(img_h, y + height)
        if right <= left or bottom <= top:
            raise SamplingError(f"region ({x}, {y}, {width}, {height}) lies outside {img_w}x{img_h}")
        raw = self._image.crop((left, top, right, bottom)).tobytes()
        return [
            (raw[i], raw[i + 1], raw[i + 2], raw[i + 3])
            for i in range(0, len(raw), 4)
        ]


def luminance(pixel: RGBA) -> float:
    r, g, b = pixel[0], pixel[1], pixel[2]
    return 0.299 * r + 0.587 * g + 0.114 * b


def average_luminance(sampler: PixelSampler, bbox: BBox) -> float:
    """Mean luminance of the top-left corner of ``bbox`` (at most 50x20 px)."""
    x = int(bbox["x0"])
    y = int(bbox["y0"])
    width = min(int(bbox["x1"] - bbox["x0"]), SAMPLE_MAX_WIDTH)
    height = min(int(bbox["y1"] - bbox["y0"]), SAMPLE_MAX_HEIGHT)
    if width <= 0 or height <= 0:
        raise SamplingError("box has no area to sample")
    pixels = sampler.sample(x, y, width, height)
    if not pixels:
        raise SamplingError("sampler returned no pixels")
    return sum(luminance(p) for p in pixels) / len(pixels)


def adaptive_colors(sampler: Optional[PixelSampler], bbox: BBox) -> OverlayColors:
    if sampler is None:
        return dict(NEUTRAL)  # type: ignore[return-value]
    try:
        brightness = average_luminance(sampler, bbox)
    except SamplingError as exc:
        logger.debug("Falling back to neutral overlay colors: %s", exc)
        return dict(NEUTRAL)  # type: ignore[return-value]
    chosen = ON_LIGHT if brightness > LIGHT_BACKGROUND_THRESHOLD else ON_DARK
    return dict(chosen)  # type: ignore[return-value]


def resolve_style(
    sampler: Optional[PixelSampler],
    bbox: BBox,
    style_id: str,
) -> OverlayColors:
    """Colors for one block; unknown styles behave like ``adaptive``."""
    fixed = FIXED_STYLES.get(style_id)
    if fixed is not None:
        return dict(fixed)  # type: ignore[return-value]
    return adaptive_colors(sampler, bbox)


__all__ = [
    "ADAPTIVE",
    "DEFAULT_STYLE",
    "ImagePixelSampler",
    "NEUTRAL",
    "ON_DARK",
    "ON_LIGHT",
    "OUTLINE",
    "OVERLAY_STYLES",
    "PixelSampler",
    "SHADOW",
    "SOLID",
    "SamplingError",
    "TRANSPARENT",
    "average_luminance",
    "luminance",
    "resolve_style",
    "rgba",
]

"""Draw translated text blocks over an image with Pillow.

Two paths share the block geometry helpers:

* ``render_interactive`` returns a transparent RGBA layer sized to the
  display dimensions. Boxes are scaled from native image pixels by
  ``display/native`` on each axis, text is word-wrapped inside the box and
  each block carries a numbered badge.
* ``render_export`` composites onto the image at native resolution. By
  default it draws the simplified variant (adaptive colors, one centered
  line, no badge); ``match_interactive=True`` reuses the interactive drawing
  at scale 1.
"""

from __future__ import annotations

import io
import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .style import (
    DEFAULT_STYLE,
    OUTLINE,
    SHADOW,
    ImagePixelSampler,
    PixelSampler,
    adaptive_colors,
    resolve_style,
    rgba,
)
from .types import RGBA, BBox, OverlayColors, TranslationRecord

logger = logging.getLogger(__name__)

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont
Box = Tuple[float, float, float, float]

BOX_PADDING = 4
TEXT_INSET = 8
LINE_SPACING = 1.2
MIN_FONT_PX = 10
MAX_FONT_PX = 18
MIN_EXPORT_FONT_PX = 12
SHADOW_BLUR = 4
SHADOW_OFFSET = 2
BADGE_BACKGROUND = rgba(255, 255, 255, 0.9)
BADGE_TEXT = rgba(0, 0, 0, 0.8)
TRANSPARENT_PIXEL = (0, 0, 0, 0)


@lru_cache(maxsize=64)
def _load_font(path: str | None, size: float) -> FontType:
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as exc:
            logger.warning("Could not load overlay font %s: %s", path, exc)
    return ImageFont.load_default(size=size)


def load_font(size: float) -> FontType:
    return _load_font(os.environ.get("OVERLAY_FONT_PATH") or None, float(size))


def interactive_font_size(box_height: float) -> float:
    return max(MIN_FONT_PX, min(box_height * 0.8, MAX_FONT_PX))


def export_font_size(box_height: float) -> float:
    return max(MIN_EXPORT_FONT_PX, box_height * 0.8)


def badge_font_size(font_size: float) -> float:
    return max(8, font_size * 0.6)


def shadow_color(text_color: RGBA) -> RGBA:
    if text_color[:3] == (255, 255, 255):
        return rgba(0, 0, 0, 0.8)
    return rgba(255, 255, 255, 0.8)


def scale_bbox(bbox: BBox, scale_x: float, scale_y: float) -> Box:
    """Return ``(x, y, width, height)`` of ``bbox`` scaled per axis."""
    x = bbox["x0"] * scale_x
    y = bbox["y0"] * scale_y
    width = (bbox["x1"] - bbox["x0"]) * scale_x
    height = (bbox["y1"] - bbox["y0"]) * scale_y
    return x, y, width, height


def wrap_text(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """Greedy word wrap.

    Words are added to the current line while the measured line stays within
    ``max_width``. A word that is too wide on its own still gets its own line;
    words are never split.
    """
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


@dataclass
class _TextRun:
    text: str
    center: Tuple[float, float]
    width: float
    height: float
    anchor: str


def _text_bounds(run: _TextRun) -> Box:
    cx, cy = run.center
    if run.anchor == "lm":
        return cx, cy - run.height / 2, cx + run.width, cy + run.height / 2
    return cx - run.width / 2, cy - run.height / 2, cx + run.width / 2, cy + run.height / 2


def _union(boxes: Sequence[Box]) -> Box:
    return (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )


@dataclass
class _BlockDrawing:
    """Everything needed to paint one block, in canvas coordinates."""

    frame: Box
    fill: Optional[RGBA]
    border: Optional[RGBA]
    border_width: int
    lines: List[_TextRun]
    font: FontType
    text_color: RGBA
    shadow: Optional[RGBA]
    badge: Optional[Box] = None
    badge_label: Optional[_TextRun] = None
    badge_font: Optional[FontType] = None

    def bounds(self) -> Box:
        boxes: List[Box] = [self.frame]
        for run in self.lines:
            text_box = _text_bounds(run)
            boxes.append(text_box)
            if self.shadow is not None:
                margin = SHADOW_BLUR * 2
                boxes.append(
                    (
                        text_box[0] + SHADOW_OFFSET - margin,
                        text_box[1] + SHADOW_OFFSET - margin,
                        text_box[2] + SHADOW_OFFSET + margin,
                        text_box[3] + SHADOW_OFFSET + margin,
                    )
                )
        if self.badge is not None:
            boxes.append(self.badge)
        if self.badge_label is not None:
            boxes.append(_text_bounds(self.badge_label))
        x0, y0, x1, y1 = _union(boxes)
        pad = self.border_width + 2
        return x0 - pad, y0 - pad, x1 + pad, y1 + pad


def _paint(canvas: Image.Image, block: _BlockDrawing) -> None:
    """Paint ``block`` on a local layer and composite it onto ``canvas``."""
    bx0, by0, bx1, by1 = block.bounds()
    left = max(0, int(math.floor(bx0)))
    top = max(0, int(math.floor(by0)))
    right = min(canvas.width, int(math.ceil(bx1)))
    bottom = min(canvas.height, int(math.ceil(by1)))
    if right <= left or bottom <= top:
        return

    def local(box: Box) -> Box:
        return box[0] - left, box[1] - top, box[2] - left, box[3] - top

    layer = Image.new("RGBA", (right - left, bottom - top), TRANSPARENT_PIXEL)
    draw = ImageDraw.Draw(layer)

    frame = local(block.frame)
    if block.fill is not None:
        draw.rectangle(frame, fill=block.fill)
    if block.border is not None:
        # Stroke is centered on the frame edge and blended over the fill.
        half = block.border_width // 2
        border_layer = Image.new("RGBA", layer.size, TRANSPARENT_PIXEL)
        ImageDraw.Draw(border_layer).rectangle(
            (frame[0] - half, frame[1] - half, frame[2] + half, frame[3] + half),
            outline=block.border,
            width=block.border_width,
        )
        layer.alpha_composite(border_layer)
        draw = ImageDraw.Draw(layer)

    if block.shadow is not None:
        shadow_layer = Image.new("RGBA", layer.size, TRANSPARENT_PIXEL)
        shadow_draw = ImageDraw.Draw(shadow_layer)
        for run in block.lines:
            cx, cy = run.center
            shadow_draw.text(
                (cx - left + SHADOW_OFFSET, cy - top + SHADOW_OFFSET),
                run.text,
                font=block.font,
                fill=block.shadow,
                anchor=run.anchor,
            )
        shadow_layer = shadow_layer.filter(ImageFilter.GaussianBlur(SHADOW_BLUR / 2))
        layer.alpha_composite(shadow_layer)
        draw = ImageDraw.Draw(layer)

    for run in block.lines:
        cx, cy = run.center
        draw.text((cx - left, cy - top), run.text, font=block.font, fill=block.text_color, anchor=run.anchor)

    if block.badge is not None:
        draw.rectangle(local(block.badge), fill=BADGE_BACKGROUND)
    if block.badge_label is not None and block.badge_font is not None:
        cx, cy = block.badge_label.center
        draw.text(
            (cx - left, cy - top),
            block.badge_label.text,
            font=block.badge_font,
            fill=BADGE_TEXT,
            anchor=block.badge_label.anchor,
        )

    canvas.alpha_composite(layer, dest=(left, top))


def _interactive_block(
    record: TranslationRecord,
    index: int,
    colors: OverlayColors,
    style_id: str,
    scale_x: float,
    scale_y: float,
) -> _BlockDrawing:
    x, y, width, height = scale_bbox(record["bbox"], scale_x, scale_y)
    frame = (x - BOX_PADDING, y - BOX_PADDING, x + width + BOX_PADDING, y + height + BOX_PADDING)

    font_size = interactive_font_size(height)
    font = load_font(font_size)
    line_height = font_size * LINE_SPACING
    lines = wrap_text(record["translated_text"], font.getlength, width - TEXT_INSET)
    start_y = y + height / 2 - (len(lines) * line_height) / 2 + line_height / 2
    runs = [
        _TextRun(line, (x + width / 2, start_y + i * line_height), font.getlength(line), line_height, "mm")
        for i, line in enumerate(lines)
    ]

    border = colors["border_color"] if style_id != SHADOW else None
    shadow = shadow_color(colors["text_color"]) if style_id in (OUTLINE, SHADOW) else None

    badge_size = badge_font_size(font_size)
    badge_font = load_font(badge_size)
    label = str(index + 1)
    badge_label = _TextRun(label, (x + 2, y - 10), badge_font.getlength(label), badge_size, "lm")

    return _BlockDrawing(
        frame=frame,
        fill=colors["background_color"],
        border=border,
        border_width=3 if style_id == OUTLINE else 2,
        lines=runs,
        font=font,
        text_color=colors["text_color"],
        shadow=shadow,
        badge=(x - 2, y - 16, x + 18, y - 4),
        badge_label=badge_label,
        badge_font=badge_font,
    )


def _simple_block(record: TranslationRecord, colors: OverlayColors) -> _BlockDrawing:
    x, y, width, height = scale_bbox(record["bbox"], 1.0, 1.0)
    frame = (x - BOX_PADDING, y - BOX_PADDING, x + width + BOX_PADDING, y + height + BOX_PADDING)
    font_size = export_font_size(height)
    font = load_font(font_size)
    text = record["translated_text"]
    run = _TextRun(text, (x + width / 2, y + height / 2), font.getlength(text), font_size * LINE_SPACING, "mm")
    return _BlockDrawing(
        frame=frame,
        fill=colors["background_color"],
        border=None,
        border_width=0,
        lines=[run],
        font=font,
        text_color=colors["text_color"],
        shadow=None,
    )


def _draw_interactive(
    canvas: Image.Image,
    sampler: Optional[PixelSampler],
    records: Sequence[TranslationRecord],
    style_id: str,
    scale_x: float,
    scale_y: float,
) -> None:
    for index, record in enumerate(records):
        # Colors are sampled from the native image at native coordinates.
        colors = resolve_style(sampler, record["bbox"], style_id)
        _paint(canvas, _interactive_block(record, index, colors, style_id, scale_x, scale_y))


def render_interactive(
    image: Image.Image,
    records: Sequence[TranslationRecord],
    style_id: str = DEFAULT_STYLE,
    display_size: Tuple[int, int] | None = None,
    *,
    visible: bool = True,
) -> Image.Image:
    """Transparent overlay layer for an image shown at ``display_size``."""
    native_w, native_h = image.size
    display_w, display_h = display_size or (native_w, native_h)
    if display_w <= 0 or display_h <= 0:
        raise ValueError(f"display size must be positive, got {display_w}x{display_h}")
    canvas = Image.new("RGBA", (int(display_w), int(display_h)), TRANSPARENT_PIXEL)
    if not visible or not records:
        return canvas

    scale_x = display_w / native_w
    scale_y = display_h / native_h
    _draw_interactive(canvas, ImagePixelSampler(image), records, style_id, scale_x, scale_y)
    logger.debug(
        "Rendered %s blocks at %sx%s (scale %.3f, %.3f)",
        len(records),
        display_w,
        display_h,
        scale_x,
        scale_y,
    )
    return canvas


def render_export(
    image: Image.Image,
    records: Sequence[TranslationRecord],
    *,
    style_id: str = DEFAULT_STYLE,
    visible: bool = True,
    match_interactive: bool = False,
) -> Image.Image:
    """Image at native resolution with the translations drawn on top.

    The result is RGBA when ``image`` carries transparency, RGB otherwise.
    """
    canvas = image.convert("RGBA")
    if visible and records:
        sampler = ImagePixelSampler(image)
        if match_interactive:
            _draw_interactive(canvas, sampler, records, style_id, 1.0, 1.0)
        else:
            for record in records:
                _paint(canvas, _simple_block(record, adaptive_colors(sampler, record["bbox"])))
    if image.has_transparency_data:
        return canvas
    return canvas.convert("RGB")


def open_image(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as im:
        im.load()
        return im.copy()


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = [
    "encode_png",
    "export_font_size",
    "interactive_font_size",
    "load_font",
    "open_image",
    "render_export",
    "render_interactive",
    "scale_bbox",
    "wrap_text",
]

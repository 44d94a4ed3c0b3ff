"""
Label rendering.

The label is drawn with a monospace bitmap face: every glyph sits in a cell
of fixed width, and the pen position is tracked in 26.6 fixed point
(1 pixel = 64 units) starting from the baseline anchor.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

DEFAULT_COLOR: Tuple[int, int, int, int] = (255, 0, 0, 255)
SUBPIXEL_UNITS = 64

SMALL_IMAGE_EDGE = 20
SMALL_IMAGE_ANCHOR = (0, 0)
DEFAULT_ANCHOR = (20, 20)


@dataclass
class GlyphFace:
    font: ImageFont.ImageFont
    advance: int = 7  # cell width in pixels
    height: int = 13
    ascent: int = 11

    @property
    def descent(self) -> int:
        return self.height - self.ascent


@lru_cache()
def default_face() -> GlyphFace:
    """7x13 cells over Pillow's built-in bitmap font."""
    return GlyphFace(font=ImageFont.load_default_imagefont())


def placement_point(size: Tuple[int, int]) -> Tuple[int, int]:
    """Anchor at the origin only when both edges are below 20px."""
    width, height = size
    if width < SMALL_IMAGE_EDGE and height < SMALL_IMAGE_EDGE:
        return SMALL_IMAGE_ANCHOR
    return DEFAULT_ANCHOR


def to_fixed(pixels: int) -> int:
    return pixels * SUBPIXEL_UNITS


def from_fixed(units: int) -> int:
    return units // SUBPIXEL_UNITS


def annotate(
    image: Image.Image,
    x: int,
    y: int,
    label: str,
    color: Tuple[int, int, int, int] = DEFAULT_COLOR,
    face: Optional[GlyphFace] = None,
) -> Image.Image:
    """
    Return a new RGBA copy of `image` with `label` drawn on it.

    `(x, y)` is the left end of the baseline. Source pixels are copied
    unchanged except where glyph pixels overwrite them; glyphs that land
    outside the canvas are dropped.
    """
    face = face or default_face()
    # convert() always allocates, even when the mode already matches.
    canvas = image.convert("RGBA")
    draw = ImageDraw.Draw(canvas)
    color = tuple(int(c) for c in color)

    dot_x, dot_y = to_fixed(x), to_fixed(y)
    step = to_fixed(face.advance)
    for ch in label:
        if not ch.isspace():
            origin = (from_fixed(dot_x), from_fixed(dot_y) - face.ascent)
            draw.text(origin, ch, fill=color, font=face.font)
        dot_x += step
    return canvas

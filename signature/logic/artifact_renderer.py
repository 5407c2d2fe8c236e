# signature/logic/artifact_renderer.py
from __future__ import annotations

import io
from typing import Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

Stroke = Sequence[Tuple[float, float]]


def hex_to_rgb(hexstr: str) -> Tuple[int, int, int]:
    """
    Convert hex color (#RRGGBB or #RGB) into an RGB tuple for PIL.
    """
    s = (hexstr or "#000000").strip()
    if not s.startswith("#"):
        s = "#" + s
    if len(s) == 4:
        r = int(s[1] * 2, 16); g = int(s[2] * 2, 16); b = int(s[3] * 2, 16)
    else:
        r = int(s[1:3], 16); g = int(s[3:5], 16); b = int(s[5:7], 16)
    return (r, g, b)


def _png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_png_from_strokes(
    strokes: Sequence[Stroke],
    size: Tuple[int, int],
    stroke_width: int = 3,
    color: str = "#000000",
) -> bytes:
    """
    Convert freehand strokes (canvas pixels) into a transparent PNG.
    Single-point strokes are drawn as dots.
    """
    w, h = size
    if w <= 0 or h <= 0:
        raise ValueError(f"Canvas size must be positive, got {size}")
    if not any(len(poly) for poly in strokes):
        raise ValueError("Drawn signature has no strokes")

    rgba = hex_to_rgb(color) + (255,)
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    drw = ImageDraw.Draw(img)
    for poly in strokes:
        points = [(float(x), float(y)) for x, y in poly]
        if len(points) >= 2:
            drw.line(points, fill=rgba, width=stroke_width, joint="curve")
        elif points:
            x, y = points[0]
            r = max(1.0, stroke_width / 2.0)
            drw.ellipse((x - r, y - r, x + r, y + r), fill=rgba)
    return _png(img)


def render_png_from_text(
    text: str,
    *,
    font_size: int = 48,
    color: str = "#000000",
    padding: int = 8,
) -> bytes:
    """Typed signature: the holder's name on a transparent, tightly cropped PNG."""
    text = (text or "").strip()
    if not text:
        raise ValueError("Typed signature needs a name")

    font = ImageFont.load_default(size=font_size)
    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = measure.textbbox((0, 0), text, font=font)

    img = Image.new(
        "RGBA",
        (int(right - left) + 2 * padding, int(bottom - top) + 2 * padding),
        (0, 0, 0, 0),
    )
    ImageDraw.Draw(img).text(
        (padding - left, padding - top), text, font=font, fill=hex_to_rgb(color) + (255,)
    )
    return _png(img)

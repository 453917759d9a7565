"""Rasterize canonical SVG markup onto a fixed-size RGBA surface."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from io import BytesIO
from typing import Iterator

import cairosvg
from PIL import Image

from ..errors import DecodeError
from ..io.models import CANONICAL_SIZE, NormalizedIcon, RasterImage

logger = logging.getLogger(__name__)

BACKGROUND_RGBA = (255, 255, 255, 255)


@contextmanager
def offscreen_canvas(size: int = CANONICAL_SIZE) -> Iterator[Image.Image]:
    """Yield a square RGBA surface pre-filled opaque white, closed on exit."""
    if size <= 0:
        raise ValueError("Size must be a positive integer")
    canvas = Image.new("RGBA", (size, size), color=BACKGROUND_RGBA)
    try:
        yield canvas
    finally:
        canvas.close()


def rasterize_markup(icon: NormalizedIcon | str, size: int = CANONICAL_SIZE) -> RasterImage:
    """Decode *icon* and return its pixels drawn over a white square surface.

    The drawing is scaled to fill the whole surface. Raises :class:`DecodeError`
    when the markup cannot be turned into an image.
    """
    markup = icon.markup if isinstance(icon, NormalizedIcon) else icon
    if not markup:
        raise DecodeError("Empty markup cannot be decoded")

    png_bytes = _decode_png(markup, size)
    with offscreen_canvas(size) as canvas:
        try:
            with Image.open(BytesIO(png_bytes)) as decoded:
                drawn = decoded.convert("RGBA")
        except (OSError, ValueError) as exc:
            raise DecodeError(f"Rendered PNG could not be read: {exc}") from exc
        try:
            if drawn.size != canvas.size:
                resized = drawn.resize(canvas.size)
                drawn.close()
                drawn = resized
            canvas.alpha_composite(drawn)
        finally:
            drawn.close()
        return RasterImage.from_image(canvas)


def _decode_png(markup: str, size: int) -> bytes:
    try:
        return cairosvg.svg2png(
            bytestring=markup.encode("utf-8"),
            output_width=size,
            output_height=size,
        )
    except Exception as exc:
        logger.debug("cairosvg failed to decode markup", exc_info=True)
        raise DecodeError(f"Markup could not be decoded: {exc}") from exc

from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import BinaryIO, Protocol

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from asciimaker.engine import PixelGrid
from asciimaker.errors import ImageDecodeError
from asciimaker.fonts import MonospaceFont

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 1000
CANVAS_HEIGHT = 360
BASE_FONT_SIZE = 200
MIN_FONT_SIZE = 12
# Fraction of the canvas width the text may occupy
FIT_FRACTION = 0.9
# Baseline is drawn at (height + BASELINE_FACTOR * size) / 2
BASELINE_FACTOR = 0.75


class TextShaper(Protocol):
    def measure(self, text: str, size: int) -> float:
        """Advance width of `text` at `size`."""
        ...

    def font(self, size: int) -> ImageFont.FreeTypeFont:
        ...


def fit_font_size(text: str, width: int, shaper: TextShaper) -> tuple[int, float]:
    """Largest font size (from BASE_FONT_SIZE down) whose text fits the canvas width.

    Returns (size, measured_width).
    """
    size = BASE_FONT_SIZE
    measured = shaper.measure(text, size)
    limit = width * FIT_FRACTION
    if measured > limit:
        scale = limit / max(1.0, measured)
        size = max(MIN_FONT_SIZE, math.floor(size * scale))
        measured = shaper.measure(text, size)
    return size, measured


def rasterize_text(
    text: str,
    width: int = CANVAS_WIDTH,
    height: int = CANVAS_HEIGHT,
    font: TextShaper | None = None,
) -> PixelGrid:
    """Draw text black-on-white, centred on a fixed-size canvas."""
    text = text or " "
    shaper = font if font is not None else MonospaceFont()
    size, measured = fit_font_size(text, width, shaper)
    logger.debug("Rasterizing %d chars at font size %d (width %.1f of %d)", len(text), size, measured, width)

    image = Image.new("RGBA", (width, height), (255, 255, 255, 255))
    draw = ImageDraw.Draw(image)
    x = math.floor((width - measured) / 2)
    y = math.floor((height + size * BASELINE_FACTOR) / 2)
    draw.text((x, y), text, fill=(0, 0, 0, 255), font=shaper.font(size), anchor="ls")
    return PixelGrid.from_image(image)


def load_image(source: Image.Image | str | Path | bytes | BinaryIO) -> PixelGrid:
    """Decode an image from a path, raw bytes, file object or PIL image."""
    if isinstance(source, Image.Image):
        return PixelGrid.from_image(ImageOps.exif_transpose(source))
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        with Image.open(source) as image:
            image.load()
            grid = PixelGrid.from_image(ImageOps.exif_transpose(image))
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    logger.debug("Decoded image %dx%d", grid.width, grid.height)
    return grid


def suggest_columns(width: int, height: int, columns: int) -> int:
    """Pick an output width for an image from its shape and the requested columns.

    Near-square images get fewer columns for legibility, wide images more.
    """
    ratio = width / height
    if abs(ratio - 1) < 0.3:
        return math.floor(min(100, max(40, columns * 0.8)))
    if ratio > 1.5:
        return math.floor(min(120, max(60, columns)))
    if ratio < 0.7:
        return math.floor(min(80, max(40, columns * 0.7)))
    return math.floor(min(100, max(50, columns * 0.9)))

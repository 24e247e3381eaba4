from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from PIL import Image

from asciimaker.engine import AsciiGrid, GenerationRequest, PixelGrid
from asciimaker.fonts import MonospaceFont
from asciimaker.quantizer import quantize_request
from asciimaker.rasterizer import load_image, rasterize_text, suggest_columns

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "ascii-art.txt"
# Gamma used for photographic input when the request leaves it unset
IMAGE_GAMMA = 0.9
PREVIEW_FONT_SIZE = 12


def text_to_ascii(text: str, request: GenerationRequest, font: MonospaceFont | None = None) -> AsciiGrid:
    grid = rasterize_text(text, font=font)
    return quantize_request(grid, request)


def image_to_ascii(
    image: PixelGrid | Image.Image | str | Path | bytes,
    request: GenerationRequest,
    font: MonospaceFont | None = None,
    font_size: float = PREVIEW_FONT_SIZE,
    auto_columns: bool = True,
) -> AsciiGrid:
    """Render a decoded or decodable image.

    The cell aspect is measured from the font at `font_size` so the output keeps
    the image's proportions when displayed in that font. With `auto_columns`
    the requested column count is adjusted for the image's shape.
    """
    grid = image if isinstance(image, PixelGrid) else load_image(image)
    font = font if font is not None else MonospaceFont()

    changes = {"aspect": font.char_aspect(font_size)}
    if auto_columns:
        changes["columns"] = suggest_columns(grid.width, grid.height, request.columns)
    if request.gamma is None:
        changes["gamma"] = IMAGE_GAMMA
    request = replace(request, **changes)
    logger.debug("Image request: %s", request)
    return quantize_request(grid, request)


def export_text(art: AsciiGrid | str, path: str | Path = DEFAULT_EXPORT_NAME) -> Path:
    path = Path(path)
    path.write_text(str(art), encoding="utf-8")
    logger.info("Wrote %s", path)
    return path

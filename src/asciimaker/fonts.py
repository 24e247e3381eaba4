import logging
import os
import shutil
import subprocess
from functools import lru_cache

from PIL import ImageFont

logger = logging.getLogger(__name__)

_FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu-sans-mono-fonts/DejaVuSansMono.ttf",
    "/System/Library/Fonts/Menlo.ttc",
    "C:\\Windows\\Fonts\\consola.ttf",
]

# Cell height / width used when glyph metrics are unavailable
FALLBACK_CHAR_ASPECT = 2.0


def find_monospace_font() -> str | None:
    """Locate a monospace font file, asking fontconfig if no known path exists."""
    for path in _FONT_CANDIDATES:
        if os.path.exists(path):
            return path
    if shutil.which("fc-match"):
        result = subprocess.run(["fc-match", "-f", "%{file}", "monospace"], capture_output=True, text=True)
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
    return None


class MonospaceFont:
    """Pillow-backed text shaping: glyph measurement and fonts at any size.

    Falls back to Pillow's bundled font when no font file can be found.
    """

    def __init__(self, path: str | None = None):
        self.path = path or find_monospace_font()
        if self.path is None:
            logger.warning("No monospace font found, using Pillow's default font")
        # Per-instance cache of loaded sizes
        self.font = lru_cache(maxsize=32)(self._load)

    def _load(self, size: int) -> ImageFont.FreeTypeFont:
        if self.path is None:
            return ImageFont.load_default(size=size)
        return ImageFont.truetype(self.path, size)

    def measure(self, text: str, size: int) -> float:
        """Advance width of `text` in pixels at the given font size."""
        return float(self.font(size).getlength(text))

    def char_aspect(self, size: float) -> float:
        """Height-to-width ratio of one character cell at the given size."""
        size_px = max(1, round(size))
        width = self.measure("M", size_px)
        if width <= 0:
            return FALLBACK_CHAR_ASPECT
        return size_px / width

import pytest

from asciimaker.fonts import MonospaceFont, find_monospace_font

FONT_PATH = find_monospace_font()


@pytest.fixture
def font_path():
    if FONT_PATH is None:
        pytest.skip("No monospace font found on system")
    return FONT_PATH


@pytest.fixture
def font():
    """A MonospaceFont, using Pillow's bundled font when the system has none."""
    return MonospaceFont(FONT_PATH)


class FixedAspectFont:
    """Glyph metrics stub with a known cell aspect."""

    def __init__(self, aspect=1.0):
        self.aspect = aspect

    def char_aspect(self, size):
        return self.aspect


@pytest.fixture
def square_cells():
    return FixedAspectFont(1.0)

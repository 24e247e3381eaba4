import os
import sys


def supports_colour(stream=None) -> bool:
    """True when `stream` is a tty and NO_COLOR is not set."""
    stream = stream if stream is not None else sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def tint(text: str, rgb: tuple[int, int, int]) -> str:
    """Wrap text in a single ANSI truecolor foreground colour."""
    r, g, b = rgb
    return f"\033[38;2;{r};{g};{b}m{text}\033[0m"

import argparse
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path

from asciimaker.charsets import RAMPS
from asciimaker.config import Settings
from asciimaker.converter import PREVIEW_FONT_SIZE, export_text, image_to_ascii, text_to_ascii
from asciimaker.engine import GenerationRequest
from asciimaker.errors import AsciiMakerError
from asciimaker.fonts import MonospaceFont
from asciimaker.presets import STYLES, THEME_TINTS, TINTS, StylePreset, apply_style
from asciimaker.remote import generate_image_grid
from asciimaker.terminal import supports_colour, tint

logger = logging.getLogger("asciimaker")


def setup_logging(log_level: str = "WARNING") -> None:
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler()],
    )


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--columns", type=int, default=None, help="Output width in columns (default: 80)")
    common.add_argument(
        "-r", "--ramp", default=None, choices=sorted(RAMPS), help="Character ramp to use (default: detailed)"
    )
    common.add_argument(
        "-i", "--invert", action=argparse.BooleanOptionalAction, default=None, help="Invert luminance"
    )
    common.add_argument(
        "-a",
        "--aspect",
        type=float,
        default=None,
        help="Cell height / width ratio (default: 1.8 for text, measured from the font for images)",
    )
    common.add_argument("-g", "--gamma", type=float, default=None, help="Gamma applied to cell luminance")
    common.add_argument("-n", "--samples", type=int, default=None, help="Box samples per cell axis, 1-6 (default: 3)")
    common.add_argument("--style", choices=STYLES + ("RANDOM",), default=None, help="Start from a style preset")
    common.add_argument("--seed", type=int, default=None, help="Random seed for style presets")
    common.add_argument("--theme", choices=sorted(THEME_TINTS), default="dark", help="Theme for preset tints")
    common.add_argument("--tint", choices=sorted(TINTS), default=None, help="Foreground colour for terminal output")
    common.add_argument("-o", "--output", type=Path, default=None, help="Write the art to a .txt file")
    common.add_argument("--font", default=None, help="Monospace font file (default: autodetect)")
    common.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable debug logging")

    parser = argparse.ArgumentParser(prog="asciimaker", description="Render text or images as ASCII art")
    modes = parser.add_subparsers(dest="mode", required=True)
    text = modes.add_parser("text", parents=[common], help="Render a line of text")
    text.add_argument("text", help="Text to render")
    image = modes.add_parser("image", parents=[common], help="Render an image file")
    image.add_argument("image", help="Path to input image")
    prompt = modes.add_parser("prompt", parents=[common], help="Generate an image from a prompt and render it")
    prompt.add_argument("prompt", help="Image generation prompt")
    return parser


def _resolve(args) -> StylePreset:
    """Merge the style preset (if any) with explicit flags."""
    if args.style:
        preset = apply_style(args.style, theme=args.theme, rng=random.Random(args.seed))
    else:
        preset = StylePreset(GenerationRequest(columns=80, aspect=1.8), tint="white")

    overrides = {
        "columns": args.columns,
        "ramp": args.ramp,
        "invert": args.invert,
        "aspect": args.aspect,
        "gamma": args.gamma,
        "samples": args.samples,
    }
    request = replace(preset.request, **{k: v for k, v in overrides.items() if v is not None})
    return replace(preset, request=request, tint=args.tint or preset.tint)


def main(argv=None):
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    preset = _resolve(args)
    font_path = args.font or settings.font_path
    if font_path and not Path(font_path).is_file():
        print(f"Font not found: {font_path}", file=sys.stderr)
        sys.exit(1)
    font = MonospaceFont(font_path)
    # An explicit aspect wins over the measured glyph aspect
    glyphs = _FixedAspect(args.aspect) if args.aspect is not None else font
    font_size = PREVIEW_FONT_SIZE * preset.preview_scale

    try:
        if args.mode == "text":
            art = text_to_ascii(args.text, preset.request, font=font)
        elif args.mode == "image":
            image_path = Path(args.image)
            if not image_path.exists():
                print(f"File not found: {image_path}", file=sys.stderr)
                sys.exit(1)
            art = image_to_ascii(image_path, preset.request, font=glyphs, font_size=font_size)
        else:
            if not settings.api_key:
                print("RUNWARE_API_KEY is not set", file=sys.stderr)
                sys.exit(1)
            grid = generate_image_grid(args.prompt, settings.api_key, timeout=settings.remote_timeout)
            art = image_to_ascii(grid, preset.request, font=glyphs, font_size=font_size)
    except AsciiMakerError as e:
        logger.debug("Generation failed", exc_info=True)
        print(f"Generation failed: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output is not None:
        export_text(art, args.output)
    elif supports_colour(sys.stdout) and preset.tint != "white":
        print(tint(art.text, preset.tint_rgb))
    else:
        print(art.text)


class _FixedAspect:
    """Stands in for a font when the user sets the cell aspect directly."""

    def __init__(self, aspect: float):
        self.aspect = aspect

    def char_aspect(self, size: float) -> float:
        return self.aspect

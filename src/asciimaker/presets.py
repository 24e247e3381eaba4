import random
from dataclasses import dataclass

from asciimaker.charsets import RAMPS
from asciimaker.engine import GenerationRequest

TINTS = {
    "white": (240, 240, 240),
    "yellow": (250, 204, 21),
    "red": (239, 68, 68),
    "lime": (132, 204, 22),
    "blue": (59, 130, 246),
    "purple": (168, 85, 247),
}

# Tint orderings offered in each theme
THEME_TINTS = {
    "dark": ["white", "yellow", "blue", "red", "lime", "purple"],
    "light": ["white", "red", "lime", "purple", "yellow", "blue"],
}

STYLES = ("RETRO", "MINIMAL", "DENSE", "NEON", "CYBER")


@dataclass(frozen=True)
class StylePreset:
    request: GenerationRequest
    tint: str
    preview_scale: float = 0.8

    @property
    def tint_rgb(self) -> tuple[int, int, int]:
        return TINTS[self.tint]


def randomize(theme: str = "dark", rng: random.Random | None = None) -> StylePreset:
    """Pick every control at random."""
    rng = rng or random.Random()
    request = GenerationRequest(
        columns=20 + int(rng.random() * 80),
        aspect=0.5 + rng.random() * 2,
        ramp=rng.choice(list(RAMPS)),
        invert=rng.random() > 0.5,
    )
    return StylePreset(request=request, tint=rng.choice(THEME_TINTS[theme]))


def apply_style(name: str, theme: str = "dark", rng: random.Random | None = None) -> StylePreset:
    """Build the preset for a named style; unknown names are randomized."""
    rng = rng or random.Random()
    dark = theme == "dark"
    style = name.upper()

    if style == "RETRO":
        request = GenerationRequest(
            columns=60 + int(rng.random() * 20),
            aspect=1.5 + rng.random() * 0.5,
            ramp="blocks",
            invert=False,
        )
        return StylePreset(request, tint="lime" if dark else "red", preview_scale=1.2)

    if style == "MINIMAL":
        request = GenerationRequest(
            columns=40 + int(rng.random() * 15),
            aspect=2.0 + rng.random() * 0.3,
            ramp="smooth",
            invert=rng.random() > 0.7,
        )
        return StylePreset(request, tint="white", preview_scale=1.0)

    if style == "DENSE":
        request = GenerationRequest(
            columns=90 + int(rng.random() * 30),
            aspect=1.0 + rng.random() * 0.8,
            ramp="detailed",
            invert=rng.random() > 0.6,
        )
        return StylePreset(request, tint=rng.choice(THEME_TINTS[theme]), preview_scale=0.8)

    if style == "NEON":
        request = GenerationRequest(
            columns=70 + int(rng.random() * 20),
            aspect=1.8 + rng.random() * 0.4,
            ramp="symbols",
            invert=True,
        )
        return StylePreset(request, tint="purple", preview_scale=1.1)

    if style == "CYBER":
        request = GenerationRequest(
            columns=55 + int(rng.random() * 25),
            aspect=1.6 + rng.random() * 0.6,
            ramp="binary",
            invert=rng.random() > 0.5,
        )
        return StylePreset(request, tint="blue", preview_scale=1.3)

    return randomize(theme, rng)

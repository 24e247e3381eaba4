from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Protocol

import numpy as np
from PIL import Image

from asciimaker.charsets import DEFAULT_RAMP

MIN_COLUMNS = 1
MAX_COLUMNS = 800
MIN_SAMPLES = 1
MAX_SAMPLES = 6
DEFAULT_ASPECT = 2.0


def _clamp_int(value, low: int, high: int) -> int:
    # NaN and -inf go to the floor, +inf to the ceiling
    if isinstance(value, float) and not math.isfinite(value):
        return high if value > 0 else low
    return max(low, min(high, int(value)))


def clamp_columns(columns) -> int:
    return _clamp_int(columns, MIN_COLUMNS, MAX_COLUMNS)


def clamp_samples(samples) -> int:
    return _clamp_int(samples, MIN_SAMPLES, MAX_SAMPLES)


def normalise_gamma(gamma: float | None) -> float:
    """Unset, non-positive or non-finite gamma means no tone shaping."""
    if gamma is None or not math.isfinite(gamma) or gamma <= 0:
        return 1.0
    return float(gamma)


class SampleSource(Protocol):
    width: int
    height: int

    def sample_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Return the RGBA sample at pixel (x, y), origin top-left."""
        ...


@dataclass(frozen=True, eq=False)
class PixelGrid:
    pixels: np.ndarray  # (height, width, 4) uint8, read-only

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (height, width, 4) RGBA array, got shape {self.pixels.shape}")
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def sample_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    @classmethod
    def from_array(cls, arr) -> PixelGrid:
        """Build a grid from a greyscale (H, W), RGB (H, W, 3) or RGBA (H, W, 4) array."""
        arr = np.asarray(arr)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel array shape {arr.shape}")
        arr = np.clip(arr, 0, 255).astype(np.uint8)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        return cls(np.ascontiguousarray(arr).copy())

    @classmethod
    def from_image(cls, image: Image.Image) -> PixelGrid:
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def solid(cls, width: int, height: int, rgba=(255, 255, 255, 255)) -> PixelGrid:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = rgba
        return cls(pixels)


@dataclass(frozen=True)
class GenerationRequest:
    columns: int = 80
    ramp: str = DEFAULT_RAMP
    invert: bool = False
    aspect: float = DEFAULT_ASPECT
    gamma: float | None = None
    samples: int = 3

    def clamped(self) -> GenerationRequest:
        return replace(
            self,
            columns=clamp_columns(self.columns),
            gamma=normalise_gamma(self.gamma),
            samples=clamp_samples(self.samples),
        )


@dataclass(frozen=True)
class AsciiGrid:
    lines: tuple[str, ...]  # one string per row, each exactly `columns` long
    columns: int

    @property
    def rows(self) -> int:
        return len(self.lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __str__(self) -> str:
        return self.text

import logging
import math

import numpy as np

from asciimaker.charsets import get_ramp, validate_ramp
from asciimaker.engine import (
    DEFAULT_ASPECT,
    AsciiGrid,
    GenerationRequest,
    SampleSource,
    clamp_columns,
    clamp_samples,
    normalise_gamma,
)
from asciimaker.errors import InvalidInput
from asciimaker.sampling import apply_tone, ramp_indices, sample_cells

logger = logging.getLogger(__name__)

# Smallest cell height, so a vanishing aspect can't divide by zero
MIN_CELL_HEIGHT = 1e-6


def grid_shape(width: int, height: int, cols: int, aspect: float) -> tuple[int, float, float]:
    """Return (rows, cell_width, cell_height) for a sample grid cut into `cols` columns."""
    cell_width = width / cols
    cell_height = max(MIN_CELL_HEIGHT, cell_width * aspect)
    rows = math.floor(height / cell_height)
    return rows, cell_width, cell_height


def quantize(
    grid: SampleSource,
    cols: int,
    ramp: str,
    invert: bool = False,
    aspect: float = DEFAULT_ASPECT,
    gamma: float | None = 1.0,
    samples: int = 3,
) -> AsciiGrid:
    """Convert a grid of colour samples to a grid of ramp characters.

    Each output cell averages an s x s lattice of nearest-pixel luminance
    samples, optionally inverts and gamma-shapes the value, then picks the
    ramp character at the matching density. Columns and samples are clamped
    into range; a zero-area grid or non-positive aspect raises InvalidInput.
    """
    width, height = grid.width, grid.height
    if width <= 0 or height <= 0:
        raise InvalidInput(f"Sample grid has zero area ({width}x{height})")
    if math.isnan(aspect) or aspect <= 0:
        raise InvalidInput(f"Aspect must be positive, got {aspect}")

    cols = clamp_columns(cols)
    samples = clamp_samples(samples)
    gamma = normalise_gamma(gamma)
    ramp = validate_ramp(ramp)

    rows, cell_width, cell_height = grid_shape(width, height, cols, aspect)
    logger.debug(
        "Quantizing %dx%d samples to %dx%d cells (cell %.3fx%.3f, %d samples/axis)",
        width,
        height,
        cols,
        rows,
        cell_width,
        cell_height,
        samples,
    )

    values = sample_cells(grid, rows, cols, cell_width, cell_height, samples)
    values = apply_tone(values, invert, gamma)
    indices = ramp_indices(values, len(ramp))

    chars = np.array(list(ramp))
    lines = tuple("".join(chars[row]) for row in indices)
    return AsciiGrid(lines=lines, columns=cols)


def quantize_request(grid: SampleSource, request: GenerationRequest) -> AsciiGrid:
    """Quantize using a named-ramp GenerationRequest."""
    return quantize(
        grid,
        cols=request.columns,
        ramp=get_ramp(request.ramp),
        invert=request.invert,
        aspect=request.aspect,
        gamma=request.gamma,
        samples=request.samples,
    )

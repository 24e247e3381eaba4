import numpy as np

from asciimaker.engine import PixelGrid, SampleSource

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def luminance(rgb) -> float:
    """Perceptual brightness of an (r, g, b[, a]) sample, normalised to 0-1."""
    r, g, b = rgb[0], rgb[1], rgb[2]
    return (LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b) / 255


def luminance_map(grid: PixelGrid) -> np.ndarray:
    """Per-pixel luminance of a whole grid. Returns array of shape (height, width)."""
    rgb = grid.pixels[:, :, :3].astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    return (wr * rgb[:, :, 0] + wg * rgb[:, :, 1] + wb * rgb[:, :, 2]) / 255


def sample_offsets(samples: int) -> np.ndarray:
    """Sub-sample positions as fractions of a cell, centred in each sub-cell."""
    return (np.arange(samples) + 0.5) / samples


def _sample_coords(count: int, cell_size: float, samples: int, limit: int) -> np.ndarray:
    """Pixel coordinates of every sub-sample along one axis. Returns shape (samples, count)."""
    starts = np.arange(count)[np.newaxis, :] * cell_size
    coords = starts + sample_offsets(samples)[:, np.newaxis] * cell_size
    # Truncate to the containing pixel, never reading outside the grid
    return np.clip(coords.astype(np.int64), 0, limit - 1)


def sample_cells(
    grid: SampleSource,
    rows: int,
    cols: int,
    cell_width: float,
    cell_height: float,
    samples: int,
) -> np.ndarray:
    """Box-sample the mean luminance of every cell. Returns array of shape (rows, cols)."""
    xs = _sample_coords(cols, cell_width, samples, grid.width)
    ys = _sample_coords(rows, cell_height, samples, grid.height)

    total = np.zeros((rows, cols), dtype=np.float64)
    if isinstance(grid, PixelGrid):
        lum = luminance_map(grid)
        for y_row in ys:
            for x_row in xs:
                total += lum[np.ix_(y_row, x_row)]
    else:
        for y_row in ys:
            for x_row in xs:
                for r, y in enumerate(y_row):
                    for c, x in enumerate(x_row):
                        total[r, c] += luminance(grid.sample_at(int(x), int(y)))
    return total / (samples * samples)


def apply_tone(values: np.ndarray, invert: bool, gamma: float) -> np.ndarray:
    """Apply inversion then gamma shaping to cell luminance values."""
    if invert:
        values = 1.0 - values
    if gamma != 1.0:
        values = np.clip(np.clip(values, 0.0, 1.0) ** gamma, 0.0, 1.0)
    return values


def ramp_indices(values: np.ndarray, length: int) -> np.ndarray:
    """Map 0-1 values to ramp indices, rounding halves up."""
    indices = np.floor(values * (length - 1) + 0.5)
    return np.clip(indices, 0, length - 1).astype(np.int64)

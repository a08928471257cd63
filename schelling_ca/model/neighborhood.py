"""Moore-neighborhood color composition for real and hypothetical placements."""

from dataclasses import dataclass
from typing import Dict

import numpy as np
from scipy.ndimage import convolve

from .agent import Color
from .grid import GridMap


# 3x3 Moore kernel without the center cell
MOORE_KERNEL = np.array([
    [1, 1, 1],
    [1, 0, 1],
    [1, 1, 1]
], dtype=np.int32)


@dataclass(frozen=True)
class NeighborCounts:
    """Occupied neighbor cells of one cell, split by color."""
    counts: Dict[Color, int]
    total: int

    def of(self, color: Color) -> int:
        return self.counts.get(color, 0)


def neighbor_color_counts(grid: GridMap, x: int, y: int) -> NeighborCounts:
    """
    Count occupied neighbors of (x, y) by color.

    The cell itself is never part of its own neighborhood, so an agent
    standing on (x, y) is excluded from its own count and an empty cell
    is evaluated as if the candidate were already standing there.
    """
    counts = {color: 0 for color in Color}
    total = 0
    for nx, ny in grid.get_neighbors(x, y):
        code = grid.colors[ny, nx]
        if code:
            counts[Color(int(code))] += 1
            total += 1
    return NeighborCounts(counts=counts, total=total)


def meets_threshold(similar: int, total: int, threshold_percent: float) -> bool:
    """100 * similar / total >= threshold, with zero neighbors always passing."""
    if total == 0:
        return True
    return 100 * similar >= threshold_percent * total


def proportion_similar_for_color(grid: GridMap, x: int, y: int, color: Color) -> float:
    """Share of neighbors with the given color; exactly 1.0 with no neighbors."""
    counts = neighbor_color_counts(grid, x, y)
    if counts.total == 0:
        return 1.0
    return counts.of(color) / counts.total


def is_good_for_color(grid: GridMap, x: int, y: int, color: Color,
                      threshold_percent: float) -> bool:
    """Would an agent of this color be content at (x, y)?"""
    counts = neighbor_color_counts(grid, x, y)
    return meets_threshold(counts.of(color), counts.total, threshold_percent)


def neighbor_count_layers(grid: GridMap) -> Dict[Color, np.ndarray]:
    """
    Per-color neighbor counts for every cell at once.

    Returns arrays shaped like the grid ([y, x]). Same semantics as
    neighbor_color_counts, computed with a 3x3 convolution.
    """
    mode = 'wrap' if grid.torus else 'constant'
    layers = {}
    for color in Color:
        mask = (grid.colors == color.value).astype(np.int32)
        layers[color] = convolve(mask, MOORE_KERNEL, mode=mode, cval=0)
    return layers

"""
Movement policies: where a discontent agent relocates to.

Each policy is a plain function
    policy(color, origin, grid, threshold_percent, rng, candidates) -> cell
where candidates are the empty cells the mover may go to, in row-major
order. The mover's own cell has already been vacated, so candidate
neighborhoods never count the mover itself.

Random draws: one index for the destination (random policies) or one
index for the tie-break among optimal cells (closest/best), drawn even
when only one optimum exists.
"""

from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np

from .agent import Color
from .grid import GridMap
from .neighborhood import neighbor_count_layers

Cell = Tuple[int, int]


class MovementRule(str, Enum):
    """Named relocation policies."""
    RANDOM_CELL = "random-cell"
    RANDOM_CONTENT_CELL = "random-content-cell"
    CLOSEST_CONTENT_CELL = "closest-content-cell"
    BEST_CELL = "best-cell"


def _pick(cells: Sequence[Cell], rng: np.random.Generator) -> Cell:
    """Uniform random element of a non-empty sequence."""
    return cells[int(rng.integers(len(cells)))]


def _candidate_counts(grid: GridMap, color: Color,
                      candidates: Sequence[Cell]) -> Tuple[np.ndarray, np.ndarray]:
    """Similar and total neighbor counts for every candidate cell."""
    layers = neighbor_count_layers(grid)
    xs = np.array([c[0] for c in candidates], dtype=np.intp)
    ys = np.array([c[1] for c in candidates], dtype=np.intp)
    similar = layers[color][ys, xs]
    total = sum(layer[ys, xs] for layer in layers.values())
    return similar, total


def _good_cells(grid: GridMap, color: Color, threshold_percent: float,
                candidates: Sequence[Cell]) -> List[Cell]:
    similar, total = _candidate_counts(grid, color, candidates)
    good = (total == 0) | (100 * similar >= threshold_percent * total)
    return [cell for cell, ok in zip(candidates, good) if ok]


def random_cell(color: Color, origin: Cell, grid: GridMap,
                threshold_percent: float, rng: np.random.Generator,
                candidates: Sequence[Cell]) -> Cell:
    """Any empty cell, uniformly."""
    return _pick(candidates, rng)


def random_content_cell(color: Color, origin: Cell, grid: GridMap,
                        threshold_percent: float, rng: np.random.Generator,
                        candidates: Sequence[Cell]) -> Cell:
    """A uniformly random good cell, or any empty cell if none is good."""
    good = _good_cells(grid, color, threshold_percent, candidates)
    return _pick(good or candidates, rng)


def closest_content_cell(color: Color, origin: Cell, grid: GridMap,
                         threshold_percent: float, rng: np.random.Generator,
                         candidates: Sequence[Cell]) -> Cell:
    """The good cell nearest to origin (taxicab), or any empty cell if none is good."""
    good = _good_cells(grid, color, threshold_percent, candidates)
    if not good:
        return _pick(candidates, rng)

    distances = [grid.distance(origin, cell) for cell in good]
    nearest = min(distances)
    ties = [cell for cell, d in zip(good, distances) if d == nearest]
    return _pick(ties, rng)


def best_cell(color: Color, origin: Cell, grid: GridMap,
              threshold_percent: float, rng: np.random.Generator,
              candidates: Sequence[Cell]) -> Cell:
    """The empty cell with the highest share of same-color neighbors."""
    similar, total = _candidate_counts(grid, color, candidates)
    # Cells without neighbors score 1.0
    proportion = np.ones(len(candidates), dtype=np.float64)
    np.divide(similar, total, out=proportion, where=total > 0)

    best = proportion.max()
    ties = [cell for cell, p in zip(candidates, proportion) if p == best]
    return _pick(ties, rng)


def choose_destination(rule: MovementRule, color: Color, origin: Cell,
                       grid: GridMap, threshold_percent: float,
                       rng: np.random.Generator,
                       candidates: Sequence[Cell]) -> Cell:
    """Dispatch to the policy selected by the configured rule."""
    if not candidates:
        raise ValueError("No empty cell available for relocation")

    if rule == MovementRule.RANDOM_CELL:
        policy = random_cell
    elif rule == MovementRule.RANDOM_CONTENT_CELL:
        policy = random_content_cell
    elif rule == MovementRule.CLOSEST_CONTENT_CELL:
        policy = closest_content_cell
    elif rule == MovementRule.BEST_CELL:
        policy = best_cell
    else:
        raise ValueError(f"Unknown movement rule: {rule}")

    return policy(color, origin, grid, threshold_percent, rng, candidates)

"""Grid map management for the Schelling-Sakoda simulation."""

import numpy as np
from typing import Tuple, List


# Moore neighborhood (8-connected), center excluded
MOORE_OFFSETS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1)
]


class GridMap:
    """
    Manages the 2D lattice with two data layers.

    Coordinate convention: (x, y) for API, [y, x] for array indexing.

    Cells store agent ids rather than agent objects; the engine owns the
    agent list and resolves ids through it.
    """

    def __init__(self, width: int, height: int, torus: bool = False):
        self.width = width
        self.height = height
        self.torus = torus

        # Occupancy: 0 = empty, positive int = agent_id
        self.occupancy = np.zeros((height, width), dtype=np.int32)

        # Color codes of occupants: 0 = empty, otherwise Color.value
        self.colors = np.zeros((height, width), dtype=np.int8)

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_occupied(self, x: int, y: int) -> bool:
        """Check if cell contains an agent."""
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x}, {y}) outside {self.width}x{self.height} grid")
        return self.occupancy[y, x] != 0

    def agent_at(self, x: int, y: int) -> int:
        """Return the id of the agent at (x, y), 0 if the cell is empty."""
        return int(self.occupancy[y, x])

    def color_at(self, x: int, y: int) -> int:
        return int(self.colors[y, x])

    def get_neighbors(self, x: int, y: int) -> List[Tuple[int, int]]:
        """
        Get the Moore neighborhood of a cell.

        Bounded grids drop out-of-range positions (3 cells at a corner,
        5 on an edge, 8 inside). Toroidal grids always return 8.
        """
        neighbors = []
        for dx, dy in MOORE_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.torus:
                neighbors.append((nx % self.width, ny % self.height))
            elif self.in_bounds(nx, ny):
                neighbors.append((nx, ny))
        return neighbors

    def empty_cells(self) -> List[Tuple[int, int]]:
        """Return all unoccupied cells in row-major order."""
        ys, xs = np.nonzero(self.occupancy == 0)
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.occupancy))

    def place_agent(self, agent_id: int, color_code: int, x: int, y: int) -> None:
        """Place agent at an empty position."""
        if self.occupancy[y, x] != 0:
            raise ValueError(f"Cell ({x}, {y}) already holds agent {self.occupancy[y, x]}")
        self.occupancy[y, x] = agent_id
        self.colors[y, x] = color_code

    def remove_agent(self, x: int, y: int) -> None:
        """Remove agent from position."""
        self.occupancy[y, x] = 0
        self.colors[y, x] = 0

    def move_agent(self, agent_id: int, color_code: int,
                   source: Tuple[int, int],
                   destination: Tuple[int, int]) -> None:
        """Clear source and occupy destination in one call, or change nothing."""
        sx, sy = source
        dx, dy = destination
        if self.occupancy[sy, sx] != agent_id:
            raise ValueError(f"Agent {agent_id} is not at {source}")
        if self.occupancy[dy, dx] != 0:
            raise ValueError(f"Cell {destination} already holds agent {self.occupancy[dy, dx]}")
        self.remove_agent(sx, sy)
        self.occupancy[dy, dx] = agent_id
        self.colors[dy, dx] = color_code

    def distance(self, a: Tuple[int, int], b: Tuple[int, int]) -> int:
        """Taxicab distance, wrapping around the edges on a torus."""
        dx = abs(a[0] - b[0])
        dy = abs(a[1] - b[1])
        if self.torus:
            dx = min(dx, self.width - dx)
            dy = min(dy, self.height - dy)
        return dx + dy

"""Agent implementation for the Schelling-Sakoda segregation model."""

from enum import Enum
from typing import Optional, Tuple


class Color(Enum):
    """The two agent colors. Values double as codes in the grid color layer."""
    A = 1
    B = 2


class Agent:
    """
    Colored resident occupying exactly one grid cell.

    Neighbor counts are cached on the agent and refreshed by the engine
    whenever the agent's Moore neighborhood may have changed:
    - total_neighbors = occupied cells in the neighborhood
    - similar_neighbors = those occupied by an agent of the same color
    - content = derived from both counts and the similarity threshold
    """

    def __init__(self, agent_id: int, color: Color, position: Tuple[int, int]):
        self.id = agent_id
        self.color = color
        self.position = position
        self.total_neighbors = 0
        self.similar_neighbors = 0
        self.content = True
        self.moves = 0

    @property
    def similarity_ratio(self) -> Optional[float]:
        """Fraction of neighbors sharing this agent's color, None without neighbors."""
        if self.total_neighbors == 0:
            return None
        return self.similar_neighbors / self.total_neighbors

    def update_happiness(self, content: bool, total: int, similar: int) -> None:
        """Store freshly computed neighborhood counts."""
        self.content = content
        self.total_neighbors = total
        self.similar_neighbors = similar

    def relocate(self, new_position: Tuple[int, int]) -> None:
        self.position = new_position
        self.moves += 1

    def __repr__(self) -> str:
        return (f"Agent(id={self.id}, color={self.color.name}, "
                f"pos={self.position}, content={self.content})")

"""State snapshot dataclasses for the Schelling-Sakoda simulation."""

import hashlib
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple
import numpy as np


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable snapshot of an agent's state at a given tick."""
    agent_id: int
    x: int
    y: int
    color: str  # "A" or "B"
    content: bool
    similar_neighbors: int
    total_neighbors: int


@dataclass
class SimulationState:
    """Complete snapshot of simulation state at a given tick."""
    tick: int
    status: str                        # EngineStatus value
    agents: List[AgentSnapshot]
    grid_occupancy: np.ndarray         # Copy of occupancy grid
    metrics: Dict[str, Optional[float]]
    similarity_ratios: List[float]     # One entry per agent with neighbors
    moved: Optional[Tuple[int, Tuple[int, int], Tuple[int, int]]] = field(default=None)
    # (agent_id, source, destination) of the move made this tick

    @property
    def percent_discontent_agents(self) -> float:
        return self.metrics['percent_discontent_agents']

    @property
    def avg_percent_similar(self) -> Optional[float]:
        """None when no agent has any neighbor."""
        return self.metrics['avg_percent_similar']

    def fingerprint(self) -> str:
        """Hash of tick, agent states and metrics, for trajectory comparison."""
        digest = hashlib.sha256()
        digest.update(repr(self.tick).encode())
        for a in self.agents:
            digest.update(repr((a.agent_id, a.x, a.y, a.color, a.content,
                                a.similar_neighbors, a.total_neighbors)).encode())
        digest.update(repr(sorted(self.metrics.items())).encode())
        digest.update(repr(self.moved).encode())
        return digest.hexdigest()

    def to_csv_rows(self) -> List[Dict]:
        """Convert to CSV-compatible format."""
        return [
            {
                "tick": self.tick,
                "agent_id": a.agent_id,
                "x": a.x,
                "y": a.y,
                "color": a.color,
                "content": int(a.content),
                "similar_neighbors": a.similar_neighbors,
                "total_neighbors": a.total_neighbors
            }
            for a in self.agents
        ]

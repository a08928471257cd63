"""Content/discontent rule for agents."""

from typing import Set, Tuple

from .agent import Agent
from .grid import GridMap
from .neighborhood import neighbor_color_counts, meets_threshold


def is_content(total: int, similar: int, threshold_percent: float) -> bool:
    """An agent with no neighbors is always content."""
    return meets_threshold(similar, total, threshold_percent)


def evaluate(agent: Agent, grid: GridMap,
             threshold_percent: float) -> Tuple[bool, int, int]:
    """Return (content, total_neighbors, similar_neighbors) at the agent's cell."""
    counts = neighbor_color_counts(grid, *agent.position)
    similar = counts.of(agent.color)
    return is_content(counts.total, similar, threshold_percent), counts.total, similar


def agents_around(grid: GridMap, x: int, y: int) -> Set[int]:
    """Ids of agents in the Moore neighborhood of (x, y)."""
    ids = set()
    for nx, ny in grid.get_neighbors(x, y):
        agent_id = grid.agent_at(nx, ny)
        if agent_id:
            ids.add(agent_id)
    return ids


def affected_agent_ids(grid: GridMap, mover_id: int,
                       source: Tuple[int, int],
                       destination: Tuple[int, int]) -> Set[int]:
    """
    Agents whose neighborhood changed after a move: the mover, its
    neighbors at the source cell and its neighbors at the destination.
    Everyone else is unaffected.
    """
    ids = agents_around(grid, *source) | agents_around(grid, *destination)
    ids.add(mover_id)
    return ids

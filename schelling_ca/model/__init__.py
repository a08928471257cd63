"""Model package for the Schelling-Sakoda segregation simulation."""

from .state import AgentSnapshot, SimulationState
from .grid import GridMap
from .agent import Agent, Color
from .neighborhood import (
    NeighborCounts,
    neighbor_color_counts,
    proportion_similar_for_color,
    is_good_for_color,
)
from .movement import MovementRule, choose_destination
from .engine import SimulationEngine, EngineStatus

__all__ = [
    'AgentSnapshot',
    'SimulationState',
    'GridMap',
    'Agent',
    'Color',
    'NeighborCounts',
    'neighbor_color_counts',
    'proportion_similar_for_color',
    'is_good_for_color',
    'MovementRule',
    'choose_destination',
    'SimulationEngine',
    'EngineStatus',
]

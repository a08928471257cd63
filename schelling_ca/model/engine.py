"""Simulation engine for the Schelling-Sakoda segregation model."""

import copy
import threading
from enum import Enum
from typing import Callable, List, Dict, Tuple, Optional, Sequence, TYPE_CHECKING

import numpy as np

from .grid import GridMap
from .agent import Agent, Color
from .neighborhood import neighbor_count_layers
from .happiness import is_content, evaluate, affected_agent_ids
from .movement import choose_destination
from .state import SimulationState, AgentSnapshot
from ..errors import InvalidOperationError, InvariantViolationError, ConfigurationError

if TYPE_CHECKING:
    from ..config import SimulationConfig

Placement = Tuple[Tuple[int, int], Color]


class EngineStatus(Enum):
    """Lifecycle of a run."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"          # after setup, tick 0
    RUNNING = "running"      # at least one move made
    CONVERGED = "converged"  # no discontent agent left


class SimulationEngine:
    """
    Orchestrates the step-by-step relocation process.

    Implements:
    1. Setup: grid creation, random placement, color assignment
    2. Step: pick a discontent agent, relocate it, refresh affected happiness
    3. Statistics and state snapshot generation

    All randomness comes from one numpy Generator, consumed per step in
    the order: agent selection, destination selection, tie-break.
    """

    def __init__(self, config: Optional["SimulationConfig"] = None,
                 placements: Optional[Sequence[Placement]] = None):
        self.config: Optional["SimulationConfig"] = None
        self.status = EngineStatus.UNINITIALIZED
        self.current_tick = 0
        self.rng: Optional[np.random.Generator] = None
        self.grid: Optional[GridMap] = None
        self.agents: List[Agent] = []
        self.metrics: Dict[str, Optional[float]] = {}
        self._last_move: Optional[Tuple[int, Tuple[int, int], Tuple[int, int]]] = None

        if config is not None:
            self.setup(config, placements)

    def setup(self, config: "SimulationConfig",
              placements: Optional[Sequence[Placement]] = None) -> SimulationState:
        """
        Create a fresh population for the given configuration.

        placements, if given, fixes every agent's cell and color instead of
        drawing them at random. Invalid input raises ConfigurationError
        before any engine state is replaced.
        """
        # Private copy: later edits to the caller's object do not reach the run
        config = copy.deepcopy(config)
        config.validate()
        if placements is not None:
            self._validate_placements(config, placements)

        rng = np.random.default_rng(config.seed)
        grid = GridMap(config.grid.width, config.grid.height, config.grid.torus)
        if placements is None:
            placements = self._random_placements(config, rng)

        agents = []
        for agent_id, ((x, y), color) in enumerate(placements, start=1):
            agents.append(Agent(agent_id, color, (x, y)))
            grid.place_agent(agent_id, color.value, x, y)

        self.config = config
        self.rng = rng
        self.grid = grid
        self.agents = agents
        self.current_tick = 0
        self._last_move = None

        self._evaluate_all()
        self._update_metrics()
        self.status = EngineStatus.READY
        self.verify_invariants()
        return self.snapshot()

    def _random_placements(self, config: "SimulationConfig",
                           rng: np.random.Generator) -> List[Placement]:
        """Distinct random cells; a uniformly chosen half of the agents get color B."""
        n = config.number_of_agents
        width = config.grid.width
        cells = rng.choice(config.grid.cell_count, size=n, replace=False)
        second_color = set(int(i) for i in rng.choice(n, size=n // 2, replace=False))

        placements = []
        for i, flat in enumerate(cells):
            y, x = divmod(int(flat), width)
            color = Color.B if i in second_color else Color.A
            placements.append(((x, y), color))
        return placements

    def _validate_placements(self, config: "SimulationConfig",
                             placements: Sequence[Placement]) -> None:
        n = config.number_of_agents
        if len(placements) != n:
            raise ConfigurationError(
                f"Got {len(placements)} placements for {n} agents")

        seen = set()
        for (x, y), color in placements:
            if not (0 <= x < config.grid.width and 0 <= y < config.grid.height):
                raise ConfigurationError(f"Placement ({x}, {y}) is outside the grid")
            if (x, y) in seen:
                raise ConfigurationError(f"Cell ({x}, {y}) placed twice")
            if not isinstance(color, Color):
                raise ConfigurationError(f"Invalid color {color!r} at ({x}, {y})")
            seen.add((x, y))

        for color in Color:
            count = sum(1 for _, c in placements if c is color)
            if count != n // 2:
                raise ConfigurationError(
                    f"Color {color.name} has {count} agents, expected {n // 2}")

    def _evaluate_all(self) -> None:
        """Compute happiness for every agent from whole-grid neighbor counts."""
        layers = neighbor_count_layers(self.grid)
        threshold = self.config.percent_similar_wanted
        for agent in self.agents:
            x, y = agent.position
            total = sum(int(layer[y, x]) for layer in layers.values())
            similar = int(layers[agent.color][y, x])
            agent.update_happiness(is_content(total, similar, threshold), total, similar)

    def step(self) -> SimulationState:
        """
        Execute one tick.

        1. Detect convergence (no discontent agent): mark CONVERGED, no move
        2. Pick one discontent agent at random
        3. Let the movement rule choose a destination with the mover in transit
        4. Move the agent there
        5. Recompute happiness of the mover and its old and new neighbors
        6. Recompute statistics and return the snapshot
        """
        if self.status == EngineStatus.UNINITIALIZED:
            raise InvalidOperationError("setup() must be called before step()")
        if self.status == EngineStatus.CONVERGED:
            raise InvalidOperationError(
                f"Simulation converged at tick {self.current_tick}; no agent left to move")

        discontent = [a for a in self.agents if not a.content]
        if not discontent:
            self.status = EngineStatus.CONVERGED
            self._last_move = None
            return self.snapshot()

        rng_state = self.rng.bit_generator.state
        mover = discontent[int(self.rng.integers(len(discontent)))]
        source = mover.position

        destination = self._choose_destination(mover, rng_state)
        self.grid.move_agent(mover.id, mover.color.value, source, destination)
        mover.relocate(destination)
        self._check_move(mover, source, destination)

        threshold = self.config.percent_similar_wanted
        for agent_id in sorted(affected_agent_ids(self.grid, mover.id, source, destination)):
            agent = self.agents[agent_id - 1]
            agent.update_happiness(*evaluate(agent, self.grid, threshold))

        self.current_tick += 1
        self.status = EngineStatus.RUNNING
        self._last_move = (mover.id, source, destination)
        self._update_metrics()
        return self.snapshot()

    def _choose_destination(self, mover: Agent, rng_state: dict) -> Tuple[int, int]:
        """
        Ask the movement rule for a destination with the mover in transit.

        The source cell is vacated only while candidates are scored and is
        always given back to the mover afterwards. If no destination can be
        chosen the random generator is rewound too, so the failed step
        leaves no trace.
        """
        source = mover.position
        self.grid.remove_agent(*source)
        try:
            candidates = [cell for cell in self.grid.empty_cells() if cell != source]
            if not candidates:
                raise InvariantViolationError(
                    f"No empty cell available for agent {mover.id} at tick {self.current_tick}")

            return choose_destination(
                self.config.movement_rule,
                mover.color,
                source,
                self.grid,
                self.config.percent_similar_wanted,
                self.rng,
                candidates
            )
        except Exception:
            self.rng.bit_generator.state = rng_state
            raise
        finally:
            self.grid.place_agent(mover.id, mover.color.value, *source)

    def run_until_converged(self, cancel: Optional[threading.Event] = None,
                            max_steps: Optional[int] = None,
                            on_step: Optional[Callable[[SimulationState], None]] = None
                            ) -> SimulationState:
        """
        Step until no agent is discontent.

        There is no built-in iteration cap: some configurations never
        converge. cancel is polled between steps; max_steps optionally
        bounds the number of step() calls made here.
        """
        if self.status == EngineStatus.UNINITIALIZED:
            raise InvalidOperationError("setup() must be called before run_until_converged()")

        state = self.snapshot()
        steps = 0
        while self.status != EngineStatus.CONVERGED:
            if cancel is not None and cancel.is_set():
                break
            if max_steps is not None and steps >= max_steps:
                break
            state = self.step()
            steps += 1
            if on_step is not None:
                on_step(state)
        return state

    def _check_move(self, mover: Agent, source: Tuple[int, int],
                    destination: Tuple[int, int]) -> None:
        """Cheap local consistency check after a relocation."""
        if self.grid.is_occupied(*source):
            raise InvariantViolationError(
                f"Source cell {source} still occupied after agent {mover.id} left")
        if self.grid.agent_at(*destination) != mover.id:
            raise InvariantViolationError(
                f"Destination {destination} does not hold agent {mover.id}")
        if self.grid.occupied_count() != len(self.agents):
            raise InvariantViolationError(
                f"{self.grid.occupied_count()} occupied cells for {len(self.agents)} agents")

    def verify_invariants(self) -> None:
        """Full consistency check of grid, agents and cached happiness."""
        if self.status == EngineStatus.UNINITIALIZED:
            raise InvalidOperationError("Nothing to verify before setup()")

        if self.grid.occupied_count() != len(self.agents):
            raise InvariantViolationError(
                f"{self.grid.occupied_count()} occupied cells for {len(self.agents)} agents")

        for agent in self.agents:
            x, y = agent.position
            if self.grid.agent_at(x, y) != agent.id:
                raise InvariantViolationError(
                    f"Agent {agent.id} at {agent.position} but cell holds "
                    f"{self.grid.agent_at(x, y)}")
            if self.grid.color_at(x, y) != agent.color.value:
                raise InvariantViolationError(f"Color layer mismatch at {agent.position}")

        half = len(self.agents) // 2
        for color in Color:
            count = sum(1 for a in self.agents if a.color is color)
            if count != half:
                raise InvariantViolationError(
                    f"Color {color.name} has {count} agents, expected {half}")

        threshold = self.config.percent_similar_wanted
        for agent in self.agents:
            expected = evaluate(agent, self.grid, threshold)
            cached = (agent.content, agent.total_neighbors, agent.similar_neighbors)
            if cached != expected:
                raise InvariantViolationError(
                    f"Agent {agent.id} caches {cached}, expected {expected}")

    def _update_metrics(self) -> None:
        """Recompute global statistics from the agents' cached counts."""
        n = len(self.agents)
        discontent = sum(1 for a in self.agents if not a.content)
        ratios = self.similarity_ratios()

        self.metrics = {
            'number_of_agents': n,
            'discontent_agents': discontent,
            'percent_discontent_agents': 100.0 * discontent / n if n > 0 else 0.0,
            'avg_percent_similar': float(100.0 * np.mean(ratios)) if ratios else None,
            'empty_cells': self.grid.cell_count - n,
        }

    def similarity_ratios(self) -> List[float]:
        """similar/total for every agent with at least one neighbor."""
        return [a.similarity_ratio for a in self.agents if a.total_neighbors > 0]

    def is_converged(self) -> bool:
        return self.status == EngineStatus.CONVERGED

    def snapshot(self) -> SimulationState:
        """Create immutable snapshot of current simulation state."""
        if self.grid is None:
            raise InvalidOperationError("No state before setup()")

        agent_snapshots = [
            AgentSnapshot(
                agent_id=a.id,
                x=a.position[0],
                y=a.position[1],
                color=a.color.name,
                content=a.content,
                similar_neighbors=a.similar_neighbors,
                total_neighbors=a.total_neighbors
            )
            for a in self.agents
        ]

        return SimulationState(
            tick=self.current_tick,
            status=self.status.value,
            agents=agent_snapshots,
            grid_occupancy=self.grid.occupancy.copy(),
            metrics=dict(self.metrics),
            similarity_ratios=self.similarity_ratios(),
            moved=self._last_move
        )

    def get_summary(self) -> Dict:
        """Get summary statistics for the simulation."""
        return {
            'total_ticks': self.current_tick,
            'status': self.status.value,
            'converged': self.is_converged(),
            'number_of_agents': len(self.agents),
            'percent_discontent_agents': self.metrics.get('percent_discontent_agents'),
            'avg_percent_similar': self.metrics.get('avg_percent_similar'),
            'total_moves': sum(a.moves for a in self.agents)
        }

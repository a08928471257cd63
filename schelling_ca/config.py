"""Configuration dataclasses and YAML loader for the Schelling-Sakoda simulation."""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path
import yaml

from .errors import ConfigurationError
from .model.movement import MovementRule


@dataclass
class GridConfig:
    width: int = 16
    height: int = 13
    torus: bool = False  # reference model has no wraparound

    @property
    def cell_count(self) -> int:
        return self.width * self.height


@dataclass
class SimulationConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    number_of_agents: int = 150
    percent_similar_wanted: float = 50.0
    movement_rule: MovementRule = MovementRule.RANDOM_CELL
    seed: Optional[int] = None
    max_steps: Optional[int] = None  # None = run until convergence

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    snapshot_enabled: bool = True
    gif_enabled: bool = False
    quiet: bool = False
    out_dir: Path = field(default_factory=lambda: Path("./output"))

    def validate(self) -> None:
        """Raise ConfigurationError if the parameters cannot start a run."""
        if self.grid.width < 1 or self.grid.height < 1:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {self.grid.width}x{self.grid.height}")
        if self.grid.torus and (self.grid.width < 3 or self.grid.height < 3):
            raise ConfigurationError("A toroidal grid needs at least 3 cells per side")

        n = self.number_of_agents
        if isinstance(n, bool) or not isinstance(n, int):
            raise ConfigurationError(f"number_of_agents must be an integer, got {n!r}")
        if n <= 0:
            raise ConfigurationError(f"number_of_agents must be positive, got {n}")
        if n % 2 != 0:
            raise ConfigurationError(f"number_of_agents must be even, got {n}")
        if n >= self.grid.cell_count:
            raise ConfigurationError(
                f"number_of_agents ({n}) must be less than the number of cells "
                f"({self.grid.cell_count})")

        if not 0 <= self.percent_similar_wanted <= 100:
            raise ConfigurationError(
                f"percent_similar_wanted must be in [0, 100], got {self.percent_similar_wanted}")

        if not isinstance(self.movement_rule, MovementRule):
            raise ConfigurationError(f"Unknown movement rule: {self.movement_rule!r}")

        if self.seed is not None and self.seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {self.seed}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ConfigurationError(f"max_steps must be non-negative, got {self.max_steps}")


def parse_movement_rule(name: str) -> MovementRule:
    """Accept the hyphenated rule name (e.g. 'best-cell')."""
    try:
        return MovementRule(name)
    except ValueError:
        choices = ", ".join(r.value for r in MovementRule)
        raise ConfigurationError(
            f"Unknown movement rule: {name!r} (expected one of: {choices})") from None


def _parse_grid(grid_raw: Dict[str, Any]) -> GridConfig:
    """Parse grid section from raw YAML data."""
    defaults = GridConfig()
    return GridConfig(
        width=grid_raw.get('width', defaults.width),
        height=grid_raw.get('height', defaults.height),
        torus=grid_raw.get('torus', defaults.torus)
    )


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file."""
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path}: top level must be a mapping")

    # Parse simulation config
    sim_raw = raw.get('simulation', {})
    defaults = SimulationConfig()

    # Parse export config (optional)
    export_raw = raw.get('export', {})

    config = SimulationConfig(
        grid=_parse_grid(raw.get('grid', {})),
        number_of_agents=sim_raw.get('number_of_agents', defaults.number_of_agents),
        percent_similar_wanted=sim_raw.get('percent_similar_wanted',
                                           defaults.percent_similar_wanted),
        movement_rule=parse_movement_rule(
            sim_raw.get('movement_rule', defaults.movement_rule.value)),
        seed=sim_raw.get('seed'),
        max_steps=sim_raw.get('max_steps'),
        csv_enabled=export_raw.get('csv', True),
        snapshot_enabled=export_raw.get('snapshot', True),
        gif_enabled=export_raw.get('gif', False)
    )
    config.validate()
    return config

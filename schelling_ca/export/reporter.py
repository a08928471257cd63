"""Summary report generation for the Schelling-Sakoda simulation."""

from typing import Dict, Optional, TYPE_CHECKING
from pathlib import Path

if TYPE_CHECKING:
    from ..model.state import SimulationState


def _fmt_percent(value: Optional[float]) -> str:
    return f"{value:.1f}%" if value is not None else "N/A"


class Reporter:
    """Generates summary statistics and formatted text report."""

    def __init__(self, config_label: str, seed: Optional[int]):
        self.config_label = config_label
        self.seed = seed
        self.initial_metrics: Optional[Dict] = None
        self.peak_discontent = 0.0

    def update(self, state: "SimulationState") -> None:
        """Accumulate metrics per tick."""
        metrics = state.metrics.copy()
        if self.initial_metrics is None:
            self.initial_metrics = metrics

        current = metrics.get('percent_discontent_agents', 0.0)
        if current > self.peak_discontent:
            self.peak_discontent = current

    def generate_summary(self, final_state: "SimulationState",
                         rule: str,
                         threshold: float,
                         output_dir: Path,
                         csv_enabled: bool,
                         snapshot_enabled: bool,
                         gif_enabled: bool) -> str:
        """Returns formatted text report."""
        metrics = final_state.metrics
        initial = self.initial_metrics or metrics
        converged = final_state.status == "converged"

        lines = [
            "",
            "=" * 80,
            "                  SCHELLING-SAKODA SEGREGATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_label}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            f"Movement Rule: {rule}",
            f"% Similar Wanted: {threshold:g}",
            "",
            "SIMULATION METRICS",
            "-" * 40,
            f"Total Ticks:           {final_state.tick}",
            f"Agents:                {int(metrics.get('number_of_agents', 0))}",
            f"Converged:             {'yes' if converged else 'no'}",
            f"Discontent Agents:     {_fmt_percent(initial.get('percent_discontent_agents'))}"
            f" -> {_fmt_percent(metrics.get('percent_discontent_agents'))}",
            f"Avg % Similar:         {_fmt_percent(initial.get('avg_percent_similar'))}"
            f" -> {_fmt_percent(metrics.get('avg_percent_similar'))}",
            f"Peak Discontent:       {_fmt_percent(self.peak_discontent)}",
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]

        # Output file paths
        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / 'simulation_log.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        if snapshot_enabled:
            lines.append(f"Snapshot:   {output_dir / 'final_state.png'}")
        else:
            lines.append("Snapshot:   (disabled)")

        if gif_enabled:
            lines.append(f"Animation:  {output_dir / 'simulation.gif'}")
        else:
            lines.append("Animation:  (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)

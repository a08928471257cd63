"""Visualization and export for the Schelling-Sakoda simulation."""

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgb
from pathlib import Path
from typing import List, TYPE_CHECKING
from PIL import Image
import io

if TYPE_CHECKING:
    from ..model.state import SimulationState


class Visualizer:
    """
    Generates visual outputs using matplotlib.

    Each figure shows the grid next to a histogram of the per-agent
    share of similar neighbors.

    Supports:
    - Single PNG snapshots
    - Animated GIF compilation
    """

    # Color scheme
    COLORS = {
        'empty': '#ECF0F1',       # Light gray
        'A': '#3498DB',           # Blue
        'B': '#E67E22',           # Orange
        'discontent': '#2C3E50',  # Dark blue-gray
        'histogram': '#7F8C8D',
    }

    HISTOGRAM_BINS = 10

    def __init__(self, grid_width: int, grid_height: int):
        self.width = grid_width
        self.height = grid_height
        self.frames: List[Image.Image] = []

    def _create_figure(self, state: "SimulationState") -> plt.Figure:
        """Create matplotlib figure for state visualization."""
        aspect = self.width / self.height
        fig_height = 5
        grid_width = fig_height * aspect
        fig, (ax, hist_ax) = plt.subplots(
            1, 2, figsize=(grid_width + 5, fig_height),
            gridspec_kw={'width_ratios': [max(aspect, 0.5), 1]}
        )

        # Base layer: empty cells, then agent colors
        base = np.ones((self.height, self.width, 3))
        base[:, :] = to_rgb(self.COLORS['empty'])
        for agent in state.agents:
            base[agent.y, agent.x] = to_rgb(self.COLORS[agent.color])

        ax.imshow(base, origin='lower', aspect='equal',
                  extent=[-0.5, self.width - 0.5, -0.5, self.height - 0.5])

        # Mark discontent agents
        discontent = [a for a in state.agents if not a.content]
        if discontent:
            ax.plot([a.x for a in discontent], [a.y for a in discontent], 'x',
                    color=self.COLORS['discontent'], markersize=6, markeredgewidth=1.2)

        avg = state.avg_percent_similar
        avg_label = f'{avg:.1f}%' if avg is not None else 'N/A'
        ax.set_title(f'Tick {state.tick} | Discontent: '
                     f'{state.percent_discontent_agents:.1f}% | Similar: {avg_label}')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_xlim(-0.5, self.width - 0.5)
        ax.set_ylim(-0.5, self.height - 0.5)

        legend_elements = [
            plt.Line2D([0], [0], marker='s', color='w', label='Color A',
                       markerfacecolor=self.COLORS['A'], markersize=8),
            plt.Line2D([0], [0], marker='s', color='w', label='Color B',
                       markerfacecolor=self.COLORS['B'], markersize=8),
            plt.Line2D([0], [0], marker='x', color=self.COLORS['discontent'],
                       label='Discontent', linestyle='None', markersize=8),
        ]
        ax.legend(handles=legend_elements, loc='upper right', fontsize=8)

        # Distribution of similar/total ratios
        hist_ax.hist([100 * r for r in state.similarity_ratios],
                     bins=self.HISTOGRAM_BINS, range=(0, 100),
                     color=self.COLORS['histogram'], edgecolor='white')
        hist_ax.set_xlim(0, 100)
        hist_ax.set_title('Similar neighbors per agent')
        hist_ax.set_xlabel('% similar')
        hist_ax.set_ylabel('Agents')

        plt.tight_layout()
        return fig

    def buffer_frame(self, state: "SimulationState") -> None:
        """Store frame for GIF generation."""
        fig = self._create_figure(state)

        # Convert to PIL Image
        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=80)
        buf.seek(0)
        img = Image.open(buf).copy()
        self.frames.append(img)
        buf.close()
        plt.close(fig)

    def save_snapshot(self, state: "SimulationState", output_path: Path) -> None:
        """Save single PNG image of current state."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig = self._create_figure(state)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    def generate_gif(self, output_path: Path, fps: int = 10) -> None:
        """Compile buffered frames into animated GIF."""
        if not self.frames:
            return

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        duration = int(1000 / fps)  # milliseconds per frame

        self.frames[0].save(
            output_path,
            save_all=True,
            append_images=self.frames[1:],
            duration=duration,
            loop=0
        )

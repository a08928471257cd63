#!/usr/bin/env python3
"""
Schelling-Sakoda Segregation Simulation

Two-colored agents on a grid relocate, one discontent agent per tick,
until nobody is discontent.

Usage:
    schelling-ca [--config configs/default.yaml] [options]

Examples:
    schelling-ca --config configs/default.yaml
    schelling-ca --rule best-cell --similar-wanted 60 --seed 42
    schelling-ca --agents 200 --width 20 --height 15 --gif --out-dir results/
    schelling-ca --config configs/default.yaml --no-csv --no-snapshot --quiet
"""

import argparse
import contextlib
import signal
import sys
import threading
from pathlib import Path

from .config import SimulationConfig, load_config, parse_movement_rule
from .errors import ConfigurationError
from .model.engine import SimulationEngine
from .export.csv_writer import CSVWriter
from .export.visualizer import Visualizer
from .export.reporter import Reporter


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='schelling-ca',
        description='Schelling-Sakoda Segregation Simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    schelling-ca --config configs/default.yaml
    schelling-ca --rule best-cell --similar-wanted 60 --seed 42
    schelling-ca --agents 200 --width 20 --height 15 --gif --out-dir results/
    schelling-ca --config configs/default.yaml --no-csv --no-snapshot --quiet
        """
    )

    parser.add_argument('--config', type=Path, default=None,
                        help='Path to YAML configuration file (default: built-in defaults)')

    # Model parameter overrides
    parser.add_argument('--agents', type=int, default=None,
                        help='Number of agents (even, fewer than grid cells)')
    parser.add_argument('--similar-wanted', type=float, default=None,
                        help='Percentage of similar neighbors wanted (0-100)')
    parser.add_argument('--rule', type=str, default=None,
                        help='Movement rule: random-cell, random-content-cell, '
                             'closest-content-cell or best-cell')
    parser.add_argument('--width', type=int, default=None, help='Grid width')
    parser.add_argument('--height', type=int, default=None, help='Grid height')
    parser.add_argument('--torus', action='store_true', default=None,
                        help='Wrap the grid around its edges')

    # Run control
    parser.add_argument('--steps', type=int, default=None,
                        help='Stop after this many ticks even if not converged')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--snapshot', dest='snapshot', action='store_true', default=None,
                        help='Enable final snapshot (default)')
    parser.add_argument('--no-snapshot', dest='snapshot', action='store_false',
                        help='Disable final snapshot')

    parser.add_argument('--gif', action='store_true', default=False,
                        help='Enable GIF animation export')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Load the YAML file (if any) and apply CLI overrides."""
    config = load_config(args.config) if args.config is not None else SimulationConfig()

    if args.agents is not None:
        config.number_of_agents = args.agents
    if args.similar_wanted is not None:
        config.percent_similar_wanted = args.similar_wanted
    if args.rule is not None:
        config.movement_rule = parse_movement_rule(args.rule)
    if args.width is not None:
        config.grid.width = args.width
    if args.height is not None:
        config.grid.height = args.height
    if args.torus:
        config.grid.torus = True
    if args.steps is not None:
        config.max_steps = args.steps
    if args.csv is not None:
        config.csv_enabled = args.csv
    if args.snapshot is not None:
        config.snapshot_enabled = args.snapshot
    if args.gif:
        config.gif_enabled = True
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir

    config.validate()
    return config


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = build_config(args)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if not config.quiet:
        print("Initializing simulation...")
        print(f"  Grid: {config.grid.width}x{config.grid.height}"
              f"{' (torus)' if config.grid.torus else ''}")
        print(f"  Agents: {config.number_of_agents}")
        print(f"  % similar wanted: {config.percent_similar_wanted:g}")
        print(f"  Movement rule: {config.movement_rule.value}")
        print(f"  Max ticks: {config.max_steps if config.max_steps is not None else 'until converged'}")

    engine = SimulationEngine()
    state = engine.setup(config)

    visualizer = Visualizer(config.grid.width, config.grid.height)
    if config.gif_enabled:
        visualizer.buffer_frame(state)

    label = str(args.config) if args.config is not None else '(defaults)'
    reporter = Reporter(label, config.seed)
    reporter.update(state)

    def on_step(state):
        if csv_writer and state.moved is not None:
            csv_writer.append(state)

        # Buffer GIF frame (every N ticks to reduce memory)
        if config.gif_enabled and (state.tick % 5 == 0 or engine.is_converged()):
            visualizer.buffer_frame(state)

        reporter.update(state)

        if not config.quiet and state.moved is not None and state.tick % 100 == 0:
            print(f"  Tick {state.tick}: "
                  f"{state.percent_discontent_agents:.1f}% discontent")

    # Ctrl-C stops the run between ticks
    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())

    if not config.quiet:
        print("\nRunning simulation...")

    # CSV log stays open for the whole run and is closed even on errors
    with contextlib.ExitStack() as exports:
        csv_writer = None
        if config.csv_enabled:
            csv_writer = exports.enter_context(
                CSVWriter(config.out_dir / 'simulation_log.csv'))
            csv_writer.append(state)

        try:
            final_state = engine.run_until_converged(
                cancel=cancel, max_steps=config.max_steps, on_step=on_step)
        finally:
            signal.signal(signal.SIGINT, previous_handler)

    if cancel.is_set() and not config.quiet:
        print("\nSimulation interrupted by user.")

    # Final exports
    if config.csv_enabled and not config.quiet:
        print(f"\nCSV saved: {config.out_dir / 'simulation_log.csv'}")

    if config.snapshot_enabled:
        snapshot_path = config.out_dir / 'final_state.png'
        visualizer.save_snapshot(final_state, snapshot_path)
        if not config.quiet:
            print(f"Snapshot saved: {snapshot_path}")

    if config.gif_enabled:
        gif_path = config.out_dir / 'simulation.gif'
        if not config.quiet:
            print(f"Generating GIF ({len(visualizer.frames)} frames)...")
        visualizer.generate_gif(gif_path, fps=10)
        if not config.quiet:
            print(f"Animation saved: {gif_path}")

    # Print summary report
    if not config.quiet:
        report = reporter.generate_summary(
            final_state,
            config.movement_rule.value,
            config.percent_similar_wanted,
            config.out_dir,
            config.csv_enabled,
            config.snapshot_enabled,
            config.gif_enabled
        )
        print(report)

    return 0


if __name__ == '__main__':
    sys.exit(main())

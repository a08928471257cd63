"""Tests for neighborhood composition and the happiness rule."""

import numpy as np
import pytest

from schelling_ca.model.agent import Agent, Color
from schelling_ca.model.grid import GridMap
from schelling_ca.model.happiness import affected_agent_ids, evaluate, is_content
from schelling_ca.model.neighborhood import (
    is_good_for_color,
    neighbor_color_counts,
    neighbor_count_layers,
    proportion_similar_for_color,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _grid_with(width, height, cells, torus=False) -> GridMap:
    """cells: {(x, y): Color}; agent ids follow insertion order."""
    grid = GridMap(width, height, torus=torus)
    for agent_id, ((x, y), color) in enumerate(cells.items(), start=1):
        grid.place_agent(agent_id, color.value, x, y)
    return grid


def _random_grid(seed, width=7, height=5, torus=False) -> GridMap:
    rng = np.random.default_rng(seed)
    grid = GridMap(width, height, torus=torus)
    agent_id = 1
    for y in range(height):
        for x in range(width):
            roll = rng.random()
            if roll < 0.35:
                grid.place_agent(agent_id, Color.A.value, x, y)
                agent_id += 1
            elif roll < 0.7:
                grid.place_agent(agent_id, Color.B.value, x, y)
                agent_id += 1
    return grid


# ---------------------------------------------------------------------------
# Neighbor counts
# ---------------------------------------------------------------------------

def test_counts_by_color():
    grid = _grid_with(4, 4, {(0, 0): Color.A, (1, 0): Color.B, (2, 2): Color.A})
    counts = neighbor_color_counts(grid, 1, 1)
    assert counts.total == 3
    assert counts.of(Color.A) == 2
    assert counts.of(Color.B) == 1


def test_agent_excluded_from_own_count():
    grid = _grid_with(4, 4, {(0, 0): Color.A, (1, 0): Color.B})
    counts = neighbor_color_counts(grid, 0, 0)
    assert counts.total == 1
    assert counts.of(Color.A) == 0


def test_proportion_is_one_without_neighbors():
    grid = _grid_with(4, 4, {(3, 3): Color.B})
    assert proportion_similar_for_color(grid, 0, 0, Color.A) == 1.0
    assert proportion_similar_for_color(grid, 0, 0, Color.B) == 1.0
    # The lone agent itself has no neighbors either
    assert proportion_similar_for_color(grid, 3, 3, Color.A) == 1.0


def test_proportion_for_hypothetical_placement():
    grid = _grid_with(4, 4, {(0, 0): Color.A, (1, 0): Color.B, (2, 2): Color.A})
    assert proportion_similar_for_color(grid, 1, 1, Color.A) == pytest.approx(2 / 3)
    assert proportion_similar_for_color(grid, 1, 1, Color.B) == pytest.approx(1 / 3)


def test_good_for_color_threshold_boundary():
    grid = _grid_with(4, 4, {(0, 0): Color.A, (1, 0): Color.B, (2, 2): Color.A})
    # 2 of 3 neighbors are A: 66.7%
    assert is_good_for_color(grid, 1, 1, Color.A, 66)
    assert not is_good_for_color(grid, 1, 1, Color.A, 67)
    assert is_good_for_color(grid, 1, 1, Color.B, 33)
    assert not is_good_for_color(grid, 1, 1, Color.B, 34)


def test_isolated_cell_is_good_at_any_threshold():
    grid = _grid_with(5, 5, {(4, 4): Color.A, (4, 3): Color.B})
    for threshold in (0, 50, 100):
        assert is_good_for_color(grid, 0, 0, Color.A, threshold)
        assert is_good_for_color(grid, 0, 0, Color.B, threshold)


@pytest.mark.parametrize("torus", [False, True])
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_count_layers_match_cell_scan(seed, torus):
    grid = _random_grid(seed, torus=torus)
    layers = neighbor_count_layers(grid)
    for y in range(grid.height):
        for x in range(grid.width):
            counts = neighbor_color_counts(grid, x, y)
            assert layers[Color.A][y, x] == counts.of(Color.A)
            assert layers[Color.B][y, x] == counts.of(Color.B)


# ---------------------------------------------------------------------------
# Happiness rule
# ---------------------------------------------------------------------------

def test_is_content_rule():
    assert is_content(0, 0, 100)
    assert is_content(4, 2, 50)
    assert not is_content(4, 1, 50)
    assert is_content(3, 0, 0)
    assert not is_content(3, 2, 100)
    assert is_content(3, 3, 100)


@pytest.mark.parametrize("threshold", range(0, 101))
def test_agent_without_neighbors_always_content(threshold):
    grid = _grid_with(4, 4, {(2, 1): Color.A})
    agent = Agent(1, Color.A, (2, 1))
    assert evaluate(agent, grid, threshold) == (True, 0, 0)


def test_evaluate_counts_similar_neighbors():
    cells = {(1, 1): Color.A, (0, 0): Color.A, (2, 2): Color.B, (1, 0): Color.B}
    grid = _grid_with(3, 3, cells)
    agent = Agent(1, Color.A, (1, 1))
    assert evaluate(agent, grid, 30) == (True, 3, 1)
    assert evaluate(agent, grid, 34) == (False, 3, 1)


def test_affected_agents_cover_old_and_new_neighbors():
    # Mover (id 1) already placed at its destination (4, 4)
    cells = {
        (4, 4): Color.A,   # 1: mover
        (1, 0): Color.B,   # 2: neighbor of source (0, 0)
        (0, 1): Color.A,   # 3: neighbor of source
        (3, 3): Color.B,   # 4: neighbor of destination
        (2, 4): Color.A,   # 5: unaffected
    }
    grid = _grid_with(5, 5, cells)
    assert affected_agent_ids(grid, 1, (0, 0), (4, 4)) == {1, 2, 3, 4}

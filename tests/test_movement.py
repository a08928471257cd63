"""Tests for the four movement policies."""

import numpy as np
import pytest

from schelling_ca.model.agent import Color
from schelling_ca.model.grid import GridMap
from schelling_ca.model.movement import (
    MovementRule,
    best_cell,
    choose_destination,
    closest_content_cell,
)

A, B = Color.A, Color.B


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _grid_from_rows(rows) -> GridMap:
    """rows[y][x] is A, B or None (empty); row 0 is y = 0."""
    height, width = len(rows), len(rows[0])
    grid = GridMap(width, height)
    agent_id = 1
    for y, row in enumerate(rows):
        for x, color in enumerate(row):
            if color is not None:
                grid.place_agent(agent_id, color.value, x, y)
                agent_id += 1
    return grid


def _candidates(grid, origin):
    return [cell for cell in grid.empty_cells() if cell != origin]


def _far_good_cell_grid() -> GridMap:
    """
    Mover's source (0, 0) is already vacated. The only empty cell that
    suits an A agent at 100% is (3, 0), three steps away; (1, 0) and
    (0, 1) are nearer but have B neighbors.
    """
    return _grid_from_rows([
        [None, None, A, None],
        [None, B, A, A],
        [B, B, B, B],
        [B, B, B, B],
    ])


def _no_good_cell_grid() -> GridMap:
    """Both empty cells have mixed neighbors; nothing is good for A at 100%."""
    return _grid_from_rows([
        [None, A, B],
        [B, A, B],
        [A, A, None],
    ])


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("seed", range(10))
def test_closest_content_cell_skips_nearer_bad_cells(seed):
    grid = _far_good_cell_grid()
    origin = (0, 0)
    candidates = _candidates(grid, origin)
    assert candidates == [(1, 0), (3, 0), (0, 1)]

    rng = np.random.default_rng(seed)
    dest = choose_destination(MovementRule.CLOSEST_CONTENT_CELL, A, origin,
                              grid, 100, rng, candidates)
    assert dest == (3, 0)
    assert grid.distance(origin, dest) == 3


@pytest.mark.parametrize("seed", range(10))
def test_random_content_cell_only_picks_good_cells(seed):
    grid = _far_good_cell_grid()
    rng = np.random.default_rng(seed)
    dest = choose_destination(MovementRule.RANDOM_CONTENT_CELL, A, (0, 0),
                              grid, 100, rng, _candidates(grid, (0, 0)))
    assert dest == (3, 0)


def test_best_cell_maximizes_similarity():
    grid = _far_good_cell_grid()
    rng = np.random.default_rng(0)
    # Even with a zero threshold best-cell still takes the all-A cell
    dest = best_cell(A, (0, 0), grid, 0, rng, _candidates(grid, (0, 0)))
    assert dest == (3, 0)


def test_best_cell_for_other_color():
    grid = _far_good_cell_grid()
    rng = np.random.default_rng(0)
    # (0, 1) is surrounded by B only
    dest = best_cell(B, (0, 0), grid, 50, rng, _candidates(grid, (0, 0)))
    assert dest == (0, 1)


@pytest.mark.parametrize("rule", [MovementRule.RANDOM_CONTENT_CELL,
                                  MovementRule.CLOSEST_CONTENT_CELL])
def test_content_rules_fall_back_to_any_empty_cell(rule):
    grid = _no_good_cell_grid()
    candidates = grid.empty_cells()
    picks = set()
    for seed in range(50):
        rng = np.random.default_rng(seed)
        picks.add(choose_destination(rule, A, (1, 1), grid, 100, rng, candidates))
    assert picks == {(0, 0), (2, 2)}


def test_random_cell_covers_all_candidates():
    grid = _no_good_cell_grid()
    candidates = grid.empty_cells()
    picks = {
        choose_destination(MovementRule.RANDOM_CELL, B, (1, 1), grid, 0,
                           np.random.default_rng(seed), candidates)
        for seed in range(50)
    }
    assert picks == set(candidates)


def test_best_cell_breaks_ties_randomly():
    # Every cell of an empty grid scores 1.0
    grid = GridMap(4, 4)
    candidates = grid.empty_cells()
    picks = {
        best_cell(A, (0, 0), grid, 50, np.random.default_rng(seed), candidates)
        for seed in range(40)
    }
    assert len(picks) > 1
    assert picks <= set(candidates)


def test_closest_content_cell_breaks_distance_ties_randomly():
    # Four good cells at distance 1 around the origin
    grid = GridMap(5, 5)
    origin = (2, 2)
    picks = {
        closest_content_cell(A, origin, grid, 50, np.random.default_rng(seed),
                             _candidates(grid, origin))
        for seed in range(40)
    }
    assert picks == {(1, 2), (3, 2), (2, 1), (2, 3)}


@pytest.mark.parametrize("rule", list(MovementRule))
def test_single_candidate_is_always_chosen(rule):
    grid = _grid_from_rows([
        [A, B, A],
        [B, None, B],
        [A, B, None],
    ])
    # Mover came from (1, 1); (2, 2) is the only place left
    for seed in range(5):
        dest = choose_destination(rule, A, (1, 1), grid, 100,
                                  np.random.default_rng(seed), [(2, 2)])
        assert dest == (2, 2)


@pytest.mark.parametrize("rule", list(MovementRule))
def test_same_seed_same_destination(rule):
    grid = GridMap(6, 6)
    grid.place_agent(1, A.value, 2, 2)
    grid.place_agent(2, B.value, 3, 3)
    candidates = _candidates(grid, (0, 0))
    first = choose_destination(rule, A, (0, 0), grid, 50,
                               np.random.default_rng(11), candidates)
    second = choose_destination(rule, A, (0, 0), grid, 50,
                                np.random.default_rng(11), candidates)
    assert first == second


def test_no_candidates_rejected():
    grid = GridMap(2, 2)
    with pytest.raises(ValueError):
        choose_destination(MovementRule.RANDOM_CELL, A, (0, 0), grid, 50,
                           np.random.default_rng(0), [])


def test_rule_names():
    assert MovementRule("random-cell") is MovementRule.RANDOM_CELL
    assert MovementRule("best-cell") is MovementRule.BEST_CELL
    assert [r.value for r in MovementRule] == [
        "random-cell", "random-content-cell", "closest-content-cell", "best-cell"]

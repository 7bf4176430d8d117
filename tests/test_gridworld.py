"""
tests/test_gridworld.py

Unit tests for the grid definition and the transition function.

These tests verify:
- The default 8x7 layout and its special cells
- Grid validation (dimensions, layout shape, start cell)
- Collision handling for walls and grid edges (stay put, -5)
- Living penalty, goal and pit rewards and termination
- Utility methods (neighbors(), is_terminal(), render())
"""

import os
import sys
import pytest

# ---------------------------------------------------------------------
# Import setup (ensures src/ is visible when running pytest from project root)
# ---------------------------------------------------------------------

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from rl_gridlab import (
    DEFAULT_GRID,
    CellType,
    GridConfig,
    GridEnvironment,
    InvalidGridError,
    Position,
    RewardConfig,
)

UP, DOWN, LEFT, RIGHT = 0, 1, 2, 3


@pytest.fixture
def env():
    return GridEnvironment(DEFAULT_GRID)


# =====================================================================
# Grid definition
# =====================================================================

def test_default_grid_layout():
    """
    The default grid is 8 wide, 7 high, starts at (1,1) and has
    three pits and one goal.
    """
    assert DEFAULT_GRID.width == 8
    assert DEFAULT_GRID.height == 7
    assert DEFAULT_GRID.start == Position(1, 1)
    assert DEFAULT_GRID.cell((1, 1)) is CellType.START
    assert set(DEFAULT_GRID.cells_of(CellType.PIT)) == {(6, 1), (5, 3), (2, 4)}
    assert DEFAULT_GRID.cells_of(CellType.GOAL) == (Position(6, 5),)


def test_layout_is_row_major():
    """
    cell((x, y)) must read layout[y][x].
    """
    grid = GridConfig.from_rows([[2, 1, 0], [0, 4, 3]])
    assert grid.cell((1, 0)) is CellType.WALL
    assert grid.cell((1, 1)) is CellType.PIT
    assert grid.cell((2, 1)) is CellType.GOAL
    assert grid.as_array().shape == (2, 3)


def test_from_rows_finds_start_cell():
    grid = GridConfig.from_rows([[0, 0], [0, 2]])
    assert grid.start == Position(1, 1)


@pytest.mark.parametrize("rows, start", [
    ([], (0, 0)),                       # zero height
    ([[]], (0, 0)),                     # zero width
    ([[0, 1], [0]], (0, 0)),            # ragged layout
    ([[0, 7]], (0, 0)),                 # unknown cell code
    ([[0, 1]], (1, 0)),                 # start on a wall
    ([[0, 0]], (2, 0)),                 # start out of bounds
    ([[0, 0]], (-1, 0)),                # negative start
])
def test_invalid_grids_are_rejected(rows, start):
    with pytest.raises(InvalidGridError):
        GridConfig.from_rows(rows, start=start)


def test_from_rows_without_start_requires_single_start_cell():
    with pytest.raises(InvalidGridError):
        GridConfig.from_rows([[0, 0, 3]])
    with pytest.raises(InvalidGridError):
        GridConfig.from_rows([[2, 2, 3]])


def test_grid_without_goal_or_pit_is_allowed(open_grid):
    env = GridEnvironment(open_grid)
    assert open_grid.cells_of(CellType.GOAL) == ()
    assert not any(env.is_terminal((x, y)) for x in range(3) for y in range(3))


def test_grid_is_immutable():
    with pytest.raises(AttributeError):
        DEFAULT_GRID.width = 10


# =====================================================================
# Transitions
# =====================================================================

def test_wall_collision_stays_put(env):
    """
    From the start (1,1), UP and LEFT both hit the outer wall.
    """
    for action in (UP, LEFT):
        next_pos, reward, terminal = env.transition((1, 1), action)
        assert next_pos == (1, 1)
        assert reward == -5
        assert terminal is False


def test_edge_collision_stays_put(open_grid):
    """
    Leaving the grid is treated like hitting a wall.
    """
    env = GridEnvironment(open_grid)
    for action in (UP, LEFT):
        assert env.transition((0, 0), action) == ((0, 0), -5, False)
    for action in (DOWN, RIGHT):
        assert env.transition((2, 2), action) == ((2, 2), -5, False)


def test_every_blocked_move_is_a_collision(env):
    """
    For every open cell and every action whose target is blocked,
    the agent stays in place with exactly -5 and the episode continues.
    """
    checked = 0
    for y in range(DEFAULT_GRID.height):
        for x in range(DEFAULT_GRID.width):
            if DEFAULT_GRID.cell((x, y)) is CellType.WALL:
                continue
            for action, (dx, dy) in enumerate([(0, -1), (0, 1), (-1, 0), (1, 0)]):
                if env.is_blocked((x + dx, y + dy)):
                    assert env.transition((x, y), action) == ((x, y), -5, False)
                    checked += 1
    assert checked > 0


def test_every_plain_move_costs_one(env):
    """
    Moves onto EMPTY or START cells cost exactly -1 and never terminate.
    """
    for y in range(DEFAULT_GRID.height):
        for x in range(DEFAULT_GRID.width):
            if DEFAULT_GRID.cell((x, y)) is CellType.WALL:
                continue
            for action in range(4):
                next_pos, reward, terminal = env.transition((x, y), action)
                if next_pos != (x, y) and DEFAULT_GRID.cell(next_pos) in (CellType.EMPTY, CellType.START):
                    assert reward == -1
                    assert terminal is False


def test_simple_move_right(env):
    assert env.transition((1, 1), RIGHT) == (Position(2, 1), -1, False)


def test_moving_onto_start_cell_is_a_plain_step(env):
    assert env.transition((2, 1), LEFT) == ((1, 1), -1, False)


@pytest.mark.parametrize("pos, action", [((6, 4), DOWN), ((5, 5), RIGHT)])
def test_reaching_goal_from_any_side(env, pos, action):
    next_pos, reward, terminal = env.transition(pos, action)
    assert next_pos == (6, 5)
    assert reward == 100
    assert terminal is True


@pytest.mark.parametrize("pos, action, pit", [
    ((5, 1), RIGHT, (6, 1)),
    ((4, 3), RIGHT, (5, 3)),
    ((1, 4), RIGHT, (2, 4)),
    ((2, 5), UP, (2, 4)),
])
def test_entering_pit_terminates(env, pos, action, pit):
    next_pos, reward, terminal = env.transition(pos, action)
    assert next_pos == pit
    assert reward == -100
    assert terminal is True


def test_custom_rewards_are_used():
    rewards = RewardConfig(goal_reward=1.0, pit_penalty=-1.0, collision_penalty=-0.5, step_penalty=-0.01)
    env = GridEnvironment(DEFAULT_GRID, rewards)
    assert env.transition((1, 1), UP).reward == -0.5
    assert env.transition((1, 1), RIGHT).reward == -0.01
    assert env.transition((5, 1), RIGHT).reward == -1.0
    assert env.transition((5, 5), RIGHT).reward == 1.0


def test_transition_is_pure(env):
    """
    The same inputs always give the same result; the grid is untouched.
    """
    before = DEFAULT_GRID.layout
    first = [env.transition((3, 3), a) for a in range(4)]
    again = [env.transition((3, 3), a) for a in range(4)]
    assert first == again
    assert DEFAULT_GRID.layout == before


def test_invalid_action_raises(env):
    with pytest.raises(AssertionError):
        env.transition((1, 1), 4)


# =====================================================================
# Convenience utilities
# =====================================================================

def test_neighbors_respects_walls_and_bounds(env):
    assert set(env.neighbors((1, 1))) == {(2, 1), (1, 2)}


def test_is_terminal(env):
    assert env.is_terminal((6, 5))
    assert env.is_terminal((6, 1))
    assert not env.is_terminal((1, 1))
    assert not env.is_terminal((0, 0))      # wall
    assert not env.is_terminal((-1, 3))     # outside


def test_render_returns_axes(env):
    ax = env.render(agent=(1, 1), trace=[(1, 1), (2, 1), (3, 1)])
    assert ax.get_title() == "GridWorld"
    assert len(ax.lines) == 1

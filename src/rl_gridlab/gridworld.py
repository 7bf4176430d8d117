"""
GridWorld: the deterministic 2D environment the agent learns to navigate.

- Static layout (walls, pits, start, goal) fixed for the lifetime of a run
- Pure transition function: (position, action) -> (next position, reward, terminal)
- Coordinates are (x, y) with (0, 0) at the top-left cell; the layout is
  stored row-major, so the cell at (x, y) is ``layout[y][x]``.

This file exposes:
    - CellType, Position: value types
    - GridConfig: validated, immutable grid definition
    - RewardConfig: reward constants
    - GridEnvironment: the transition/reward function (+ matplotlib rendering)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap, BoundaryNorm


class InvalidGridError(ValueError):
    """Raised when a grid definition cannot be used for training."""


class CellType(IntEnum):
    EMPTY = 0
    WALL = 1
    START = 2
    GOAL = 3
    PIT = 4


class Position(NamedTuple):
    """Immutable (x, y) cell coordinate."""
    x: int
    y: int


class Action(NamedTuple):
    dx: int
    dy: int
    name: str


# Fixed action order shared by the Q-table vectors: 0=Up, 1=Down, 2=Left, 3=Right
ACTIONS: Tuple[Action, ...] = (
    Action(0, -1, "UP"),
    Action(0, 1, "DOWN"),
    Action(-1, 0, "LEFT"),
    Action(1, 0, "RIGHT"),
)
NUM_ACTIONS: int = len(ACTIONS)


@dataclass(frozen=True)
class RewardConfig:
    """
    RewardConfig
    ------------
    Reward constants used by `GridEnvironment.transition`.

    Parameters
    ----------
    goal_reward : float
        Reward for stepping onto a GOAL cell (episode ends).
    pit_penalty : float
        Reward for stepping onto a PIT cell (episode ends).
    collision_penalty : float
        Reward for bumping into a wall or the grid edge (agent stays put).
    step_penalty : float
        Living penalty for every other move.
    """
    goal_reward: float = 100.0
    pit_penalty: float = -100.0
    collision_penalty: float = -5.0
    step_penalty: float = -1.0


@dataclass(frozen=True)
class GridConfig:
    """
    GridConfig
    ----------
    Immutable grid definition. Validated on construction.

    Parameters
    ----------
    width : int
        Number of columns.
    height : int
        Number of rows.
    layout : tuple[tuple[CellType, ...], ...]
        Row-major matrix of size height x width.
    start : Position
        Cell the agent starts every episode from.

    Raises
    ------
    InvalidGridError
        If the dimensions are not positive, the layout does not match them,
        or the start cell is out of bounds or a wall.
    """
    width: int
    height: int
    layout: Tuple[Tuple[CellType, ...], ...]
    start: Position

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidGridError(
                f"Grid must have positive dimensions, got {self.width}x{self.height}"
            )
        if len(self.layout) != self.height or any(len(row) != self.width for row in self.layout):
            raise InvalidGridError(
                f"Layout shape does not match {self.width}x{self.height}"
            )
        # Normalise plain ints to CellType so callers can pass raw codes
        try:
            layout = tuple(tuple(CellType(c) for c in row) for row in self.layout)
        except ValueError as exc:
            raise InvalidGridError(f"Unknown cell code in layout: {exc}") from exc
        object.__setattr__(self, "layout", layout)
        object.__setattr__(self, "start", Position(*self.start))

        if not self.in_bounds(self.start):
            raise InvalidGridError(f"Start {tuple(self.start)} is out of bounds")
        if self.cell(self.start) is CellType.WALL:
            raise InvalidGridError(f"Start {tuple(self.start)} is a wall")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]],
                  start: Optional[Tuple[int, int]] = None) -> "GridConfig":
        """
        Build a grid from a list of rows of integer cell codes.

        If `start` is omitted, the single START cell of the layout is used.
        """
        height = len(rows)
        width = len(rows[0]) if height else 0
        if start is None:
            starts = [(x, y) for y, row in enumerate(rows)
                      for x, c in enumerate(row) if c == CellType.START]
            if len(starts) != 1:
                raise InvalidGridError(
                    f"Expected exactly one START cell when no start is given, found {len(starts)}"
                )
            start = starts[0]
        return cls(width=width, height=height,
                   layout=tuple(tuple(row) for row in rows),
                   start=Position(*start))

    def in_bounds(self, pos: Tuple[int, int]) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, pos: Tuple[int, int]) -> CellType:
        x, y = pos
        return self.layout[y][x]

    def cells_of(self, kind: CellType) -> Tuple[Position, ...]:
        """All positions holding `kind`, in row-major order."""
        return tuple(Position(x, y) for y, row in enumerate(self.layout)
                     for x, c in enumerate(row) if c is kind)

    def as_array(self) -> np.ndarray:
        """Layout as an integer array of shape (height, width)."""
        return np.array(self.layout, dtype=int)


# 0: Empty, 1: Wall, 2: Start, 3: Goal, 4: Pit
_DEFAULT_LAYOUT = (
    (1, 1, 1, 1, 1, 1, 1, 1),
    (1, 2, 0, 0, 0, 0, 4, 1),
    (1, 0, 1, 1, 0, 1, 0, 1),
    (1, 0, 0, 0, 0, 4, 0, 1),
    (1, 0, 4, 1, 1, 1, 0, 1),
    (1, 0, 0, 0, 0, 0, 3, 1),
    (1, 1, 1, 1, 1, 1, 1, 1),
)

DEFAULT_GRID: GridConfig = GridConfig.from_rows(_DEFAULT_LAYOUT, start=(1, 1))


class Transition(NamedTuple):
    next_pos: Position
    reward: float
    terminal: bool


class GridEnvironment:
    """
    Deterministic grid world with walls, pits and goals.

    Unlike a Gym environment this class holds no agent state: the agent
    position is owned by the trainer, and `transition` is a pure function of
    the grid and its inputs.

    Notes
    -----
    - Moving out of bounds or into a wall leaves the agent in place with
      `collision_penalty`; the episode continues.
    - GOAL and PIT cells are terminal. Grids with zero or several of them are
      accepted.
    """

    def __init__(self, grid: GridConfig = DEFAULT_GRID,
                 rewards: RewardConfig = RewardConfig()) -> None:
        self.grid: GridConfig = grid
        self.rewards: RewardConfig = rewards
        self.num_actions: int = NUM_ACTIONS

    @property
    def start(self) -> Position:
        return self.grid.start

    def is_blocked(self, pos: Tuple[int, int]) -> bool:
        """True iff `pos` is outside the grid or a wall."""
        return (not self.grid.in_bounds(pos)) or self.grid.cell(pos) is CellType.WALL

    def is_terminal(self, pos: Tuple[int, int]) -> bool:
        return (not self.is_blocked(pos)) and self.grid.cell(pos) in (CellType.GOAL, CellType.PIT)

    def transition(self, pos: Tuple[int, int], action: int) -> Transition:
        """
        Apply one action.

        Parameters
        ----------
        pos : tuple[int, int]
            Current agent position (x, y).
        action : int
            Action index in the fixed order 0=Up, 1=Down, 2=Left, 3=Right.

        Returns
        -------
        Transition
            ``(next_pos, reward, terminal)``.
        """
        assert 0 <= action < NUM_ACTIONS, f"Invalid action: {action}"

        current = Position(*pos)
        move = ACTIONS[action]
        candidate = Position(current.x + move.dx, current.y + move.dy)

        if self.is_blocked(candidate):
            return Transition(current, self.rewards.collision_penalty, False)

        kind = self.grid.cell(candidate)
        if kind is CellType.GOAL:
            return Transition(candidate, self.rewards.goal_reward, True)
        if kind is CellType.PIT:
            return Transition(candidate, self.rewards.pit_penalty, True)
        return Transition(candidate, self.rewards.step_penalty, False)

    def neighbors(self, pos: Tuple[int, int]) -> Tuple[Position, ...]:
        """Cells reachable from `pos` with one primitive move."""
        nbs = []
        for move in ACTIONS:
            q = Position(pos[0] + move.dx, pos[1] + move.dy)
            if not self.is_blocked(q):
                nbs.append(q)
        return tuple(nbs)

    # ---------------------------------------------------------------------
    # Rendering (matplotlib)
    # ---------------------------------------------------------------------

    def render(self, agent: Optional[Tuple[int, int]] = None,
               trace: Optional[Iterable[Tuple[int, int]]] = None,
               ax=None, title: str = "GridWorld"):
        """
        Draw the layout, the optional recent trace and the agent.

        Parameters
        ----------
        agent : tuple[int, int] or None
            Agent position to mark.
        trace : Iterable[tuple[int, int]] or None
            Recently visited cells, drawn as a line through cell centers.
        ax : matplotlib Axes or None
            Axes to draw into; a new figure is created when omitted.

        Returns
        -------
        matplotlib Axes
        """
        colors = [
            '#1f2937',  # 0 empty
            '#6b7280',  # 1 wall
            '#1e3a8a',  # 2 start
            '#ca8a04',  # 3 goal
            '#991b1b',  # 4 pit
        ]
        cmap = ListedColormap(colors)
        norm = BoundaryNorm([0, 1, 2, 3, 4, 5], cmap.N)

        if ax is None:
            _, ax = plt.subplots(figsize=(self.grid.width, self.grid.height))

        ax.imshow(self.grid.as_array(), cmap=cmap, norm=norm, origin='upper',
                  extent=[0, self.grid.width, self.grid.height, 0], interpolation="none")
        ax.set_xticks(np.arange(0, self.grid.width + 1, 1))
        ax.set_yticks(np.arange(0, self.grid.height + 1, 1))
        ax.grid(True, color='k', linewidth=0.4, alpha=0.3)
        ax.tick_params(labelbottom=False, labelleft=False, length=0)
        ax.set_aspect('equal')

        if trace is not None:
            trace = list(trace)
            if len(trace) > 1:
                xs, ys = zip(*trace)
                ax.plot(np.asarray(xs, dtype=float) + 0.5, np.asarray(ys, dtype=float) + 0.5,
                        linewidth=2.5, alpha=0.6, color='#3b82f6', label='Trace', zorder=4)

        if agent is not None:
            ax.scatter(agent[0] + 0.5, agent[1] + 0.5, s=220, marker='o',
                       facecolors='#22d3ee', edgecolors='black', label='Agent', zorder=6)

        ax.set_title(title)
        return ax

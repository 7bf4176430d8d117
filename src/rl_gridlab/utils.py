"""
utils.py - Small, reusable helpers for tabular RL and its observers.

Includes:
- Seeding and RNG utilities
- Argmax with uniform tie-breaking
- Moving average for reward histories
- Q-table -> value grid conversion
- matplotlib plots for learning curves and value/policy maps
"""

from __future__ import annotations
from typing import Iterable, Optional

import numpy as np
import matplotlib.pyplot as plt

from .gridworld import ACTIONS, CellType, GridConfig


# -----------------------------
# Reproducibility / RNG
# -----------------------------

def set_seed(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create a NumPy Generator seeded with `seed`.

    Parameters
    ----------
    seed : int or None
        If None, uses unpredictable entropy; else deterministic.

    Returns
    -------
    np.random.Generator
    """
    return np.random.default_rng(seed)


# -----------------------------
# Action selection
# -----------------------------

def argmax_random_tie_break(x: np.ndarray, rng: np.random.Generator) -> int:
    """
    Argmax with uniform tie-breaking.

    Parameters
    ----------
    x : np.ndarray shape (A,)
    rng : np.random.Generator

    Returns
    -------
    int
        Index of the chosen maximum
    """
    maxv = np.max(x)
    ties = np.flatnonzero(x == maxv)
    return int(rng.choice(ties))


# -----------------------------
# Smoothing
# -----------------------------

def rolling(x, k: int = 10) -> np.ndarray:
    """
    Moving average that keeps the length equal to len(x).

    Uses 'valid' convolution and pads the front with the first smoothed value.
    """
    x = np.asarray(x, dtype=float)
    if len(x) == 0:
        return np.array([])
    k = max(1, min(k, len(x)))
    y = np.convolve(x, np.ones(k) / k, mode="valid")
    pad = np.full(k - 1, y[0])
    return np.concatenate([pad, y])


# -----------------------------
# Q-table views
# -----------------------------

def value_grid(grid: GridConfig, q_values: dict) -> np.ndarray:
    """
    Map V(s) = max_a Q(s,a) onto a (height x width) array.

    Cells with no Q entry (never visited, walls) are NaN.
    """
    V = np.full((grid.height, grid.width), np.nan)
    for pos, values in q_values.items():
        x, y = pos
        V[y, x] = float(np.max(values))
    return V


def plot_learning_curve(stats: Iterable, window: int = 10,
                        ax=None, title: str = "Reward History"):
    """
    Plot raw and smoothed episode rewards from a sequence of EpisodeStat.
    """
    stats = list(stats)
    episodes = np.array([s.episode for s in stats], dtype=int)
    r = np.array([s.total_reward for s in stats], dtype=float)

    if ax is None:
        _, ax = plt.subplots(figsize=(7.5, 4))
    ax.plot(episodes, r, alpha=0.35, label="Reward (raw)")
    if len(r):
        ax.plot(episodes, rolling(r, window), linewidth=2.0, label=f"Reward (MA{window})")
    ax.set_xlabel("Episode")
    ax.set_ylabel("Total reward")
    ax.set_title(title)
    ax.legend()
    return ax


def plot_value_and_policy(grid: GridConfig, q_values: dict, ax=None,
                          title: str = "Value & Greedy Policy"):
    """
    Visualize max-Q as a heatmap plus greedy policy arrows.

    Walls and terminal cells get no arrow. Arrows use the first maximal
    action, which is only a display choice.
    """
    Vg = value_grid(grid, q_values)

    if ax is None:
        _, ax = plt.subplots(figsize=(6.6, 6.6))
    im = ax.imshow(Vg, origin='upper')
    ax.figure.colorbar(im, ax=ax, label="V(s) = maxₐ Q(s,a)")
    ax.set_title(title)
    ax.set_xticks(range(grid.width))
    ax.set_yticks(range(grid.height))

    X, Y, U, V = [], [], [], []
    for pos, values in q_values.items():
        if grid.cell(pos) in (CellType.WALL, CellType.GOAL, CellType.PIT):
            continue
        move = ACTIONS[int(np.argmax(values))]
        X.append(pos[0])
        Y.append(pos[1])
        U.append(move.dx)
        V.append(move.dy)

    if X:
        ax.quiver(X, Y, U, V, scale=1, angles='xy', scale_units='xy', width=0.004)
    return ax


def format_q_values(values) -> str:
    """Compact 'U/D/L/R' rendering of one Q vector."""
    return " ".join(f"{a.name[0]}={v:.1f}" for a, v in zip(ACTIONS, values))

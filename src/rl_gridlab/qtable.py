"""
qtable.py - Sparse, lazily initialised tabular Q-function.

States are grid positions packed into a single integer key; every entry is a
length-4 float vector in the fixed action order (Up, Down, Left, Right).
"""

from __future__ import annotations
from typing import Dict, Iterator, Tuple

import numpy as np

from .gridworld import NUM_ACTIONS, Position

# Coordinates are packed as x * KEY_STRIDE + y; grids are far smaller than this.
KEY_STRIDE: int = 1 << 16


def state_key(pos: Tuple[int, int]) -> int:
    """Pack an (x, y) position into an integer key."""
    x, y = pos
    return x * KEY_STRIDE + y


def key_to_position(key: int) -> Position:
    return Position(key // KEY_STRIDE, key % KEY_STRIDE)


class QTable:
    """
    Mapping from state to a vector of `NUM_ACTIONS` action values.

    Entries are created on first access, filled with `init_value` (0.0 by
    default). `get_values` returns the stored array itself, so repeat calls for
    the same state see each other's writes.
    """

    def __init__(self, init_value: float = 0.0) -> None:
        self.init_value: float = init_value
        self._table: Dict[int, np.ndarray] = {}

    def get_values(self, pos: Tuple[int, int]) -> np.ndarray:
        """
        Action values at `pos`, inserting a fresh vector if absent.

        Returns
        -------
        np.ndarray of shape (NUM_ACTIONS,)
            The live storage for this state (not a copy).
        """
        key = state_key(pos)
        values = self._table.get(key)
        if values is None:
            values = np.full(NUM_ACTIONS, self.init_value, dtype=float)
            self._table[key] = values
        return values

    def update(self, pos: Tuple[int, int], action: int, value: float) -> None:
        """Overwrite the value of one action at `pos`."""
        self.get_values(pos)[action] = value

    def peek(self, pos: Tuple[int, int]) -> np.ndarray:
        """Copy of the values at `pos` without inserting an entry."""
        values = self._table.get(state_key(pos))
        if values is None:
            return np.full(NUM_ACTIONS, self.init_value, dtype=float)
        return values.copy()

    def max_value(self, pos: Tuple[int, int]) -> float:
        return float(np.max(self.get_values(pos)))

    def clear(self) -> None:
        self._table.clear()

    def snapshot(self) -> Dict[Position, np.ndarray]:
        """Copy of the whole table keyed by Position, safe to hand to observers."""
        return {key_to_position(k): v.copy() for k, v in self._table.items()}

    def __contains__(self, pos) -> bool:
        return state_key(pos) in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[Position]:
        return (key_to_position(k) for k in list(self._table))

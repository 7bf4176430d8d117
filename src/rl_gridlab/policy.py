"""
policy.py - Epsilon-greedy action selection over a QTable.
"""

from __future__ import annotations
from typing import Optional, Tuple

import numpy as np

from .gridworld import NUM_ACTIONS
from .qtable import QTable
from .utils import argmax_random_tie_break, set_seed


class EpsilonGreedyPolicy:
    """
    Explore with probability epsilon, otherwise exploit with uniform
    tie-breaking among the maximal actions.

    Breaking ties at random matters here: every unvisited state starts at all
    zeros, and always taking the first maximum would push the agent UP.

    Parameters
    ----------
    qtable : QTable
        Action values to read from (never written by the policy).
    rng : np.random.Generator or None
        Source of randomness; a fresh unseeded generator when omitted.
    """

    def __init__(self, qtable: QTable, rng: Optional[np.random.Generator] = None) -> None:
        self.qtable = qtable
        self.rng = rng if rng is not None else set_seed(None)

    def choose_action(self, pos: Tuple[int, int], epsilon: float) -> int:
        if self.rng.random() < epsilon:
            return int(self.rng.integers(NUM_ACTIONS))
        return self.greedy_action(pos)

    def greedy_action(self, pos: Tuple[int, int]) -> int:
        return argmax_random_tie_break(self.qtable.get_values(pos), self.rng)

"""
Shared fixtures: tiny deterministic grids and a scripted policy.
"""

import matplotlib

# Headless plotting for the rendering tests
matplotlib.use("Agg")

import pytest

from rl_gridlab.gridworld import GridConfig


class ScriptedPolicy:
    """Returns a fixed sequence of actions, cycling; records the epsilons it saw."""

    def __init__(self, actions):
        self.actions = list(actions)
        self.calls = 0
        self.epsilons = []

    def choose_action(self, pos, epsilon):
        self.epsilons.append(epsilon)
        a = self.actions[self.calls % len(self.actions)]
        self.calls += 1
        return a


@pytest.fixture
def one_step_grid():
    """
    Two cells in a row: start then goal.

        S G

    Moving RIGHT ends every episode in one step.
    """
    return GridConfig.from_rows([[2, 3]])


@pytest.fixture
def open_grid():
    """
    A 3x3 grid with no walls, pits or goals.

        . . .
        . S .
        . . .
    """
    return GridConfig.from_rows([[0, 0, 0], [0, 2, 0], [0, 0, 0]])

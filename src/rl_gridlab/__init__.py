"""
Package init - expose a clean, minimal API for end users.

Usage
-----
from rl_gridlab import Trainer, DEFAULT_GRID, HyperParameters
from rl_gridlab import GridEnvironment, QTable, EpsilonGreedyPolicy
from rl_gridlab import utils    # Optional: seeding, smoothing, plots
"""

from .config import DEFAULT_HYPERPARAMS, ConfigurationError, HyperParameters
from .gridworld import (
    ACTIONS,
    DEFAULT_GRID,
    CellType,
    GridConfig,
    GridEnvironment,
    InvalidGridError,
    Position,
    RewardConfig,
)
from .policy import EpsilonGreedyPolicy
from .qtable import QTable
from .scheduling import ManualScheduler, ThreadedScheduler
from .stats import EpisodeStat, StatsLog
from .trainer import Trainer, TrainerSnapshot, TrainerStatus
from .tutor import Tutor, TutorContext, TutorialStep

# Expose utils as a module so users can do: from rl_gridlab import utils
from . import utils

__all__ = [
    "ACTIONS",
    "CellType",
    "ConfigurationError",
    "DEFAULT_GRID",
    "DEFAULT_HYPERPARAMS",
    "EpisodeStat",
    "EpsilonGreedyPolicy",
    "GridConfig",
    "GridEnvironment",
    "HyperParameters",
    "InvalidGridError",
    "ManualScheduler",
    "Position",
    "QTable",
    "RewardConfig",
    "StatsLog",
    "ThreadedScheduler",
    "Trainer",
    "TrainerSnapshot",
    "TrainerStatus",
    "Tutor",
    "TutorContext",
    "TutorialStep",
    "utils",
]

__version__ = "0.1.0"

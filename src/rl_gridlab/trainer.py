"""
trainer.py - Scheduled tabular Q-learning on a GridEnvironment.

The Trainer owns the Q-table and all episode state. One `step()` is one
environment transition plus one Bellman backup:

    target    = r + γ · max_a' Q(s', a')      (no bootstrap on terminal s')
    Q(s, a)  ← Q(s, a) + α · (target − Q(s, a))

On a terminal transition the episode is logged, ε decays multiplicatively
(floored at MIN_EPSILON) and the agent returns to the start cell.

While RUNNING, steps are chained through a `Scheduler`: each step schedules
the next after `params.speed` ms (or `episode_pause` ms after an episode
ends). Pausing cancels the pending step and keeps the in-progress episode;
`reset()` additionally wipes everything learned.
"""

from __future__ import annotations
import logging
import threading
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from functools import partial
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np

from .config import (
    DEFAULT_HYPERPARAMS,
    ConfigurationError,
    HyperParameters,
    decay_epsilon,
    updated_params,
    validate_params,
)
from .gridworld import DEFAULT_GRID, GridConfig, GridEnvironment, Position, RewardConfig
from .policy import EpsilonGreedyPolicy
from .qtable import QTable
from .scheduling import ManualScheduler, ScheduledCall, Scheduler
from .stats import STATS_CAPACITY, EpisodeStat, StatsLog
from .utils import argmax_random_tie_break, set_seed

logger = logging.getLogger(__name__)

# Recently visited cells kept for display
TRACE_CAPACITY: int = 21
# Pause after a terminal step (ms) so the outcome is visible
EPISODE_PAUSE_MS: float = 200.0


class TrainerStatus(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class StepResult(NamedTuple):
    """What happened in one call to `Trainer.step`."""
    position: Position
    action: int
    next_position: Position
    reward: float
    terminal: bool
    q_value: float
    episode_stat: Optional[EpisodeStat] = None


@dataclass(frozen=True)
class TrainerSnapshot:
    """Consistent read-only view of the trainer between two steps."""
    status: TrainerStatus
    position: Position
    episode: int
    episode_reward: float
    trace: Tuple[Position, ...]
    params: HyperParameters
    q_table: Dict[Position, np.ndarray]
    stats: Tuple[EpisodeStat, ...]

    @property
    def running(self) -> bool:
        return self.status is TrainerStatus.RUNNING


class Trainer:
    """
    Epsilon-greedy Q-learning agent with play/pause/reset control.

    Parameters
    ----------
    grid : GridConfig
        Grid to train on. Validated when it was constructed.
    params : HyperParameters or None
        Initial hyperparameters; `reset()` restores these. Defaults to
        DEFAULT_HYPERPARAMS.
    rewards : RewardConfig
        Reward constants for the environment.
    scheduler : Scheduler or None
        Drives steps while RUNNING. A ManualScheduler when omitted.
    policy : object or None
        Anything with ``choose_action(pos, epsilon) -> int``. Defaults to an
        EpsilonGreedyPolicy over this trainer's Q-table.
    seed : int or None
        Seed for the default policy and for greedy rollouts.
    episode_pause : float
        Delay in ms before the first step of a new episode.

    Notes
    -----
    Every public method takes the same re-entrant lock, so with a threaded
    scheduler a step is never observed half-applied.
    """

    def __init__(self,
                 grid: GridConfig = DEFAULT_GRID,
                 params: Optional[HyperParameters] = None,
                 *,
                 rewards: RewardConfig = RewardConfig(),
                 scheduler: Optional[Scheduler] = None,
                 policy=None,
                 seed: Optional[int] = None,
                 episode_pause: float = EPISODE_PAUSE_MS,
                 stats_capacity: int = STATS_CAPACITY) -> None:
        if episode_pause < 0:
            raise ConfigurationError(f"episode_pause must be >= 0 ms, got {episode_pause}")

        self.env = GridEnvironment(grid, rewards)
        self.defaults: HyperParameters = validate_params(params or DEFAULT_HYPERPARAMS)
        self.scheduler: Scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.episode_pause = episode_pause

        self.qtable = QTable()
        self.stats = StatsLog(stats_capacity)
        self.rng = set_seed(seed)
        self.policy = policy if policy is not None else EpsilonGreedyPolicy(self.qtable, self.rng)

        self._lock = threading.RLock()
        self._params: HyperParameters = self.defaults
        self._status = TrainerStatus.STOPPED
        self._episode = 0
        self._position: Position = self.env.start
        self._episode_reward = 0.0
        self._trace: deque = deque(maxlen=TRACE_CAPACITY)
        self._pending: Optional[ScheduledCall] = None
        # Bumped on pause/reset so a tick that was already in flight is ignored
        self._generation = 0

    # ---------------------------------------------------------------------
    # Read access
    # ---------------------------------------------------------------------

    @property
    def grid(self) -> GridConfig:
        return self.env.grid

    @property
    def status(self) -> TrainerStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._status is TrainerStatus.RUNNING

    @property
    def params(self) -> HyperParameters:
        return self._params

    @property
    def episode(self) -> int:
        return self._episode

    @property
    def position(self) -> Position:
        return self._position

    @property
    def episode_reward(self) -> float:
        return self._episode_reward

    @property
    def trace(self) -> Tuple[Position, ...]:
        with self._lock:
            return tuple(self._trace)

    def snapshot(self) -> TrainerSnapshot:
        with self._lock:
            return TrainerSnapshot(
                status=self._status,
                position=self._position,
                episode=self._episode,
                episode_reward=self._episode_reward,
                trace=tuple(self._trace),
                params=self._params,
                q_table=self.qtable.snapshot(),
                stats=tuple(self.stats.all()),
            )

    # ---------------------------------------------------------------------
    # Hyperparameter setters
    # ---------------------------------------------------------------------

    def update_params(self, **changes) -> HyperParameters:
        """
        Apply hyperparameter changes atomically.

        Raises
        ------
        ConfigurationError
            If any value is out of range, or epsilon is changed while running.
            The current parameters stay in force.
        """
        with self._lock:
            if "epsilon" in changes and self.running:
                raise ConfigurationError("epsilon cannot be changed while training is running")
            self._params = updated_params(self._params, **changes)
            return self._params

    def set_learning_rate(self, value: float) -> HyperParameters:
        return self.update_params(learning_rate=value)

    def set_discount_factor(self, value: float) -> HyperParameters:
        return self.update_params(discount_factor=value)

    def set_epsilon(self, value: float) -> HyperParameters:
        return self.update_params(epsilon=value)

    def set_epsilon_decay(self, value: float) -> HyperParameters:
        return self.update_params(epsilon_decay=value)

    def set_speed(self, value: float) -> HyperParameters:
        return self.update_params(speed=value)

    # ---------------------------------------------------------------------
    # Control
    # ---------------------------------------------------------------------

    def start(self) -> None:
        """STOPPED -> RUNNING; the first step is scheduled immediately."""
        with self._lock:
            if self.running:
                return
            self._status = TrainerStatus.RUNNING
            self._generation += 1
            self._pending = self.scheduler.call_later(0.0, partial(self._tick, self._generation))
            logger.info("Training started at episode %d (epsilon=%.3f)",
                        self._episode, self._params.epsilon)

    def pause(self) -> None:
        """RUNNING -> STOPPED, keeping the in-progress episode."""
        with self._lock:
            if not self.running:
                return
            self._status = TrainerStatus.STOPPED
            self._cancel_pending()
            logger.info("Training paused at episode %d, position %s",
                        self._episode, tuple(self._position))

    def reset(self) -> None:
        """Stop and discard everything learned: Q-table, stats, params, counters."""
        with self._lock:
            self._status = TrainerStatus.STOPPED
            self._cancel_pending()
            self.qtable.clear()
            self.stats.clear()
            self._params = self.defaults
            self._episode = 0
            self._reset_episode()
            logger.info("Trainer reset")

    def _cancel_pending(self) -> None:
        self._generation += 1
        self.scheduler.cancel(self._pending)
        self._pending = None

    def _reset_episode(self) -> None:
        self._position = self.env.start
        self._episode_reward = 0.0
        self._trace.clear()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self.running:
                return
            result = self.step()
            delay = self.episode_pause if result.terminal else self._params.speed
            self._pending = self.scheduler.call_later(delay, partial(self._tick, generation))

    # ---------------------------------------------------------------------
    # Learning
    # ---------------------------------------------------------------------

    def step(self) -> StepResult:
        """
        Run one transition and Q-update of the current episode.

        Called by the scheduler while RUNNING; may also be called directly
        while STOPPED to single-step.
        """
        with self._lock:
            params = self._params
            pos = self._position

            action = self.policy.choose_action(pos, params.epsilon)
            next_pos, reward, terminal = self.env.transition(pos, action)

            # Bellman backup
            q = self.qtable.get_values(pos)
            max_next = self.qtable.max_value(next_pos)
            target = reward + (0.0 if terminal else params.discount_factor * max_next)
            new_value = float(q[action] + params.learning_rate * (target - q[action]))
            self.qtable.update(pos, action, new_value)

            self._position = next_pos
            self._episode_reward += reward
            self._trace.append(next_pos)

            stat = None
            if terminal:
                stat = self._finish_episode()

            return StepResult(pos, action, next_pos, reward, terminal, new_value, stat)

    def _finish_episode(self) -> EpisodeStat:
        stat = EpisodeStat(
            episode=self._episode + 1,
            total_reward=self._episode_reward,
            epsilon=self._params.epsilon,
        )
        self.stats.append(stat)
        self._episode += 1
        self._params = replace(
            self._params,
            epsilon=decay_epsilon(self._params.epsilon, self._params.epsilon_decay),
        )
        self._reset_episode()
        logger.debug("Episode %d finished: reward=%.1f epsilon=%.4f",
                     stat.episode, stat.total_reward, stat.epsilon)
        return stat

    def train_episodes(self, episodes: int, max_steps: int = 1_000_000) -> List[EpisodeStat]:
        """
        Train synchronously, bypassing the scheduler.

        Parameters
        ----------
        episodes : int
            Number of additional episodes to complete.
        max_steps : int
            Safety cap on the total number of steps; the in-progress episode
            is left as is when it is hit.

        Returns
        -------
        list[EpisodeStat]
            Stats of the episodes completed by this call.
        """
        with self._lock:
            if self.running:
                raise RuntimeError("Pause the trainer before batch training")
            completed: List[EpisodeStat] = []
            steps = 0
            while len(completed) < episodes and steps < max_steps:
                result = self.step()
                steps += 1
                if result.episode_stat is not None:
                    completed.append(result.episode_stat)
            if len(completed) < episodes:
                logger.warning("Step cap of %d reached after %d of %d episodes",
                               max_steps, len(completed), episodes)
            logger.info("Trained %d episode(s) in %d steps; epsilon now %.4f",
                        len(completed), steps, self._params.epsilon)
            return completed

    def greedy_rollout(self, max_steps: int = 100) -> Tuple[float, List[Position], bool]:
        """
        Follow the greedy policy from the start cell without learning.

        Unvisited states count as all-zero and are not inserted into the table.

        Returns
        -------
        total_reward : float
        path : list[Position]
            Visited cells, start included.
        terminal : bool
            Whether a terminal cell was reached within `max_steps`.
        """
        with self._lock:
            pos = self.env.start
            total = 0.0
            path = [pos]
            for _ in range(max_steps):
                action = argmax_random_tie_break(self.qtable.peek(pos), self.rng)
                pos, reward, terminal = self.env.transition(pos, action)
                total += reward
                path.append(pos)
                if terminal:
                    return total, path, True
            return total, path, False

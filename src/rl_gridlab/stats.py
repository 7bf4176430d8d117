"""
stats.py - Bounded per-episode history for observers (charts, tutor).

The learning algorithm never reads this log.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Iterator, List

import numpy as np

STATS_CAPACITY: int = 50


@dataclass(frozen=True)
class EpisodeStat:
    """
    Outcome of one completed episode.

    episode is 1-based and monotonic across the whole run, so it keeps
    counting after old entries have been evicted.
    """
    episode: int
    total_reward: float
    epsilon: float


class StatsLog:
    """Ordered log of the most recent `capacity` EpisodeStat entries, oldest first."""

    def __init__(self, capacity: int = STATS_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: deque = deque(maxlen=capacity)

    def append(self, stat: EpisodeStat) -> None:
        self._entries.append(stat)

    def all(self) -> List[EpisodeStat]:
        return list(self._entries)

    def recent(self, n: int) -> List[EpisodeStat]:
        """Last `n` entries, oldest first."""
        if n <= 0:
            return []
        return list(self._entries)[-n:]

    def clear(self) -> None:
        self._entries.clear()

    def returns(self) -> np.ndarray:
        return np.array([s.total_reward for s in self._entries], dtype=float)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EpisodeStat]:
        return iter(list(self._entries))

"""
config.py - Hyperparameters for the Q-learning trainer and their validation.
"""

from __future__ import annotations
import math
from dataclasses import asdict, dataclass, fields, replace


class ConfigurationError(ValueError):
    """Raised when a hyperparameter falls outside its valid range."""


@dataclass(frozen=True)
class HyperParameters:
    """
    Hyperparameters for tabular Q-learning.

    Parameters
    ----------
    learning_rate : float
        Step size alpha in (0, 1].
    discount_factor : float
        Discount gamma in [0, 1).
    epsilon : float
        Exploration probability in [0, 1].
    epsilon_decay : float
        Multiplicative decay applied to epsilon after every episode, in (0, 1].
    speed : float
        Delay between scheduled steps, in milliseconds. Only the scheduler
        reads it; the learning update does not.
    """
    learning_rate: float = 0.1
    discount_factor: float = 0.95
    epsilon: float = 1.0
    epsilon_decay: float = 0.995
    speed: float = 100.0

    def as_dict(self) -> dict:
        return asdict(self)


DEFAULT_HYPERPARAMS = HyperParameters()

# Lower bound epsilon decays towards; exploration never stops entirely.
MIN_EPSILON: float = 0.01


def validate_params(params: HyperParameters) -> HyperParameters:
    """
    Check every field of `params` and return it unchanged.

    Raises
    ------
    ConfigurationError
        On the first field outside its valid range.
    """
    for f in fields(params):
        value = getattr(params, f.name)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
            raise ConfigurationError(f"{f.name} must be a finite number, got {value!r}")

    if not 0.0 < params.learning_rate <= 1.0:
        raise ConfigurationError(f"learning_rate must be in (0, 1], got {params.learning_rate}")
    if not 0.0 <= params.discount_factor < 1.0:
        raise ConfigurationError(f"discount_factor must be in [0, 1), got {params.discount_factor}")
    if not 0.0 <= params.epsilon <= 1.0:
        raise ConfigurationError(f"epsilon must be in [0, 1], got {params.epsilon}")
    if not 0.0 < params.epsilon_decay <= 1.0:
        raise ConfigurationError(f"epsilon_decay must be in (0, 1], got {params.epsilon_decay}")
    if params.speed < 0:
        raise ConfigurationError(f"speed must be >= 0 ms, got {params.speed}")
    return params


def updated_params(params: HyperParameters, **changes) -> HyperParameters:
    """
    Return a validated copy of `params` with `changes` applied.

    The original is never modified, so a rejected update leaves it in force.
    """
    names = {f.name for f in fields(params)}
    unknown = set(changes) - names
    if unknown:
        raise ConfigurationError(f"Unknown hyperparameter(s): {', '.join(sorted(unknown))}")
    return validate_params(replace(params, **changes))


def decay_epsilon(epsilon: float, decay: float) -> float:
    """One episode's worth of multiplicative decay, floored at MIN_EPSILON."""
    return max(MIN_EPSILON, epsilon * decay)

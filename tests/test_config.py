"""
tests/test_config.py

Hyperparameter defaults, range validation and epsilon decay.
"""

import math

import pytest

from rl_gridlab.config import (
    DEFAULT_HYPERPARAMS,
    MIN_EPSILON,
    ConfigurationError,
    HyperParameters,
    decay_epsilon,
    updated_params,
    validate_params,
)


def test_defaults():
    p = DEFAULT_HYPERPARAMS
    assert p.learning_rate == 0.1
    assert p.discount_factor == 0.95
    assert p.epsilon == 1.0
    assert p.epsilon_decay == 0.995
    assert p.speed == 100
    assert validate_params(p) is p


@pytest.mark.parametrize("field, value", [
    ("learning_rate", 0.0),
    ("learning_rate", -0.1),
    ("learning_rate", 1.5),
    ("discount_factor", 1.0),
    ("discount_factor", -0.01),
    ("epsilon", -0.1),
    ("epsilon", 1.01),
    ("epsilon_decay", 0.0),
    ("epsilon_decay", 1.2),
    ("speed", -1),
    ("learning_rate", math.nan),
    ("epsilon", math.inf),
    ("speed", "fast"),
])
def test_out_of_range_values_are_rejected(field, value):
    with pytest.raises(ConfigurationError):
        updated_params(DEFAULT_HYPERPARAMS, **{field: value})


@pytest.mark.parametrize("field, value", [
    ("learning_rate", 1.0),
    ("discount_factor", 0.0),
    ("epsilon", 0.0),
    ("epsilon", 1.0),
    ("epsilon_decay", 1.0),
    ("speed", 0),
])
def test_boundary_values_are_accepted(field, value):
    p = updated_params(DEFAULT_HYPERPARAMS, **{field: value})
    assert getattr(p, field) == value


def test_rejected_update_leaves_original_intact():
    p = HyperParameters(learning_rate=0.3)
    with pytest.raises(ConfigurationError):
        updated_params(p, learning_rate=0.5, discount_factor=2.0)
    assert p.learning_rate == 0.3
    assert p.discount_factor == 0.95


def test_unknown_field_is_rejected():
    with pytest.raises(ConfigurationError):
        updated_params(DEFAULT_HYPERPARAMS, momentum=0.9)


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_decay_is_multiplicative():
    assert decay_epsilon(1.0, 0.995) == pytest.approx(0.995)
    assert decay_epsilon(0.5, 0.5) == pytest.approx(0.25)


def test_decay_never_goes_below_floor():
    eps = 1.0
    for _ in range(5000):
        eps = decay_epsilon(eps, 0.9)
        assert eps >= MIN_EPSILON
    assert eps == MIN_EPSILON

import numpy as np
import pytest

from subspace_stream.core.decay import decay_factor, decayed_sum, decayed_weight
from subspace_stream.core.errors import InvalidTimestamp


def test_no_elapsed_time_keeps_weight():
    assert decay_factor(0.7, 0) == 1.0
    assert decayed_weight(3.5, 0.7, 0) == 3.5


def test_half_life_is_one_over_lambda():
    assert decay_factor(1.0, 1) == pytest.approx(0.5)
    assert decay_factor(0.25, 4) == pytest.approx(0.5)
    assert decayed_weight(8.0, 1.0, 3) == pytest.approx(1.0)


def test_decay_is_monotone_in_elapsed_time():
    factors = [decay_factor(0.1, dt) for dt in range(10)]
    assert all(a > b for a, b in zip(factors, factors[1:]))


def test_decayed_sum_returns_new_array():
    values = np.array([2.0, -4.0])
    result = decayed_sum(values, 1.0, 1)
    np.testing.assert_allclose(result, [1.0, -2.0])
    np.testing.assert_allclose(values, [2.0, -4.0])


def test_negative_elapsed_time_is_rejected():
    with pytest.raises(InvalidTimestamp):
        decay_factor(0.5, -1)

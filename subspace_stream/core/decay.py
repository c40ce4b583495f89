"""
Exponential decay of micro-cluster statistics.

All weights in the engine age as ``w * 2^(-lambda * dt)``, where ``dt`` is
the number of ticks elapsed since the statistic was last brought up to date.
"""

import numpy as np
import numpy.typing as npt

from .errors import InvalidTimestamp


def decay_factor(decay_rate: float, elapsed: int) -> float:
    """
    Multiplicative factor for ``elapsed`` ticks.

    Args:
        decay_rate: Decay rate lambda (> 0)
        elapsed: Ticks since last update

    Returns:
        ``2 ** (-decay_rate * elapsed)``

    Raises:
        InvalidTimestamp: If ``elapsed`` is negative

    Examples:
        >>> decay_factor(1.0, 1)
        0.5
        >>> decay_factor(0.25, 0)
        1.0
    """
    if elapsed < 0:
        raise InvalidTimestamp(elapsed, 0)
    return float(2.0 ** (-decay_rate * elapsed))


def decayed_weight(weight: float, decay_rate: float, elapsed: int) -> float:
    """Weight after ``elapsed`` ticks without new points."""
    return weight * decay_factor(decay_rate, elapsed)


def decayed_sum(
    values: npt.NDArray[np.float64], decay_rate: float, elapsed: int
) -> npt.NDArray[np.float64]:
    """Per-dimension sums after ``elapsed`` ticks. Returns a new array."""
    return values * decay_factor(decay_rate, elapsed)

import numpy as np
import pytest

from subspace_stream.models.neighborhood import NeighborhoodEngine, PreferencePoint


LINE_A = [(0.0, 0.0), (0.1, 0.0), (0.2, 0.0), (0.3, 0.0)]
LINE_B = [(5.0, 5.0), (5.1, 5.0), (5.2, 5.0), (5.3, 5.0)]


def make_points(coords, start=0):
    return [
        PreferencePoint.from_point(np.array(c, dtype=float), key)
        for key, c in enumerate(coords, start=start)
    ]


@pytest.fixture
def engine():
    return NeighborhoodEngine(epsilon=0.5, mu=3.0, delta=0.01, kappa=10.0, tau=1)

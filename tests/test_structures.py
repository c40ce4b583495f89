import numpy as np
import pytest

from subspace_stream.core.structures import (
    MicroCluster,
    OfflineCluster,
    ProjectedMicroCluster,
    StreamPoint,
)
from subspace_stream.core.errors import EmptyNeighborhoodDegeneracy, InvalidTimestamp


PARAMS = dict(epsilon=1.0, mu=2.0, beta=0.5, delta=0.001, kappa=10.0, pi=2)


def make_cluster(points, timestamp=0, decay_rate=0.1, **overrides):
    params = dict(PARAMS, **overrides)
    cluster = ProjectedMicroCluster.from_point(
        np.asarray(points[0], dtype=float), timestamp, decay_rate, cluster_id=7, **params
    )
    for p in points[1:]:
        cluster.insert(np.asarray(p, dtype=float), timestamp)
    return cluster


class TestStreamPoint:
    def test_from_array_splits_label(self):
        sp = StreamPoint.from_array(np.array([1.0, 2.0, 3.0]), timestamp=4)
        np.testing.assert_array_equal(sp.point, [1.0, 2.0])
        assert sp.label == 3.0
        assert sp.timestamp == 4
        assert sp.n_features == 2

    def test_list_is_converted(self):
        sp = StreamPoint([1, 2])
        assert isinstance(sp.point, np.ndarray)
        assert sp.label == -1.0


class TestMicroCluster:
    def test_insert_adds_one_to_decayed_weight(self):
        mc = MicroCluster.from_point(np.array([1.0, 1.0]), 0, 0.5)
        mc.insert(np.array([3.0, 1.0]), 2)
        assert mc.weight == pytest.approx(2.0 ** -1.0 + 1.0)
        assert mc.last_edit_time == 2

    def test_decay_to_is_idempotent(self):
        mc = MicroCluster.from_point(np.array([1.0, 2.0]), 0, 0.3)
        mc.decay_to(5)
        weight, ls, ss = mc.weight, mc.linear_sum.copy(), mc.squared_sum.copy()
        mc.decay_to(5)
        assert mc.weight == weight
        np.testing.assert_array_equal(mc.linear_sum, ls)
        np.testing.assert_array_equal(mc.squared_sum, ss)

    def test_decay_is_monotone(self):
        mc = MicroCluster.from_point(np.array([1.0]), 0, 0.2)
        weights = []
        for t in range(1, 6):
            mc.decay_to(t)
            weights.append(mc.weight)
        assert all(a > b for a, b in zip(weights, weights[1:]))

    def test_center_is_invariant_under_decay(self):
        mc = MicroCluster.from_point(np.array([1.0, 3.0]), 0, 0.5)
        mc.insert(np.array([3.0, 5.0]), 0)
        mc.decay_to(10)
        np.testing.assert_allclose(mc.center(), [2.0, 4.0])

    def test_backwards_decay_raises_without_mutation(self):
        mc = MicroCluster.from_point(np.array([1.0]), 5, 0.2)
        with pytest.raises(InvalidTimestamp):
            mc.decay_to(4)
        assert mc.weight == 1.0
        assert mc.last_edit_time == 5

    def test_radius_is_max_standard_deviation(self):
        mc = MicroCluster.from_point(np.array([0.0, 0.0]), 0, 0.1)
        mc.insert(np.array([2.0, 0.0]), 0)
        assert mc.radius() == pytest.approx(1.0)

    def test_zero_weight_is_degenerate(self):
        mc = MicroCluster.from_point(np.array([1.0]), 0, 0.1)
        mc.weight = 0.0
        with pytest.raises(EmptyNeighborhoodDegeneracy):
            mc.center()
        with pytest.raises(EmptyNeighborhoodDegeneracy):
            mc.radius()

    def test_long_idle_gap_fades_to_zero(self):
        mc = MicroCluster.from_point(np.array([1.0]), 0, 1.0)
        assert not mc.is_faded()
        mc.decay_to(1600)
        assert mc.weight == 0.0
        assert mc.is_faded()

    def test_copy_is_independent(self):
        mc = MicroCluster.from_point(np.array([1.0]), 0, 0.1)
        trial = mc.copy()
        trial.insert(np.array([2.0]), 0)
        assert mc.weight == 1.0
        np.testing.assert_array_equal(mc.linear_sum, [1.0])

    def test_identity_equality(self):
        a = MicroCluster.from_point(np.array([1.0]), 0, 0.1)
        b = MicroCluster.from_point(np.array([1.0]), 0, 0.1)
        pool = [a, b]
        pool.remove(b)
        assert pool == [a]


class TestProjectedMicroCluster:
    def test_preference_marks_low_variance_dimensions(self):
        cluster = make_cluster([[0.0, 0.0], [0.5, 0.0]])
        np.testing.assert_array_equal(cluster.preference_vector(), [1.0, 10.0])
        assert cluster.num_relevant_dims() == 1

    def test_projected_radius_divides_by_preference(self):
        cluster = make_cluster([[0.0, 0.0], [0.5, 0.0]])
        # variance (0.0625, 0) weighted (1, 10)
        assert cluster.projected_radius() == pytest.approx(0.25)

    def test_projected_distance(self):
        cluster = make_cluster([[0.0, 0.0], [0.0, 0.0]])
        # both dimensions relevant
        assert cluster.projected_distance(np.array([1.0, 0.0])) == pytest.approx(
            np.sqrt(0.1)
        )

    def test_potential_core_and_core(self):
        light = make_cluster([[0.0, 0.0]])
        assert light.is_potential_core()
        assert not light.is_core()
        heavy = make_cluster([[0.0, 0.0], [0.0, 0.0]])
        assert heavy.is_core()

    def test_too_many_relevant_dimensions_is_outlier(self):
        cluster = make_cluster([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
        assert cluster.num_relevant_dims() == 3
        assert not cluster.is_potential_core()
        assert cluster.is_outlier()

    def test_wide_cluster_is_neither(self):
        cluster = make_cluster([[0.0, 0.0], [4.0, 4.0]])
        assert not cluster.is_potential_core()
        assert not cluster.is_outlier()

    def test_degenerate_cluster_is_never_classified(self):
        cluster = make_cluster([[0.0, 0.0]])
        cluster.weight = 0.0
        assert not cluster.is_core()
        assert not cluster.is_potential_core()
        assert not cluster.is_outlier()
        assert cluster.is_expired(0, 1)

    def test_expiry_bound(self):
        cluster = make_cluster([[0.0]], timestamp=0, decay_rate=0.1)
        assert not cluster.is_expired(0, 4)
        cluster.decay_to(4)
        # expected lower bound at t=4 with t_span=4 is about 1.76
        assert cluster.is_expired(4, 4)


class TestOfflineCluster:
    def test_frozen(self):
        cluster = OfflineCluster(1, (3, 4), 2.0, np.zeros(2), (1,))
        with pytest.raises(AttributeError):
            cluster.weight = 3.0
        assert cluster.n_members == 2
        assert cluster.is_relevant(1)
        assert not cluster.is_relevant(0)

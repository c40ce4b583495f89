import numpy as np
import pytest

from subspace_stream.core.structures import ProjectedMicroCluster
from subspace_stream.models.expansion import DensityExpansion, build_offline_cluster
from subspace_stream.models.neighborhood import (
    NeighborhoodEngine,
    PointStatus,
    PreferencePoint,
)

from conftest import LINE_A, LINE_B, make_points


def partition(result):
    return [tuple(p.key for p in members) for members in result.clusters]


def run(engine, coords, tau=1, **kwargs):
    points = engine.preprocess_all(make_points(coords))
    return points, DensityExpansion(tau).run(points, **kwargs)


def test_two_groups_and_noise(engine):
    points, result = run(engine, LINE_A + LINE_B + [(10.0, 10.0)])
    assert result.n_clusters == 2
    assert sorted(partition(result)[0]) == [0, 1, 2, 3]
    assert sorted(partition(result)[1]) == [4, 5, 6, 7]
    assert [p.key for p in result.noise] == [8]
    assert points[8].status == PointStatus.NOISE


def test_expansion_is_deterministic(engine):
    coords = LINE_B + [(10.0, 10.0)] + LINE_A + [(0.45, 0.05)]
    _, first = run(engine, coords)
    _, second = run(engine, coords)
    assert partition(first) == partition(second)
    assert [p.key for p in first.noise] == [p.key for p in second.noise]


def test_noise_is_reclaimed_by_later_cluster():
    engine = NeighborhoodEngine(epsilon=0.5, mu=4.0, delta=0.01, kappa=10.0, tau=1)
    # border point first: not core itself, but reachable from the line
    points, result = run(engine, [(0.7, 0.0)] + LINE_A)
    assert not points[0].is_core
    assert result.n_clusters == 1
    assert sorted(partition(result)[0]) == [0, 1, 2, 3, 4]
    assert result.noise == []
    assert points[0].status == PointStatus.CLASSIFIED


def test_restricted_run_leaves_others_untouched(engine):
    points = engine.preprocess_all(make_points(LINE_A + LINE_B))
    result = DensityExpansion(1).run(points, restrict_to={0, 1, 2, 3})
    assert partition(result) == [(0, 1, 2, 3)]
    assert all(p.status == PointStatus.UNCLASSIFIED for p in points[4:])


def test_unclassifiable_points_stay_unclassified(engine):
    points = engine.preprocess_all(make_points(LINE_A))
    points[2].mark_unclassifiable()
    result = DensityExpansion(1).run(points)
    assert points[2].status == PointStatus.UNCLASSIFIED
    assert 2 not in partition(result)[0]
    assert points[2] not in result.noise


def test_high_dimensional_neighbor_is_not_directly_reachable(engine):
    points = engine.preprocess_all(make_points(LINE_A))
    points[3].num_relevant_dims = 2
    result = DensityExpansion(1).run(points)
    # still a seed member of its first core neighbor's neighborhood
    assert sorted(partition(result)[0]) == [0, 1, 2, 3]
    points = engine.preprocess_all(make_points(LINE_A))
    points[3].num_relevant_dims = 2
    points[3].is_core = False
    points[0].weighted_neighborhood.remove(points[3])
    result = DensityExpansion(1).run(points)
    assert sorted(partition(result)[0]) == [0, 1, 2]


def make_member(coords, preference, key):
    cluster = ProjectedMicroCluster.from_point(np.array(coords[0]), 0, 0.1, cluster_id=key)
    for c in coords[1:]:
        cluster.insert(np.array(c), 0)
    point = PreferencePoint.from_cluster(cluster)
    point.preference_vector = np.array(preference)
    return point


def test_aggregate_center_is_weighted_by_member_weight():
    heavy = make_member([(0.0, 0.0)] * 3, [10.0, 1.0], key=5)
    light = make_member([(4.0, 0.0)], [1.0, 10.0], key=9)
    cluster = build_offline_cluster(2, [heavy, light], created_at=12)

    assert cluster.weight == pytest.approx(4.0)
    np.testing.assert_allclose(cluster.center, [1.0, 0.0])
    # unweighted mean of member centers would be (2, 0)
    assert not np.allclose(cluster.center, [2.0, 0.0])
    assert cluster.member_ids == (5, 9)
    assert cluster.relevant_dims == (0,)
    assert cluster.created_at == 12


def test_empty_member_list_is_rejected():
    with pytest.raises(ValueError):
        build_offline_cluster(0, [])

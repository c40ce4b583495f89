import numpy as np
import pytest

from subspace_stream.core.structures import ProjectedMicroCluster
from subspace_stream.models.expansion import DensityExpansion
from subspace_stream.models.neighborhood import NeighborhoodEngine
from subspace_stream.models.reclustering import IncrementalReclusterer
from subspace_stream.pipeline.context import StreamContext

from conftest import LINE_A, LINE_B


LINE_C = [(1.0, 0.0), (1.1, 0.0), (1.2, 0.0), (1.3, 0.0)]


def micro(coords, start):
    return [
        ProjectedMicroCluster.from_point(np.array(c), 0, 0.1, cluster_id=i)
        for i, c in enumerate(coords, start=start)
    ]


def make_reclusterer():
    return IncrementalReclusterer(
        NeighborhoodEngine(epsilon=0.5, mu=3.0, delta=0.01, kappa=10.0, tau=1),
        DensityExpansion(tau=1),
    )


def member_sets(clustering):
    return sorted(tuple(sorted(c.member_ids)) for c in clustering)


def full_pass(pool):
    return make_reclusterer().update(pool, pool, [], StreamContext())


def assert_owned_once(clustering):
    seen = [m for c in clustering for m in c.member_ids]
    assert len(seen) == len(set(seen))


@pytest.fixture
def context():
    return StreamContext()


def test_first_pass_is_full(context):
    pool = micro(LINE_A, 0)
    clustering = make_reclusterer().update(pool, pool, [], context)
    assert member_sets(clustering) == [(0, 1, 2, 3)]
    assert clustering[0].cluster_id == 0
    assert context.next_macro_id == 1


def test_insertion_far_away_keeps_existing_cluster(context):
    reclusterer = make_reclusterer()
    a, b = micro(LINE_A, 0), micro(LINE_B, 4)
    first = reclusterer.update(a, a, [], context)

    second = reclusterer.update(a + b, b, [], context)
    assert second[0] is first[0]
    assert second[1].cluster_id == 1
    assert member_sets(second) == member_sets(full_pass(a + b))


def test_deletion_retires_owning_cluster(context):
    reclusterer = make_reclusterer()
    a, b = micro(LINE_A, 0), micro(LINE_B, 4)
    reclusterer.update(a + b, a + b, [], context)

    pool = a[:3] + b
    clustering = reclusterer.update(pool, [], [a[3]], context)
    assert member_sets(clustering) == [(0, 1, 2), (4, 5, 6, 7)]
    assert sorted(c.cluster_id for c in clustering) == [1, 2]
    assert member_sets(clustering) == member_sets(full_pass(pool))
    assert_owned_once(clustering)


def test_faded_member_leaves_like_a_deletion(context):
    reclusterer = make_reclusterer()
    a, b = micro(LINE_A, 0), micro(LINE_B, 4)
    reclusterer.update(a + b, a + b, [], context)

    a[3].decay_to(20000)
    assert a[3].weight == 0.0
    clustering = reclusterer.update(a + b, [], [], context)
    assert member_sets(clustering) == [(0, 1, 2), (4, 5, 6, 7)]
    assert member_sets(clustering) == member_sets(full_pass(a[:3] + b))


def test_faded_cluster_is_skipped_on_first_pass(context):
    pool = micro(LINE_A, 0)
    pool[0].decay_to(20000)
    clustering = make_reclusterer().update(pool, pool, [], context)
    assert member_sets(clustering) == [(1, 2, 3)]


def test_bridge_merges_two_clusters(context):
    reclusterer = make_reclusterer()
    a, c = micro(LINE_A, 0), micro(LINE_C, 4)
    before = reclusterer.update(a + c, a + c, [], context)
    assert member_sets(before) == [(0, 1, 2, 3), (4, 5, 6, 7)]

    bridge = micro([(0.65, 0.0)], 8)
    pool = a + c + bridge
    after = reclusterer.update(pool, bridge, [], context)
    assert member_sets(after) == [tuple(range(9))]
    assert after[0].cluster_id == 2
    assert member_sets(after) == member_sets(full_pass(pool))


def test_no_transitions_publishes_same_result(context):
    reclusterer = make_reclusterer()
    pool = micro(LINE_A, 0)
    first = reclusterer.update(pool, pool, [], context)
    assert reclusterer.update(pool, [], [], context) is first


def test_emptied_pool_clears_clustering(context):
    reclusterer = make_reclusterer()
    pool = micro(LINE_A, 0)
    reclusterer.update(pool, pool, [], context)
    assert reclusterer.update([], [], pool, context) == ()


def test_reset_forces_full_pass(context):
    reclusterer = make_reclusterer()
    pool = micro(LINE_A, 0)
    reclusterer.update(pool, pool, [], context)
    reclusterer.reset()
    assert reclusterer.clustering == ()
    clustering = reclusterer.update(pool, [], [], context)
    assert member_sets(clustering) == [(0, 1, 2, 3)]
    assert clustering[0].cluster_id == 1


def test_offline_center_uses_decayed_weights(context):
    pool = micro(LINE_A, 0)
    pool[0].insert(np.array([0.0, 0.0]), 0)
    clustering = make_reclusterer().update(pool, pool, [], context)
    # weights 2, 1, 1, 1 and linear sums (0, 0.1, 0.2, 0.3) on dimension 0
    assert clustering[0].weight == pytest.approx(5.0)
    np.testing.assert_allclose(clustering[0].center, [0.12, 0.0])

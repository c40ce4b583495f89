"""
Incremental offline reclustering of the potential micro-cluster pool.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Sequence, Set, Tuple
import numpy as np

from ..core.structures import OfflineCluster, ProjectedMicroCluster
from .neighborhood import NeighborhoodEngine, PointStatus, PreferencePoint
from .expansion import DensityExpansion, build_offline_cluster

if TYPE_CHECKING:
    from ..pipeline.context import StreamContext

logger = logging.getLogger(__name__)


class IncrementalReclusterer:
    """
    Maintains the macro-clustering across maintenance passes.

    Only the region perturbed by potential-pool transitions since the last
    pass is expanded again: micro-clusters whose core state or preference
    vector changed, their weighted neighbors, and every member of an offline
    cluster that contains one of them. Other offline clusters are kept.

    State is index based: the arena maps micro-cluster ids to their
    annotated points, the owner map sends micro-cluster ids to offline
    cluster ids, and offline clusters hold member ids only.

    Attributes:
        engine: Neighborhood engine with the offline parameters
        expansion: Density expansion with the offline tau
        clustering: Published offline clusters, replaced on every change
    """

    def __init__(self, engine: NeighborhoodEngine, expansion: DensityExpansion):
        self.engine = engine
        self.expansion = expansion

        self._arena: Dict[int, PreferencePoint] = {}
        self._owner: Dict[int, int] = {}
        self._clusters: Dict[int, OfflineCluster] = {}
        self.clustering: Tuple[OfflineCluster, ...] = ()

    def reset(self) -> None:
        """Forget all state. The next update is a full pass."""
        self._arena = {}
        self._owner = {}
        self._clusters = {}
        self.clustering = ()

    def update(
        self,
        potential: Sequence[ProjectedMicroCluster],
        inserted: Iterable[ProjectedMicroCluster],
        deleted: Iterable[ProjectedMicroCluster],
        context: "StreamContext",
    ) -> Tuple[OfflineCluster, ...]:
        """
        Bring the macro-clustering up to date with the potential pool.

        Args:
            potential: Current potential pool, decayed to the current tick
            inserted: Clusters that entered the pool since the last pass
            deleted: Clusters that left the pool since the last pass
            context: Stream context for the tick and cluster ids

        Returns:
            The published offline clusters
        """
        # Faded clusters have no center; they leave the arena like removals
        fresh = [PreferencePoint.from_cluster(mc) for mc in potential if not mc.is_faded()]
        if len(fresh) < len(potential):
            logger.debug(
                f"Skipping {len(potential) - len(fresh)} faded micro-clusters "
                f"at t={context.timestamp}"
            )
        by_key = {p.key: p for p in fresh}

        if not self._arena:
            return self._full_pass(fresh, by_key, context)

        inserted_ids = {mc.cluster_id for mc in inserted}
        deleted_ids = {mc.cluster_id for mc in deleted}
        new_ids = [k for k in by_key if k not in self._arena or k in inserted_ids]
        removed_ids = {k for k in self._arena if k not in by_key} | (
            deleted_ids & set(self._arena)
        )

        if not new_ids and not removed_ids:
            logger.debug(f"No pool transitions at t={context.timestamp}")
            self._arena = self._carry_over(fresh, by_key, set())
            return self.clustering

        new_set = set(new_ids)
        self._carry_over(fresh, by_key, new_set)
        touched = self._touched_region(fresh, by_key, new_ids, removed_ids)

        affected_cores = {
            k
            for k in touched
            if k in new_set
            or by_key[k].core_state() != self._arena[k].core_state()
        }
        affected_clusters = {
            self._owner[k] for k in affected_cores | removed_ids if k in self._owner
        }

        seed: Set[int] = set(affected_cores)
        for k in affected_cores:
            seed.update(q.key for q in by_key[k].weighted_neighborhood)
        seed, affected_clusters = self._close_over_owners(
            seed, affected_clusters, by_key
        )

        self._preprocess_subset(fresh, seed)
        for k in seed:
            by_key[k].status = PointStatus.UNCLASSIFIED

        for cluster_id in affected_clusters:
            retired = self._clusters.pop(cluster_id)
            for member_id in retired.member_ids:
                if self._owner.get(member_id) == cluster_id:
                    del self._owner[member_id]
        for k in removed_ids:
            self._owner.pop(k, None)

        result = self.expansion.run(fresh, restrict_to=seed)
        self._publish(result.clusters, context)
        self._arena = by_key

        logger.info(
            f"Reclustered at t={context.timestamp}: "
            f"+{len(new_ids)}/-{len(removed_ids)} micro, "
            f"{len(affected_clusters)} retired, {result.n_clusters} new, "
            f"{len(self.clustering)} total"
        )
        return self.clustering

    def _full_pass(
        self,
        fresh: List[PreferencePoint],
        by_key: Dict[int, PreferencePoint],
        context: "StreamContext",
    ) -> Tuple[OfflineCluster, ...]:
        self._owner = {}
        self._clusters = {}
        self.engine.preprocess_all(fresh)
        result = self.expansion.run(fresh)
        self._publish(result.clusters, context)
        self._arena = by_key

        logger.info(
            f"Full reclustering at t={context.timestamp}: "
            f"{len(fresh)} micro, {len(self.clustering)} clusters, "
            f"{len(result.noise)} noise"
        )
        return self.clustering

    def _carry_over(
        self,
        fresh: List[PreferencePoint],
        by_key: Dict[int, PreferencePoint],
        skip: Set[int],
    ) -> Dict[int, PreferencePoint]:
        """Copy previous annotations onto retained points, relinking neighbors."""
        for point in fresh:
            old = self._arena.get(point.key)
            if old is None or point.key in skip:
                continue
            point.copy_annotations(old)
            point.neighborhood = [
                by_key[q.key] for q in old.neighborhood if q.key in by_key
            ]
            point.weighted_neighborhood = [
                by_key[q.key] for q in old.weighted_neighborhood if q.key in by_key
            ]
        return by_key

    def _touched_region(
        self,
        fresh: List[PreferencePoint],
        by_key: Dict[int, PreferencePoint],
        new_ids: List[int],
        removed_ids: Set[int],
    ) -> Set[int]:
        """Re-preprocess transitions and their weighted neighbors."""
        first = set(new_ids)
        for k in removed_ids:
            first.update(
                q.key for q in self._arena[k].weighted_neighborhood if q.key in by_key
            )
        self._preprocess_subset(fresh, first)

        touched = set(first)
        for k in first:
            touched.update(q.key for q in by_key[k].weighted_neighborhood)
        if touched != first:
            self._preprocess_subset(fresh, touched)
        return touched

    def _close_over_owners(
        self,
        seed: Set[int],
        affected_clusters: Set[int],
        by_key: Dict[int, PreferencePoint],
    ) -> Tuple[Set[int], Set[int]]:
        """Grow the seed until no retained offline cluster owns a seed point."""
        pending = list(affected_clusters)
        while True:
            for cluster_id in pending:
                seed.update(
                    m for m in self._clusters[cluster_id].member_ids if m in by_key
                )
            pending = [
                self._owner[k]
                for k in seed
                if k in self._owner and self._owner[k] not in affected_clusters
            ]
            if not pending:
                return seed, affected_clusters
            affected_clusters.update(pending)
            pending = list(set(pending))

    def _preprocess_subset(self, fresh: List[PreferencePoint], keys: Set[int]) -> None:
        """Preferences for the whole subset first, then weighted neighborhoods."""
        subset = [p for p in fresh if p.key in keys]
        if not subset:
            return
        centers = np.vstack([p.center for p in fresh])
        valid = [
            p for p in subset if self.engine.compute_preference(p, fresh, centers)
        ]
        preferences = np.vstack([p.preference_vector for p in fresh])
        for p in valid:
            self.engine.compute_weighted_neighborhood(p, fresh, centers, preferences)

    def _publish(self, clusters: List[List[PreferencePoint]], context: "StreamContext") -> None:
        for members in clusters:
            offline = build_offline_cluster(
                context.allocate_macro_id(), members, context.timestamp
            )
            self._clusters[offline.cluster_id] = offline
            for member_id in offline.member_ids:
                self._owner[member_id] = offline.cluster_id
        self.clustering = tuple(self._clusters.values())


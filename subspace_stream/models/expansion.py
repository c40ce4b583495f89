"""
Density expansion over preference-annotated points.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import AbstractSet, List, Optional, Sequence
import numpy as np

from ..core.structures import OfflineCluster
from .neighborhood import PointStatus, PreferencePoint

logger = logging.getLogger(__name__)


@dataclass
class ExpansionResult:
    """
    Partition produced by one expansion run.

    Attributes:
        clusters: Member lists, in discovery order
        noise: Points left as noise
    """

    clusters: List[List[PreferencePoint]] = field(default_factory=list)
    noise: List[PreferencePoint] = field(default_factory=list)

    @property
    def n_clusters(self) -> int:
        return len(self.clusters)


class DensityExpansion:
    """
    DBSCAN-style expansion with preference-weighted reachability.

    Points are visited in input order. A non-core point is marked noise
    and may still be absorbed by a cluster found later; a classified point
    is never reconsidered, so the first cluster to reach a point keeps it.

    Attributes:
        tau: Maximum relevant dimensions of a directly reachable point
    """

    def __init__(self, tau: int):
        self.tau = tau

    def run(
        self,
        points: Sequence[PreferencePoint],
        restrict_to: Optional[AbstractSet[int]] = None,
    ) -> ExpansionResult:
        """
        Partition ``points`` into density-connected clusters and noise.

        Args:
            points: Preprocessed points, in the order they are visited
            restrict_to: When given, only points with these keys take part

        Returns:
            ExpansionResult with member lists and noise
        """
        result = ExpansionResult()

        for point in points:
            if not self._eligible(point, restrict_to):
                continue
            if point.status != PointStatus.UNCLASSIFIED:
                continue
            if not point.is_core:
                point.status = PointStatus.NOISE
                continue
            result.clusters.append(self._expand(point, restrict_to))

        result.noise = [
            p
            for p in points
            if p.status == PointStatus.NOISE and self._eligible(p, restrict_to)
        ]
        logger.debug(
            f"Expansion over {len(points)} points: "
            f"{result.n_clusters} clusters, {len(result.noise)} noise"
        )
        return result

    def _expand(
        self, seed: PreferencePoint, restrict_to: Optional[AbstractSet[int]]
    ) -> List[PreferencePoint]:
        members: List[PreferencePoint] = []
        queue = deque(
            q for q in seed.weighted_neighborhood if self._eligible(q, restrict_to)
        )

        while queue:
            q = queue.popleft()
            if q.status == PointStatus.UNCLASSIFIED:
                q.status = PointStatus.CLASSIFIED
                members.append(q)

            if not q.is_core:
                continue

            for x in q.weighted_neighborhood:
                if not self._eligible(x, restrict_to):
                    continue
                # direct reachability
                if x.num_relevant_dims > self.tau:
                    continue
                if x.status == PointStatus.UNCLASSIFIED:
                    queue.append(x)
                if x.status in (PointStatus.UNCLASSIFIED, PointStatus.NOISE):
                    x.status = PointStatus.CLASSIFIED
                    members.append(x)

        return members

    @staticmethod
    def _eligible(
        point: PreferencePoint, restrict_to: Optional[AbstractSet[int]]
    ) -> bool:
        if not point.classifiable:
            return False
        return restrict_to is None or point.key in restrict_to


def build_offline_cluster(
    cluster_id: int, members: Sequence[PreferencePoint], created_at: int = 0
) -> OfflineCluster:
    """
    Aggregate expansion members into an offline cluster.

    The center is the summed linear sums over the summed weight, never the
    plain mean of member centers. A dimension belongs to the cluster's
    subspace when members marking it relevant hold at least half the weight.

    Args:
        cluster_id: Identifier of the new cluster
        members: Non-empty member list
        created_at: Current tick

    Returns:
        OfflineCluster
    """
    if not members:
        raise ValueError("offline cluster needs at least one member")

    weights = np.array([m.weight for m in members])
    weight = float(weights.sum())
    linear_sum = np.sum([m.linear_sum for m in members], axis=0)

    relevant = np.vstack([m.preference_vector > 1.0 for m in members])
    share = weights @ relevant / weight
    relevant_dims = tuple(int(d) for d in np.flatnonzero(share >= 0.5))

    return OfflineCluster(
        cluster_id=cluster_id,
        member_ids=tuple(m.key for m in members),
        weight=weight,
        center=linear_sum / weight,
        relevant_dims=relevant_dims,
        created_at=created_at,
    )

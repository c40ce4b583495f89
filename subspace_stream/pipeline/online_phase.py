"""
Online phase for subspace-stream - micro-cluster maintenance per arrival.
"""

import logging
from typing import List, Optional, Tuple
import numpy as np
import numpy.typing as npt

from ..config.parameters import StreamConfig
from ..core.structures import ProjectedMicroCluster
from ..core.errors import EmptyNeighborhoodDegeneracy
from .context import StreamContext

logger = logging.getLogger(__name__)


class OnlinePhase:
    """
    Online processing phase.

    Owns the potential and outlier pools. Each arrival is merged into the
    nearest potential micro-cluster that stays compact, else into the
    nearest such outlier (which may then be promoted), else it seeds a new
    outlier. Every ``t_span`` ticks expired outliers are deleted and
    potentials that lost density are demoted.

    Attributes:
        config: Algorithm configuration
        context: Shared stream context
        potential: Potential micro-clusters
        outlier: Outlier micro-clusters
        inserted: Clusters that entered the potential pool since the last pass
        deleted: Clusters that left the potential pool since the last pass
        t_span: Pruning period in ticks
    """

    def __init__(self, config: StreamConfig, context: StreamContext):
        self.config = config
        self.context = context

        self.potential: List[ProjectedMicroCluster] = []
        self.outlier: List[ProjectedMicroCluster] = []
        self.inserted: List[ProjectedMicroCluster] = []
        self.deleted: List[ProjectedMicroCluster] = []

        self.t_span = config.pruning_period()
        self._params = config.projection_params()

        logger.debug(f"Pruning period: {self.t_span} ticks")

    def seed(
        self,
        potential: List[ProjectedMicroCluster],
        outlier: List[ProjectedMicroCluster],
    ) -> None:
        """Install the pools produced by the cold start."""
        self.potential.extend(potential)
        self.outlier.extend(outlier)
        self.inserted.extend(potential)

    def process(self, point: npt.NDArray[np.float64], timestamp: int) -> bool:
        """
        Assign one point at ``timestamp``.

        Args:
            point: Validated feature vector
            timestamp: Current tick

        Returns:
            True if a pruning pass ran
        """
        stats = self.context.stats

        cluster = self._nearest_cluster(self.potential, point, timestamp)
        if cluster is not None:
            cluster.insert(point, timestamp)
            stats.included_potential += 1
        else:
            cluster = self._nearest_cluster(self.outlier, point, timestamp)
            if cluster is not None:
                cluster.insert(point, timestamp)
                stats.included_outlier += 1
                if cluster.is_potential_core():
                    self.outlier.remove(cluster)
                    self.potential.append(cluster)
                    self.inserted.append(cluster)
                    stats.promoted += 1
            else:
                self.outlier.append(
                    ProjectedMicroCluster.from_point(
                        point,
                        timestamp,
                        self.config.decay_rate,
                        cluster_id=self.context.allocate_micro_id(),
                        **self._params,
                    )
                )
                stats.created += 1

        self._decay_all(timestamp)
        return self._maybe_prune(timestamp)

    def advance(self, timestamp: int) -> bool:
        """
        Age both pools to ``timestamp`` without an arrival.

        Returns:
            True if a pruning pass ran
        """
        self._decay_all(timestamp)
        return self._maybe_prune(timestamp)

    def take_changes(
        self,
    ) -> Tuple[List[ProjectedMicroCluster], List[ProjectedMicroCluster]]:
        """Return and clear the pool transitions since the last call."""
        inserted, deleted = self.inserted, self.deleted
        self.inserted, self.deleted = [], []
        return inserted, deleted

    def _nearest_cluster(
        self,
        pool: List[ProjectedMicroCluster],
        point: npt.NDArray[np.float64],
        timestamp: int,
    ) -> Optional[ProjectedMicroCluster]:
        """
        Closest cluster by projected distance that stays compact with the point.

        Ties keep the first cluster in pool order.
        """
        best = None
        best_distance = np.inf

        for cluster in pool:
            trial = cluster.copy()
            trial.insert(point, timestamp)
            try:
                if trial.projected_radius() > self.config.epsilon:
                    continue
                if trial.num_relevant_dims() > self.config.pi:
                    continue
                distance = cluster.projected_distance(point)
            except EmptyNeighborhoodDegeneracy:
                continue

            if distance < best_distance:
                best = cluster
                best_distance = distance

        return best

    def _decay_all(self, timestamp: int) -> None:
        for cluster in self.potential:
            cluster.decay_to(timestamp)
        for cluster in self.outlier:
            cluster.decay_to(timestamp)

    def _maybe_prune(self, timestamp: int) -> bool:
        """
        Prune once whenever a multiple of ``t_span`` has been reached.

        Jumps over one or more multiples still trigger a single pass at the
        arrival tick. A tick is never pruned twice.
        """
        if timestamp // self.t_span <= self.context.last_pruned // self.t_span:
            return False
        self.context.last_pruned = timestamp

        kept = [c for c in self.outlier if not c.is_expired(timestamp, self.t_span)]
        n_expired = len(self.outlier) - len(kept)

        demoted = [c for c in self.potential if not c.is_potential_core()]
        if demoted:
            self.potential = [c for c in self.potential if c.is_potential_core()]
            self.deleted.extend(demoted)
        self.outlier = kept + demoted

        self.context.stats.deleted += n_expired
        self.context.stats.demoted += len(demoted)
        logger.debug(
            f"Pruned at t={timestamp}: {n_expired} expired, {len(demoted)} demoted, "
            f"{len(self.potential)} potential, {len(self.outlier)} outlier"
        )
        return True

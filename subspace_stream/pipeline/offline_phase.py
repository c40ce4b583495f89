"""
Offline phase for subspace-stream - Cold-start initialization.
"""

import logging
from typing import List, Sequence, Tuple
import numpy as np
import numpy.typing as npt

from ..config.parameters import StreamConfig
from ..core.structures import ProjectedMicroCluster
from ..models.neighborhood import NeighborhoodEngine, PreferencePoint
from ..models.expansion import DensityExpansion
from .context import StreamContext

logger = logging.getLogger(__name__)


class OfflinePhase:
    """
    Cold-start phase.

    Runs density expansion over the buffered raw points and turns every
    density-connected group into one projected micro-cluster.

    Attributes:
        config: Algorithm configuration
        engine: Neighborhood engine over raw points (epsilon, mu, tau = pi)
        expansion: Density expansion with tau = pi
    """

    def __init__(self, config: StreamConfig):
        self.config = config
        self.engine = NeighborhoodEngine(
            epsilon=config.epsilon,
            mu=config.mu,
            delta=config.delta,
            kappa=config.kappa,
            tau=config.pi,
        )
        self.expansion = DensityExpansion(tau=config.pi)

    def train(
        self,
        points: Sequence[npt.NDArray[np.float64]],
        timestamp: int,
        context: StreamContext,
    ) -> Tuple[List[ProjectedMicroCluster], List[ProjectedMicroCluster]]:
        """
        Build the initial pools.

        Each group becomes a micro-cluster seeded with its first member, the
        other members inserted at ``timestamp``. Groups that are potential
        cores go to the potential pool, the rest to the outlier pool. Noise
        points are dropped.

        Args:
            points: Buffered feature vectors in arrival order
            timestamp: Current tick
            context: Stream context for micro-cluster ids

        Returns:
            Tuple of (potential, outlier)
        """
        annotated = [PreferencePoint.from_point(p, i) for i, p in enumerate(points)]
        self.engine.preprocess_all(annotated)
        result = self.expansion.run(annotated)

        potential: List[ProjectedMicroCluster] = []
        outlier: List[ProjectedMicroCluster] = []
        params = self.config.projection_params()

        for members in result.clusters:
            cluster = ProjectedMicroCluster.from_point(
                members[0].center,
                timestamp,
                self.config.decay_rate,
                cluster_id=context.allocate_micro_id(),
                **params,
            )
            for member in members[1:]:
                cluster.insert(member.center, timestamp)

            if cluster.is_potential_core():
                potential.append(cluster)
            else:
                outlier.append(cluster)

        logger.info(
            f"Cold start at t={timestamp} over {len(points)} points: "
            f"{len(potential)} potential, {len(outlier)} outlier, "
            f"{len(result.noise)} noise dropped"
        )
        return potential, outlier

"""
Subspace preference neighborhoods for density expansion.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union
import numpy as np
import numpy.typing as npt

from ..core.structures import ProjectedMicroCluster
from ..core.distance import batch_euclidean_distance, batch_preference_weighted_distance
from ..core.errors import EmptyNeighborhoodDegeneracy

logger = logging.getLogger(__name__)


class PointStatus(Enum):
    """Expansion state of a preference point."""

    UNCLASSIFIED = 0
    CLASSIFIED = 1
    NOISE = 2


class PreferencePoint:
    """
    Raw point or potential micro-cluster annotated for one expansion run.

    Both kinds expose the same capabilities (center, weight, linear sum,
    preference vector), so expansion never inspects what it wraps. A raw
    point has weight 1 and is its own linear sum.

    Attributes:
        source: Wrapped feature vector or micro-cluster
        key: Micro-cluster id, or input index for raw points
        status: Expansion state
        neighborhood: Plain epsilon-neighbors
        weighted_neighborhood: Preference-weighted epsilon-neighbors
        preference_vector: Per-dimension weights in {1, kappa}
        num_relevant_dims: Number of dimensions weighted kappa
        weighted_neighborhood_weight: Sum of weighted neighbor weights
        is_core: Preference-core flag
        classifiable: False when the neighborhood statistics were degenerate
        preprocessed: Whether the annotations have been computed
    """

    def __init__(
        self,
        source: Union[npt.NDArray[np.float64], ProjectedMicroCluster],
        key: int,
        center: npt.NDArray[np.float64],
        weight: float,
        linear_sum: npt.NDArray[np.float64],
    ):
        self.source = source
        self.key = key
        self._center = center
        self._weight = weight
        self._linear_sum = linear_sum

        self.status = PointStatus.UNCLASSIFIED
        self.neighborhood: List["PreferencePoint"] = []
        self.weighted_neighborhood: List["PreferencePoint"] = []
        self.preference_vector = np.ones_like(center)
        self.num_relevant_dims = 0
        self.weighted_neighborhood_weight = 0.0
        self.is_core = False
        self.classifiable = True
        self.preprocessed = False

    @classmethod
    def from_cluster(cls, cluster: ProjectedMicroCluster) -> "PreferencePoint":
        """Wrap a micro-cluster, reading its statistics once."""
        return cls(
            source=cluster,
            key=cluster.cluster_id,
            center=cluster.center(),
            weight=float(cluster.weight),
            linear_sum=cluster.linear_sum.copy(),
        )

    @classmethod
    def from_point(cls, point: npt.NDArray[np.float64], key: int) -> "PreferencePoint":
        """Wrap a raw feature vector with weight 1."""
        point = np.asarray(point, dtype=np.float64)
        return cls(source=point, key=key, center=point, weight=1.0, linear_sum=point)

    @property
    def center(self) -> npt.NDArray[np.float64]:
        return self._center

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def linear_sum(self) -> npt.NDArray[np.float64]:
        return self._linear_sum

    @property
    def is_cluster(self) -> bool:
        """Whether this wraps a micro-cluster rather than a raw point."""
        return isinstance(self.source, ProjectedMicroCluster)

    def core_state(self) -> Tuple[bool, Tuple[float, ...]]:
        """Core flag and preference vector, for change detection."""
        return self.is_core, tuple(self.preference_vector.tolist())

    def copy_annotations(self, other: "PreferencePoint") -> None:
        """Take the preprocessing results of ``other`` (neighbors excluded)."""
        self.preference_vector = other.preference_vector.copy()
        self.num_relevant_dims = other.num_relevant_dims
        self.weighted_neighborhood_weight = other.weighted_neighborhood_weight
        self.is_core = other.is_core
        self.classifiable = other.classifiable
        self.preprocessed = other.preprocessed

    def mark_unclassifiable(self) -> None:
        """Neutral preferences, not core, never expanded."""
        self.preference_vector = np.ones_like(self._center)
        self.num_relevant_dims = 0
        self.neighborhood = []
        self.weighted_neighborhood = []
        self.weighted_neighborhood_weight = 0.0
        self.is_core = False
        self.classifiable = False
        self.preprocessed = True

    def __repr__(self) -> str:
        return (
            f"PreferencePoint(key={self.key}, status={self.status.name}, "
            f"core={self.is_core}, relevant={self.num_relevant_dims})"
        )


class NeighborhoodEngine:
    """
    Computes neighborhoods, subspace preferences and the core test.

    A point's preference vector comes from the variance of its plain
    epsilon-neighborhood around its own center. Its weighted neighborhood
    then holds every candidate within ``epsilon`` under the maximum of both
    asymmetric preference-weighted distances, so it is symmetric.

    Attributes:
        epsilon: Neighborhood radius
        mu: Minimum weighted-neighborhood weight of a core point
        delta: Variance threshold of a relevant dimension
        kappa: Preference weight of a relevant dimension
        tau: Maximum relevant dimensions of a core point
    """

    def __init__(self, epsilon: float, mu: float, delta: float, kappa: float, tau: int):
        self.epsilon = epsilon
        self.mu = mu
        self.delta = delta
        self.kappa = kappa
        self.tau = tau

    def preprocess(
        self, point: PreferencePoint, candidates: Sequence[PreferencePoint]
    ) -> PreferencePoint:
        """
        Annotate one point against a candidate set.

        Candidates must already carry preference vectors, since the weighted
        neighborhood uses both directions.

        Args:
            point: Point to annotate
            candidates: Points it may neighbor

        Returns:
            The annotated point
        """
        centers = _centers(candidates)
        if self.compute_preference(point, candidates, centers):
            self.compute_weighted_neighborhood(point, candidates, centers)
        return point

    def preprocess_all(self, points: Sequence[PreferencePoint]) -> List[PreferencePoint]:
        """
        Annotate every point against the whole set.

        All preference vectors are computed before any weighted
        neighborhood, so the result does not depend on input order.

        Args:
            points: Points in input order

        Returns:
            The same points, annotated
        """
        if not points:
            return []

        centers = _centers(points)
        valid = [p for p in points if self.compute_preference(p, points, centers)]
        preferences = np.vstack([p.preference_vector for p in points])
        for p in valid:
            self.compute_weighted_neighborhood(p, points, centers, preferences)

        n_core = sum(1 for p in points if p.is_core)
        logger.debug(f"Preprocessed {len(points)} points, {n_core} core")
        return list(points)

    def compute_preference(
        self,
        point: PreferencePoint,
        candidates: Sequence[PreferencePoint],
        centers: Optional[npt.NDArray[np.float64]] = None,
    ) -> bool:
        """
        Plain neighborhood and preference vector of ``point``.

        Returns:
            False when the neighborhood was empty and the point was marked
            unclassifiable
        """
        if centers is None:
            centers = _centers(candidates)

        try:
            mask = self._plain_mask(point, centers)
            variance = self.neighborhood_variance(point.center, centers[mask])
        except EmptyNeighborhoodDegeneracy as exc:
            logger.debug(f"Point {point.key} not classifiable: {exc}")
            point.mark_unclassifiable()
            return False

        point.neighborhood = [c for c, hit in zip(candidates, mask) if hit]
        relevant = variance <= self.delta
        point.preference_vector = np.where(relevant, self.kappa, 1.0)
        point.num_relevant_dims = int(np.count_nonzero(relevant))
        point.classifiable = True
        return True

    def compute_weighted_neighborhood(
        self,
        point: PreferencePoint,
        candidates: Sequence[PreferencePoint],
        centers: Optional[npt.NDArray[np.float64]] = None,
        preferences: Optional[npt.NDArray[np.float64]] = None,
    ) -> None:
        """Weighted neighborhood, its weight and the core flag of ``point``."""
        if not point.classifiable:
            return
        if centers is None:
            centers = _centers(candidates)
        if preferences is None:
            preferences = np.vstack([c.preference_vector for c in candidates])

        distances = batch_preference_weighted_distance(
            centers, preferences, point.center, point.preference_vector
        )
        point.weighted_neighborhood = [
            c for c, d in zip(candidates, distances) if d <= self.epsilon
        ]
        point.weighted_neighborhood_weight = float(
            sum(c.weight for c in point.weighted_neighborhood)
        )
        point.is_core = (
            point.weighted_neighborhood_weight >= self.mu
            and point.num_relevant_dims <= self.tau
        )
        point.preprocessed = True

    def neighborhood_variance(
        self, center: npt.NDArray[np.float64], neighbor_centers: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        """
        Mean squared deviation of the neighbors from ``center``, per dimension.

        Raises:
            EmptyNeighborhoodDegeneracy: If there are no neighbors
        """
        if len(neighbor_centers) == 0:
            raise EmptyNeighborhoodDegeneracy("empty epsilon-neighborhood")
        diff = neighbor_centers - center
        return np.mean(diff * diff, axis=0)

    def _plain_mask(
        self, point: PreferencePoint, centers: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.bool_]:
        if len(centers) == 0:
            raise EmptyNeighborhoodDegeneracy("no candidates")
        return batch_euclidean_distance(centers, point.center) <= self.epsilon


def _centers(points: Sequence[PreferencePoint]) -> npt.NDArray[np.float64]:
    if not points:
        return np.empty((0, 0))
    return np.vstack([p.center for p in points])

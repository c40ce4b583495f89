"""
Core data structures for subspace-stream.
"""

import copy
from dataclasses import dataclass, field
from typing import Tuple
import numpy as np
import numpy.typing as npt

from .decay import decayed_sum, decayed_weight
from .errors import EmptyNeighborhoodDegeneracy, InvalidTimestamp


@dataclass
class StreamPoint:
    """
    Represents a data point read from a stream source.

    Attributes:
        point: Feature vector (excludes class label)
        label: Ground truth class label, -1 if unknown
        timestamp: Arrival index in the source
    """

    point: npt.NDArray[np.float64]
    label: float = -1.0
    timestamp: int = 0

    def __post_init__(self):
        """Ensure point is numpy array."""
        if not isinstance(self.point, np.ndarray):
            self.point = np.array(self.point, dtype=np.float64)

    @classmethod
    def from_array(
        cls, data: npt.NDArray[np.float64], has_label: bool = True, timestamp: int = 0
    ) -> "StreamPoint":
        """
        Create StreamPoint from array where last column is label.

        Args:
            data: Array with features and optional label
            has_label: Whether last column contains label
            timestamp: Arrival index

        Returns:
            StreamPoint instance
        """
        if has_label:
            return cls(point=data[:-1], label=float(data[-1]), timestamp=timestamp)
        return cls(point=data, timestamp=timestamp)

    @property
    def n_features(self) -> int:
        """Number of features."""
        return len(self.point)


@dataclass(eq=False)
class MicroCluster:
    """
    Decayed sufficient statistics of a group of recent stream points.

    The statistics are aged lazily: every read or insert at tick ``t`` is
    preceded by ``decay_to(t)``, which applies the decay for the ticks
    elapsed since ``last_edit_time`` exactly once.

    Attributes:
        linear_sum: Decayed per-dimension sum of points (LS)
        squared_sum: Decayed per-dimension sum of squared points (SS)
        weight: Decayed number of points
        decay_rate: Decay rate lambda
        creation_time: Tick of creation
        last_edit_time: Tick up to which the statistics are decayed
        cluster_id: Engine-wide unique identifier
    """

    linear_sum: npt.NDArray[np.float64]
    squared_sum: npt.NDArray[np.float64]
    weight: float
    decay_rate: float
    creation_time: int = 0
    last_edit_time: int = 0
    cluster_id: int = -1

    @classmethod
    def from_point(
        cls,
        point: npt.NDArray[np.float64],
        timestamp: int,
        decay_rate: float,
        cluster_id: int = -1,
        **params,
    ) -> "MicroCluster":
        """Create a cluster holding exactly one point with weight 1."""
        point = np.asarray(point, dtype=np.float64)
        return cls(
            linear_sum=point.copy(),
            squared_sum=point * point,
            weight=1.0,
            decay_rate=decay_rate,
            creation_time=timestamp,
            last_edit_time=timestamp,
            cluster_id=cluster_id,
            **params,
        )

    def decay_to(self, timestamp: int) -> None:
        """
        Age the statistics up to ``timestamp`` without inserting.

        Args:
            timestamp: Current tick

        Raises:
            InvalidTimestamp: If ``timestamp`` precedes the last edit
        """
        if timestamp < self.last_edit_time:
            raise InvalidTimestamp(timestamp, self.last_edit_time)
        if timestamp == self.last_edit_time:
            return

        elapsed = timestamp - self.last_edit_time
        self.weight = decayed_weight(self.weight, self.decay_rate, elapsed)
        self.linear_sum = decayed_sum(self.linear_sum, self.decay_rate, elapsed)
        self.squared_sum = decayed_sum(self.squared_sum, self.decay_rate, elapsed)
        self.last_edit_time = timestamp

    def insert(self, point: npt.NDArray[np.float64], timestamp: int) -> None:
        """
        Add one point at ``timestamp``.

        Args:
            point: Feature vector
            timestamp: Current tick
        """
        self.decay_to(timestamp)
        self.weight += 1.0
        self.linear_sum += point
        self.squared_sum += point * point

    def is_faded(self) -> bool:
        """Whether the weight has decayed to zero, leaving no center."""
        return not self.weight > 0

    def _check_weight(self) -> None:
        if self.is_faded():
            raise EmptyNeighborhoodDegeneracy(
                f"micro-cluster {self.cluster_id} has weight {self.weight}"
            )

    def center(self) -> npt.NDArray[np.float64]:
        """Weighted mean of the summarized points."""
        self._check_weight()
        return self.linear_sum / self.weight

    def variance(self) -> npt.NDArray[np.float64]:
        """Per-dimension variance. May be slightly negative from cancellation."""
        self._check_weight()
        mean = self.linear_sum / self.weight
        return self.squared_sum / self.weight - mean * mean

    def radius(self) -> float:
        """
        Largest per-dimension standard deviation.

        When no dimension has a positive variance, falls back to a
        norm-based global estimate so the radius does not collapse to zero
        through cancellation alone.
        """
        variance = self.variance()
        non_negative = variance[variance >= 0]
        bound = float(np.sqrt(non_negative).max()) if non_negative.size else 0.0
        if bound > 0:
            return bound

        ls_norm = np.linalg.norm(self.linear_sum)
        ss_norm = np.linalg.norm(self.squared_sum)
        return float(np.sqrt(abs(ss_norm / self.weight - (ls_norm / self.weight) ** 2)))

    def copy(self) -> "MicroCluster":
        """Independent copy, used for tentative insertions and snapshots."""
        return copy.deepcopy(self)

    @property
    def n_features(self) -> int:
        """Number of features."""
        return len(self.linear_sum)


@dataclass(eq=False)
class ProjectedMicroCluster(MicroCluster):
    """
    Micro-cluster with a subspace preference derived from its own variance.

    A dimension is relevant when its projected variance is at most
    ``delta``; relevant dimensions carry preference weight ``kappa``, the
    others weight 1. Every derived quantity is recomputed from the current
    statistics on each call.

    Attributes:
        epsilon: Maximum projected radius
        mu: Core weight threshold
        beta: Potential-core factor applied to ``mu``
        delta: Variance threshold for relevant dimensions
        kappa: Preference weight of relevant dimensions
        pi: Maximum number of relevant dimensions
    """

    epsilon: float = 1.0
    mu: float = 1.0
    beta: float = 1.0
    delta: float = 0.001
    kappa: float = 10.0
    pi: int = 30

    def _projected_variance(self) -> npt.NDArray[np.float64]:
        return np.maximum(self.variance(), 0.0)

    def preference_vector(self) -> npt.NDArray[np.float64]:
        """Per-dimension preference weights in {1, kappa}."""
        return np.where(self._projected_variance() <= self.delta, self.kappa, 1.0)

    def num_relevant_dims(self) -> int:
        """Number of dimensions with projected variance <= delta."""
        return int(np.count_nonzero(self._projected_variance() <= self.delta))

    def projected_radius(self) -> float:
        """
        Preference-weighted radius.

        Uses only the positive terms when cancellation makes the full sum
        non-positive.
        """
        terms = self.variance() / self.preference_vector()
        total = float(terms.sum())
        if total > 0:
            return float(np.sqrt(total))
        return float(np.sqrt(terms[terms > 0].sum()))

    def projected_distance(self, point: npt.NDArray[np.float64]) -> float:
        """Preference-weighted distance from ``point`` to the center."""
        diff = point - self.center()
        return float(np.sqrt(np.sum(diff * diff / self.preference_vector())))

    def _is_dense(self, min_weight: float) -> bool:
        try:
            return (
                self.projected_radius() <= self.epsilon
                and self.weight >= min_weight
                and self.num_relevant_dims() <= self.pi
            )
        except EmptyNeighborhoodDegeneracy:
            return False

    def is_core(self) -> bool:
        """Compact, heavy (weight >= mu) and low-dimensional."""
        return self._is_dense(self.mu)

    def is_potential_core(self) -> bool:
        """Compact, weight >= beta * mu and low-dimensional."""
        return self._is_dense(self.beta * self.mu)

    def is_outlier(self) -> bool:
        """Compact but too light or too high-dimensional to be a potential core."""
        try:
            if self.projected_radius() > self.epsilon:
                return False
            return (
                self.weight < self.beta * self.mu
                or self.num_relevant_dims() > self.pi
            )
        except EmptyNeighborhoodDegeneracy:
            return False

    def is_expired(self, timestamp: int, t_span: int) -> bool:
        """
        Whether the weight fell below the expected lower bound.

        A cluster below this bound cannot become a potential core even if it
        received a point every tick from now on.

        Args:
            timestamp: Current tick
            t_span: Pruning period in ticks

        Returns:
            True if the cluster may be deleted
        """
        lam = self.decay_rate
        expected = (2.0 ** (-lam * (timestamp - self.creation_time + t_span)) - 1.0) / (
            2.0 ** (-lam * t_span) - 1.0
        )
        return self.weight < expected


@dataclass(frozen=True, eq=False)
class OfflineCluster:
    """
    Density-connected union of micro-clusters (macro-cluster).

    Immutable after creation. A later reclustering pass that touches any of
    its members replaces it with new clusters instead of editing it.

    Attributes:
        cluster_id: Strictly increasing identifier
        member_ids: Identifiers of the member micro-clusters (or input indices)
        weight: Sum of member weights
        center: Sum of member linear sums divided by ``weight``
        relevant_dims: Dimensions relevant for the weight majority of members
        created_at: Tick of creation
    """

    cluster_id: int
    member_ids: Tuple[int, ...]
    weight: float
    center: npt.NDArray[np.float64] = field(repr=False)
    relevant_dims: Tuple[int, ...] = ()
    created_at: int = 0

    @property
    def n_members(self) -> int:
        """Number of members."""
        return len(self.member_ids)

    def is_relevant(self, dim: int) -> bool:
        """Whether ``dim`` belongs to the cluster's subspace."""
        return dim in self.relevant_dims

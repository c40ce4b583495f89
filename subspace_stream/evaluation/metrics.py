"""
External clustering quality measures for subspace-stream evaluation.
"""

from dataclasses import dataclass
from typing import Dict, Iterable
import numpy as np
import numpy.typing as npt
from scipy.spatial.distance import cdist
from scipy.stats import entropy as shannon_entropy
from sklearn.metrics import rand_score
from sklearn.metrics.cluster import contingency_matrix

from ..core.structures import OfflineCluster, ProjectedMicroCluster

NOISE = -1


@dataclass
class ClusteringMetrics:
    """Quality of the macro-clustering over one evaluation window."""

    timestamp: int
    purity: float
    entropy: float
    rand_statistic: float
    n_points: int
    n_micro: int
    n_macro: int
    noise_ratio: float


def assign_points(
    points: npt.NDArray[np.float64],
    micro_clusters: Iterable[ProjectedMicroCluster],
    macro_clusters: Iterable[OfflineCluster],
    radius_factor: float = 2.0,
) -> npt.NDArray[np.int64]:
    """
    Label each point with the offline cluster of its nearest covering member.

    A member micro-cluster covers a point within ``radius_factor`` times
    its radius. Points covered by no member are labelled -1.

    Args:
        points: Array of shape (n_samples, n_features)
        micro_clusters: Micro-clusters of both pools; faded ones cover nothing
        macro_clusters: Offline clusters referencing them by id
        radius_factor: Coverage multiplier

    Returns:
        Integer labels of shape (n_samples,)
    """
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))
    labels = np.full(len(points), NOISE, dtype=np.int64)

    owner: Dict[int, int] = {}
    for macro in macro_clusters:
        for member_id in macro.member_ids:
            owner[member_id] = macro.cluster_id

    members = [
        mc for mc in micro_clusters if mc.cluster_id in owner and not mc.is_faded()
    ]
    if not members or len(points) == 0:
        return labels

    centers = np.vstack([mc.center() for mc in members])
    reach = radius_factor * np.array(
        [max(mc.radius(), mc.projected_radius()) for mc in members]
    )
    macro_ids = np.array([owner[mc.cluster_id] for mc in members])

    distances = cdist(points, centers)
    nearest = np.argmin(distances, axis=1)
    covered = distances[np.arange(len(points)), nearest] <= reach[nearest]
    labels[covered] = macro_ids[nearest[covered]]
    return labels


def purity(labels_true: npt.ArrayLike, labels_pred: npt.ArrayLike) -> float:
    """
    Fraction of clustered points that belong to their cluster's majority class.

    Noise points are ignored. 0.0 when nothing is clustered.
    """
    labels_true, labels_pred = _clustered(labels_true, labels_pred)
    if labels_pred.size == 0:
        return 0.0
    contingency = contingency_matrix(labels_true, labels_pred)
    return float(contingency.max(axis=0).sum() / contingency.sum())


def entropy(labels_true: npt.ArrayLike, labels_pred: npt.ArrayLike) -> float:
    """
    Size-weighted mean class entropy (base 2) of the clusters.

    Noise points are ignored. 0.0 when nothing is clustered.
    """
    labels_true, labels_pred = _clustered(labels_true, labels_pred)
    if labels_pred.size == 0:
        return 0.0
    contingency = contingency_matrix(labels_true, labels_pred)
    sizes = contingency.sum(axis=0)
    per_cluster = np.array(
        [shannon_entropy(contingency[:, j], base=2) for j in range(contingency.shape[1])]
    )
    return float(np.dot(sizes, per_cluster) / sizes.sum())


def rand_statistic(labels_true: npt.ArrayLike, labels_pred: npt.ArrayLike) -> float:
    """Rand index over all points, noise counted as one more cluster."""
    labels_true = np.asarray(labels_true)
    if labels_true.size == 0:
        return 0.0
    return float(rand_score(labels_true, np.asarray(labels_pred)))


def evaluate(
    points: npt.NDArray[np.float64],
    labels_true: npt.ArrayLike,
    micro_clusters: Iterable[ProjectedMicroCluster],
    macro_clusters: Iterable[OfflineCluster],
    timestamp: int,
    radius_factor: float = 2.0,
) -> ClusteringMetrics:
    """
    Score the macro-clustering against ground truth labels.

    Args:
        points: Evaluation window of shape (n_samples, n_features)
        labels_true: Ground truth labels of the window
        micro_clusters: Micro-clusters referenced by the offline clusters
        macro_clusters: Offline clusters
        timestamp: Tick of the evaluation
        radius_factor: Coverage multiplier for point assignment

    Returns:
        ClusteringMetrics
    """
    micro_clusters = list(micro_clusters)
    macro_clusters = list(macro_clusters)
    labels_pred = assign_points(points, micro_clusters, macro_clusters, radius_factor)
    n_points = len(labels_pred)

    return ClusteringMetrics(
        timestamp=timestamp,
        purity=purity(labels_true, labels_pred),
        entropy=entropy(labels_true, labels_pred),
        rand_statistic=rand_statistic(labels_true, labels_pred),
        n_points=n_points,
        n_micro=len(micro_clusters),
        n_macro=len(macro_clusters),
        noise_ratio=float(np.mean(labels_pred == NOISE)) if n_points else 0.0,
    )


def _clustered(labels_true: npt.ArrayLike, labels_pred: npt.ArrayLike):
    labels_true = np.asarray(labels_true)
    labels_pred = np.asarray(labels_pred)
    mask = labels_pred != NOISE
    return labels_true[mask], labels_pred[mask]

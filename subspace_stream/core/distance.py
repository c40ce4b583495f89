"""
Distance metrics for subspace-stream.
"""

import numpy as np
import numpy.typing as npt


def asymmetric_distance(
    center_a: npt.NDArray[np.float64],
    preference_a: npt.NDArray[np.float64],
    center_b: npt.NDArray[np.float64],
) -> float:
    """
    Distance from a to b weighted by a's subspace preference vector.

    Args:
        center_a: Center of the first object
        preference_a: Preference vector of the first object
        center_b: Center of the second object

    Returns:
        ``sqrt(sum_d preference_a[d] * (a[d] - b[d])^2)``

    Examples:
        >>> asymmetric_distance(np.array([0.0, 0.0]), np.array([4.0, 1.0]), np.array([1.0, 0.0]))
        2.0
    """
    diff = center_a - center_b
    return float(np.sqrt(np.sum(preference_a * diff * diff)))


def preference_weighted_distance(
    center_a: npt.NDArray[np.float64],
    preference_a: npt.NDArray[np.float64],
    center_b: npt.NDArray[np.float64],
    preference_b: npt.NDArray[np.float64],
) -> float:
    """
    Symmetric preference-weighted distance.

    The maximum of both asymmetric directions, so the resulting
    neighborhood relation is symmetric.
    """
    return max(
        asymmetric_distance(center_a, preference_a, center_b),
        asymmetric_distance(center_b, preference_b, center_a),
    )


def batch_euclidean_distance(
    points: npt.NDArray[np.float64], centroid: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Calculate Euclidean distances from multiple points to a centroid.

    Args:
        points: Array of shape (n_samples, n_features)
        centroid: Center point of shape (n_features,)

    Returns:
        Array of distances of shape (n_samples,)
    """
    return np.sqrt(np.sum((points - centroid) ** 2, axis=1))


def batch_preference_weighted_distance(
    centers: npt.NDArray[np.float64],
    preferences: npt.NDArray[np.float64],
    center: npt.NDArray[np.float64],
    preference: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """
    Symmetric preference-weighted distances from one object to many.

    Same value as ``preference_weighted_distance`` for every row.

    Args:
        centers: Array of shape (n_samples, n_features)
        preferences: Preference vectors of shape (n_samples, n_features)
        center: Center of the reference object
        preference: Preference vector of the reference object

    Returns:
        Array of distances of shape (n_samples,)
    """
    sq = (centers - center) ** 2
    outgoing = np.sqrt(np.sum(preference * sq, axis=1))
    incoming = np.sqrt(np.sum(preferences * sq, axis=1))
    return np.maximum(outgoing, incoming)

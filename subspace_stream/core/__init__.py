"""Core data structures and functions."""
from .structures import StreamPoint, MicroCluster, ProjectedMicroCluster, OfflineCluster
from .decay import decay_factor, decayed_weight, decayed_sum
from .distance import (
    asymmetric_distance,
    preference_weighted_distance,
    batch_euclidean_distance,
    batch_preference_weighted_distance,
)
from .errors import (
    SubspaceStreamError,
    ConfigurationError,
    InvalidTimestamp,
    MalformedPoint,
    DimensionMismatch,
    EmptyNeighborhoodDegeneracy,
)

__all__ = [
    'StreamPoint',
    'MicroCluster',
    'ProjectedMicroCluster',
    'OfflineCluster',
    'decay_factor',
    'decayed_weight',
    'decayed_sum',
    'asymmetric_distance',
    'preference_weighted_distance',
    'batch_euclidean_distance',
    'batch_preference_weighted_distance',
    'SubspaceStreamError',
    'ConfigurationError',
    'InvalidTimestamp',
    'MalformedPoint',
    'DimensionMismatch',
    'EmptyNeighborhoodDegeneracy',
]

"""Evaluation."""
from .metrics import (
    ClusteringMetrics,
    assign_points,
    purity,
    entropy,
    rand_statistic,
    evaluate,
)

__all__ = [
    'ClusteringMetrics',
    'assign_points',
    'purity',
    'entropy',
    'rand_statistic',
    'evaluate',
]

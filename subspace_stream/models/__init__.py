"""Density models: neighborhoods, expansion and reclustering."""

from .neighborhood import NeighborhoodEngine, PreferencePoint, PointStatus
from .expansion import DensityExpansion, ExpansionResult, build_offline_cluster
from .reclustering import IncrementalReclusterer

__all__ = [
    "NeighborhoodEngine",
    "PreferencePoint",
    "PointStatus",
    "DensityExpansion",
    "ExpansionResult",
    "build_offline_cluster",
    "IncrementalReclusterer",
]

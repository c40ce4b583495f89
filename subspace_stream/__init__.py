"""
Subspace-stream: Density-based subspace clustering over decaying data streams.
"""

__version__ = "0.1.0"

from .config.parameters import StreamConfig, ExperimentConfig
from .pipeline.stream_clusterer import (
    SubspaceStreamClusterer,
    MicroClusteringSnapshot,
    MacroClusteringSnapshot,
)

__all__ = [
    "StreamConfig",
    "ExperimentConfig",
    "SubspaceStreamClusterer",
    "MicroClusteringSnapshot",
    "MacroClusteringSnapshot",
]

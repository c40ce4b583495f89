"""Processing pipeline."""
from .context import StreamContext, TickStats
from .offline_phase import OfflinePhase
from .online_phase import OnlinePhase
from .stream_clusterer import (
    SubspaceStreamClusterer,
    MicroClusteringSnapshot,
    MacroClusteringSnapshot,
)

__all__ = [
    'StreamContext',
    'TickStats',
    'OfflinePhase',
    'OnlinePhase',
    'SubspaceStreamClusterer',
    'MicroClusteringSnapshot',
    'MacroClusteringSnapshot',
]

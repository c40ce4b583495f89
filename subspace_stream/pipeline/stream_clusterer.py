"""
Public entry point: the streaming subspace clusterer.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union
import numpy as np
import numpy.typing as npt

from ..config.parameters import StreamConfig
from ..core.structures import OfflineCluster, ProjectedMicroCluster, StreamPoint
from ..core.errors import DimensionMismatch, MalformedPoint
from ..models.neighborhood import NeighborhoodEngine
from ..models.expansion import DensityExpansion
from ..models.reclustering import IncrementalReclusterer
from .context import StreamContext
from .offline_phase import OfflinePhase
from .online_phase import OnlinePhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MicroClusteringSnapshot:
    """
    Copies of both pools at one tick.

    Attributes:
        timestamp: Tick of the snapshot
        potential: Potential micro-clusters
        outlier: Outlier micro-clusters
    """

    timestamp: int
    potential: Tuple[ProjectedMicroCluster, ...] = ()
    outlier: Tuple[ProjectedMicroCluster, ...] = ()

    def __iter__(self) -> Iterator[ProjectedMicroCluster]:
        yield from self.potential
        yield from self.outlier

    def __len__(self) -> int:
        return len(self.potential) + len(self.outlier)


@dataclass(frozen=True)
class MacroClusteringSnapshot:
    """
    The published offline clustering.

    Attributes:
        timestamp: Tick of the reclustering pass that produced it
        clusters: Offline clusters
    """

    timestamp: int
    clusters: Tuple[OfflineCluster, ...] = ()

    def __iter__(self) -> Iterator[OfflineCluster]:
        return iter(self.clusters)

    def __len__(self) -> int:
        return len(self.clusters)


class SubspaceStreamClusterer:
    """
    Two-level streaming subspace clusterer.

    Arrivals are summarized online into decayed projected micro-clusters.
    After every pruning pass the potential pool is reclustered
    incrementally and the result is published as a new immutable snapshot,
    so readers never observe a partial update.

    Example:
        >>> clusterer = SubspaceStreamClusterer(StreamConfig(init_points=0))
        >>> clusterer.train([0.1, 0.1], timestamp=0)
        >>> len(clusterer.micro_clustering())
        1

    Attributes:
        config: Algorithm configuration
        context: Stream context (tick, ids, counters)
        online: Online phase owning the pools
        offline: Cold-start phase
        reclusterer: Incremental offline reclustering
    """

    def __init__(self, config: Optional[StreamConfig] = None):
        self.config = config if config is not None else StreamConfig()
        self.context = StreamContext(processing_speed=self.config.processing_speed)

        self.online = OnlinePhase(self.config, self.context)
        self.offline = OfflinePhase(self.config)
        self.reclusterer = IncrementalReclusterer(
            NeighborhoodEngine(
                epsilon=self.config.offline_epsilon,
                mu=self.config.offline_mu,
                delta=self.config.delta,
                kappa=self.config.kappa,
                tau=self.config.offline_tau,
            ),
            DensityExpansion(tau=self.config.offline_tau),
        )

        self._lock = threading.RLock()
        self._buffer: List[npt.NDArray[np.float64]] = []
        self._initialized = self.config.init_points == 0
        self._dimensions = self.config.dimensions
        self._macro = MacroClusteringSnapshot(timestamp=0)

    @property
    def initialized(self) -> bool:
        """Whether the cold start has completed."""
        return self._initialized

    @property
    def current_timestamp(self) -> int:
        return self.context.timestamp

    @property
    def dimensions(self) -> Optional[int]:
        """Configured or inferred dimensionality, None before the first point."""
        return self._dimensions

    def train(
        self,
        point: Union[npt.ArrayLike, StreamPoint],
        timestamp: Optional[int] = None,
    ) -> None:
        """
        Feed one stream point.

        Without a timestamp the clock advances one tick every
        ``processing_speed`` arrivals.

        Args:
            point: Feature vector or StreamPoint
            timestamp: Tick of the arrival

        Raises:
            MalformedPoint: Non-numeric, non-finite or not one-dimensional
            DimensionMismatch: Wrong number of features
            InvalidTimestamp: Older than the current tick
        """
        with self._lock:
            vector = self._validate(point)
            if timestamp is None:
                timestamp = self.context.next_timestamp()
            self.context.check_timestamp(timestamp)

            if self._dimensions is None:
                self._dimensions = len(vector)
            self.context.advance_to(timestamp)
            self.context.register_arrival()

            if not self._initialized:
                self._buffer.append(vector)
                if len(self._buffer) >= self.config.init_points:
                    self._cold_start(timestamp)
                return

            if self.online.process(vector, timestamp):
                self._recluster()

    def advance(self, timestamp: int) -> None:
        """
        Move the clock to ``timestamp`` without an arrival.

        Pools are aged and pruned as if the stream had been idle.

        Raises:
            InvalidTimestamp: Older than the current tick
        """
        with self._lock:
            self.context.advance_to(timestamp)
            if self._initialized and self.online.advance(timestamp):
                self._recluster()

    def recluster(self) -> MacroClusteringSnapshot:
        """Run a maintenance pass now and return the published snapshot."""
        with self._lock:
            if self._initialized:
                self._recluster()
            return self._macro

    def micro_clustering(self) -> MicroClusteringSnapshot:
        """Read-only copies of both pools."""
        with self._lock:
            return MicroClusteringSnapshot(
                timestamp=self.context.timestamp,
                potential=tuple(c.copy() for c in self.online.potential),
                outlier=tuple(c.copy() for c in self.online.outlier),
            )

    def macro_clustering(self) -> MacroClusteringSnapshot:
        """Latest published offline clustering."""
        return self._macro

    def _validate(self, point: Union[npt.ArrayLike, StreamPoint]) -> npt.NDArray[np.float64]:
        if isinstance(point, StreamPoint):
            point = point.point
        try:
            vector = np.array(point, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise MalformedPoint(f"point is not numeric: {exc}") from exc

        if vector.ndim != 1 or vector.size == 0:
            raise MalformedPoint(f"point must be a non-empty vector, got shape {vector.shape}")
        if not np.all(np.isfinite(vector)):
            raise MalformedPoint("point contains NaN or infinite values")
        if self._dimensions is not None and len(vector) != self._dimensions:
            raise DimensionMismatch(self._dimensions, len(vector))
        return vector

    def _cold_start(self, timestamp: int) -> None:
        potential, outlier = self.offline.train(self._buffer, timestamp, self.context)
        self._buffer = []
        self._initialized = True
        self.online.seed(potential, outlier)
        self._recluster()

    def _recluster(self) -> None:
        inserted, deleted = self.online.take_changes()
        clusters = self.reclusterer.update(
            self.online.potential, inserted, deleted, self.context
        )
        self._macro = MacroClusteringSnapshot(
            timestamp=self.context.timestamp, clusters=clusters
        )

"""
Per-engine stream state: the current tick, id counters and tick counters.
"""

import logging
from dataclasses import dataclass, field

from ..core.errors import InvalidTimestamp

logger = logging.getLogger(__name__)


@dataclass
class TickStats:
    """
    Counters for what happened to the pools during one tick.

    Attributes:
        included_potential: Points merged into a potential micro-cluster
        included_outlier: Points merged into an outlier micro-cluster
        created: New outlier micro-clusters
        deleted: Expired outlier micro-clusters
        promoted: Outlier to potential transitions
        demoted: Potential to outlier transitions
    """

    included_potential: int = 0
    included_outlier: int = 0
    created: int = 0
    deleted: int = 0
    promoted: int = 0
    demoted: int = 0

    def reset(self) -> None:
        self.included_potential = 0
        self.included_outlier = 0
        self.created = 0
        self.deleted = 0
        self.promoted = 0
        self.demoted = 0

    def summary(self) -> str:
        return (
            f"included potential={self.included_potential} "
            f"outlier={self.included_outlier} | created={self.created} "
            f"deleted={self.deleted} promoted={self.promoted} demoted={self.demoted}"
        )


@dataclass
class StreamContext:
    """
    Mutable state threaded through one engine instance.

    Attributes:
        processing_speed: Arrivals per tick when no timestamp is supplied
        timestamp: Current tick
        arrivals_in_tick: Arrivals registered at the current tick
        last_pruned: Tick of the latest pruning pass
        next_micro_id: Next micro-cluster id
        next_macro_id: Next offline cluster id
        stats: Counters of the current tick
    """

    processing_speed: int = 1
    timestamp: int = 0
    arrivals_in_tick: int = 0
    last_pruned: int = 0
    next_micro_id: int = 0
    next_macro_id: int = 0
    stats: TickStats = field(default_factory=TickStats)

    def allocate_micro_id(self) -> int:
        """Unique id for a new micro-cluster."""
        cluster_id = self.next_micro_id
        self.next_micro_id += 1
        return cluster_id

    def allocate_macro_id(self) -> int:
        """Strictly increasing id for a new offline cluster."""
        cluster_id = self.next_macro_id
        self.next_macro_id += 1
        return cluster_id

    def next_timestamp(self) -> int:
        """Tick of the next arrival when the caller supplies none."""
        if self.arrivals_in_tick >= self.processing_speed:
            return self.timestamp + 1
        return self.timestamp

    def check_timestamp(self, timestamp: int) -> None:
        """
        Raises:
            InvalidTimestamp: If ``timestamp`` is older than the current tick
        """
        if timestamp < self.timestamp:
            raise InvalidTimestamp(timestamp, self.timestamp)

    def advance_to(self, timestamp: int) -> None:
        """
        Move the clock forward, closing the current tick if it changes.

        Args:
            timestamp: New current tick
        """
        self.check_timestamp(timestamp)
        if timestamp == self.timestamp:
            return

        logger.debug(f"t={self.timestamp}: {self.stats.summary()}")
        self.stats.reset()
        self.timestamp = timestamp
        self.arrivals_in_tick = 0

    def register_arrival(self) -> None:
        self.arrivals_in_tick += 1

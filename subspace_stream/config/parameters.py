"""
Configuration parameters for subspace-stream.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from ..core.errors import ConfigurationError


@dataclass
class StreamConfig:
    """
    Complete configuration for the subspace stream clusterer.

    Online micro-clustering:
        epsilon: Maximum projected radius of a micro-cluster
        mu: Minimum weight of a core micro-cluster
        beta: Potential-core factor (potential if weight >= beta * mu)
        decay_rate: Decay rate lambda, weights age as 2^(-lambda * dt)
        pi: Maximum number of relevant dimensions of a micro-cluster

    Subspace preference:
        kappa: Preference weight of a relevant dimension
        delta: Variance threshold below which a dimension is relevant

    Offline reclustering:
        offline_factor: Multiplier for epsilon in the offline pass
        mu_offline: Minimum weighted-neighborhood weight (defaults to mu)
        tau: Maximum relevant dimensions of a core point (defaults to pi)

    Stream:
        init_points: Cold-start buffer size (0 disables cold start)
        processing_speed: Arrivals per tick when no timestamp is supplied
        t_span: Pruning period in ticks (derived when None)
        dimensions: Expected dimensionality (inferred when None)
    """

    # Online
    epsilon: float = 0.5
    mu: float = 10.0
    beta: float = 0.5
    decay_rate: float = 0.5
    pi: int = 30

    # Subspace preference
    kappa: float = 10.0
    delta: float = 0.001

    # Offline
    offline_factor: float = 2.0
    mu_offline: Optional[float] = None
    tau: Optional[int] = None

    # Stream
    init_points: int = 2000
    processing_speed: int = 100
    t_span: Optional[int] = None
    dimensions: Optional[int] = None

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check every option range.

        Raises:
            ConfigurationError: On the first out-of-range option
        """
        checks = [
            (self.epsilon > 0, "epsilon must be > 0"),
            (self.mu >= 1, "mu must be >= 1"),
            (0 < self.beta <= 1, "beta must be in (0, 1]"),
            (self.decay_rate > 0, "decay_rate must be > 0"),
            (self.pi >= 1, "pi must be >= 1"),
            (self.kappa > 1, "kappa must be > 1"),
            (self.delta > 0, "delta must be > 0"),
            (self.offline_factor >= 1, "offline_factor must be >= 1"),
            (
                self.mu_offline is None or self.mu_offline >= 1,
                "mu_offline must be >= 1",
            ),
            (self.tau is None or self.tau >= 1, "tau must be >= 1"),
            (self.init_points >= 0, "init_points must be >= 0"),
            (self.processing_speed >= 1, "processing_speed must be >= 1"),
            (self.t_span is None or self.t_span >= 1, "t_span must be >= 1"),
            (
                self.dimensions is None or self.dimensions >= 1,
                "dimensions must be >= 1",
            ),
        ]
        for ok, message in checks:
            if not ok:
                raise ConfigurationError(message)

    @property
    def offline_epsilon(self) -> float:
        """Neighborhood radius of the offline pass."""
        return self.epsilon * self.offline_factor

    @property
    def offline_mu(self) -> float:
        """Density threshold of the offline pass."""
        return self.mu if self.mu_offline is None else self.mu_offline

    @property
    def offline_tau(self) -> int:
        """Subspace size bound of the offline pass."""
        return self.pi if self.tau is None else self.tau

    def pruning_period(self) -> int:
        """
        Ticks between pruning passes.

        Derived as ``ceil(log2(beta*mu / (beta*mu - 1)) / lambda)``, the
        minimal time for a potential micro-cluster to fade into an outlier.
        Every tick when ``beta * mu <= 1``, since the bound is then undefined.
        """
        if self.t_span is not None:
            return self.t_span

        min_weight = self.beta * self.mu
        if min_weight <= 1:
            return 1
        period = math.ceil(
            (1.0 / self.decay_rate) * math.log2(min_weight / (min_weight - 1.0))
        )
        return max(1, period)

    def projection_params(self) -> dict:
        """Keyword arguments for ProjectedMicroCluster construction."""
        return {
            "epsilon": self.epsilon,
            "mu": self.mu,
            "beta": self.beta,
            "delta": self.delta,
            "kappa": self.kappa,
            "pi": self.pi,
        }

    @classmethod
    def from_dict(cls, config_dict: dict) -> "StreamConfig":
        """Create config from dictionary."""
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "epsilon": self.epsilon,
            "mu": self.mu,
            "beta": self.beta,
            "decay_rate": self.decay_rate,
            "pi": self.pi,
            "kappa": self.kappa,
            "delta": self.delta,
            "offline_factor": self.offline_factor,
            "mu_offline": self.mu_offline,
            "tau": self.tau,
            "init_points": self.init_points,
            "processing_speed": self.processing_speed,
            "t_span": self.t_span,
            "dimensions": self.dimensions,
        }


@dataclass
class ExperimentConfig:
    """
    Experiment setup for a single stream run.

    Attributes:
        dataset_path: Path to the stream file
        evaluation_interval: Evaluate every N arrivals
        window_size: Number of most recent labelled points evaluated
        base_config: Algorithm configuration
    """

    dataset_path: str
    evaluation_interval: int = 1000
    window_size: int = 1000
    base_config: StreamConfig = field(default_factory=StreamConfig)

import numpy as np
import pandas as pd

from subspace_stream import StreamConfig
from subspace_stream.config.parameters import ExperimentConfig
from subspace_stream.core.structures import StreamPoint
from subspace_stream.experiments.run_experiment import run_single_experiment


def make_stream():
    coords = [(0.1, 0.1, 0), (0.1, 0.11, 0), (9.0, 9.0, 1)]
    return [
        StreamPoint(np.array(c[:2]), label=float(c[2]), timestamp=i)
        for i, c in enumerate(coords)
    ]


def test_run_single_experiment_evaluates_both_pools(tmp_path):
    config = StreamConfig(
        epsilon=1.0, mu=3.0, beta=0.5, decay_rate=0.1, init_points=0, processing_speed=1
    )
    exp_config = ExperimentConfig(
        dataset_path="memory", evaluation_interval=3, window_size=3, base_config=config
    )

    metrics = run_single_experiment(make_stream(), exp_config, tmp_path)

    micro = pd.read_csv(tmp_path / "micro_clusters.csv")
    assert sorted(micro["Pool"]) == ["outlier", "potential"]
    assert metrics.n_micro == len(micro) == 2
    assert metrics.n_points == 3
    assert (tmp_path / "config.json").exists()

"""
Main experiment runner for subspace-stream.
"""

import argparse
import logging
from collections import deque
from pathlib import Path
from typing import List, Optional
import json
import time

import numpy as np

from subspace_stream.core.structures import StreamPoint
from subspace_stream.config.parameters import StreamConfig, ExperimentConfig
from subspace_stream.pipeline.stream_clusterer import SubspaceStreamClusterer
from subspace_stream.evaluation.metrics import ClusteringMetrics, evaluate
from subspace_stream.utils.io import (
    load_arff,
    load_csv,
    save_micro_clusters,
    save_macro_clusters,
    save_metrics,
)
from subspace_stream.utils.visualization import plot_clustering, plot_metrics

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def run_single_experiment(
    stream: List[StreamPoint],
    exp_config: ExperimentConfig,
    output_dir: Path,
    plots: bool = False,
) -> Optional[ClusteringMetrics]:
    """
    Feed a labelled stream through the clusterer and evaluate periodically.

    Args:
        stream: Points in arrival order
        exp_config: Experiment configuration
        output_dir: Output directory
        plots: Whether to save figures

    Returns:
        Last metrics, or None if no evaluation ran
    """
    config = exp_config.base_config
    clusterer = SubspaceStreamClusterer(config)
    window = deque(maxlen=exp_config.window_size)
    metrics_list: List[ClusteringMetrics] = []

    total = len(stream)
    start_time = time.time()
    logger.info(f"Processing {total} points...")

    for idx, point in enumerate(stream, start=1):
        clusterer.train(point)
        window.append(point)

        if idx % exp_config.evaluation_interval != 0 or not clusterer.initialized:
            continue

        micro = clusterer.micro_clustering()
        macro = clusterer.macro_clustering()
        points = np.vstack([p.point for p in window])
        labels = np.array([p.label for p in window])

        # Members demoted since the last pass still cover their points
        metrics = evaluate(
            points, labels, list(micro), macro, clusterer.current_timestamp
        )
        metrics_list.append(metrics)

        elapsed = time.time() - start_time
        logger.info(
            f"Progress: {idx}/{total} ({100*idx/total:.1f}%) | "
            f"Rate: {idx/elapsed:.1f} pts/s | "
            f"Micro: {len(micro.potential)}/{len(micro.outlier)} | "
            f"Macro: {len(macro)} | "
            f"Purity={metrics.purity:.4f}, Rand={metrics.rand_statistic:.4f}"
        )

    total_time = time.time() - start_time
    logger.info(f"Processing complete in {total_time/60:.2f} minutes")

    # Save results
    output_dir.mkdir(parents=True, exist_ok=True)
    micro = clusterer.micro_clustering()
    macro = clusterer.macro_clustering()
    save_micro_clusters(micro, output_dir / "micro_clusters.csv")
    save_macro_clusters(macro, output_dir / "macro_clusters.csv")
    save_metrics(metrics_list, output_dir / "metrics.csv")

    # Save config used
    with open(output_dir / "config.json", "w") as f:
        json.dump(config.to_dict(), f, indent=2)

    if plots:
        points = np.vstack([p.point for p in window]) if window else np.empty((0, 2))
        if clusterer.dimensions is not None and clusterer.dimensions >= 2:
            plot_clustering(
                points, micro, macro, save_path=output_dir / "clustering.png", show=False
            )
        if metrics_list:
            plot_metrics(metrics_list, save_path=output_dir / "metrics_plot.png", show=False)

    return metrics_list[-1] if metrics_list else None


def main():
    parser = argparse.ArgumentParser(
        description="Run subspace-stream experiments",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Required arguments
    parser.add_argument("--input", type=str, required=True, help="Stream data path")
    parser.add_argument(
        "--output", type=str, default="./output", help="Output directory"
    )
    parser.add_argument(
        "--no-header", action="store_true", help="CSV input has no header row"
    )

    # Configuration file (optional)
    parser.add_argument(
        "--config", type=str, help="Config JSON file (overrides defaults)"
    )

    # Online parameters
    parser.add_argument("--epsilon", type=float, default=0.5, help="Projected radius bound")
    parser.add_argument("--mu", type=float, default=10.0, help="Core weight threshold")
    parser.add_argument("--beta", type=float, default=0.5, help="Potential-core factor")
    parser.add_argument(
        "--decay-rate", type=float, default=0.5, help="Decay rate (lambda)"
    )
    parser.add_argument("--pi", type=int, default=30, help="Max relevant dimensions")

    # Subspace preference
    parser.add_argument("--kappa", type=float, default=10.0, help="Preference weight")
    parser.add_argument("--delta", type=float, default=0.001, help="Variance threshold")

    # Offline parameters
    parser.add_argument(
        "--offline-factor", type=float, default=2.0, help="Epsilon multiplier offline"
    )
    parser.add_argument(
        "--mu-offline", type=float, default=None, help="Offline density threshold"
    )
    parser.add_argument("--tau", type=int, default=None, help="Offline subspace bound")

    # Stream
    parser.add_argument("--init-points", type=int, default=2000, help="Cold-start size")
    parser.add_argument(
        "--processing-speed", type=int, default=100, help="Points per tick"
    )
    parser.add_argument("--t-span", type=int, default=None, help="Pruning period")

    # Evaluation
    parser.add_argument(
        "--evaluation-interval",
        type=int,
        default=1000,
        help="Metrics computation frequency",
    )
    parser.add_argument(
        "--window-size", type=int, default=1000, help="Points per evaluation window"
    )
    parser.add_argument("--plots", action="store_true", help="Save figures")

    # Logging
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    # Set logging level
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load data
    logger.info(f"Loading stream: {args.input}")
    if args.input.endswith(".arff"):
        stream, _ = load_arff(args.input)
    else:
        stream = load_csv(args.input, has_header=not args.no_header)
    logger.info(f"Stream: {len(stream)} points")

    # Build config from CLI args, then apply file overrides
    cli_args = vars(args)
    config_dict = {
        key: cli_args[key]
        for key in StreamConfig.__annotations__
        if key in cli_args and cli_args[key] is not None
    }
    if args.config:
        with open(args.config, "r") as f:
            config_dict.update(json.load(f))
    config = StreamConfig.from_dict(config_dict)

    # Log configuration
    logger.info("Configuration:")
    for key, value in config.to_dict().items():
        logger.info(f"  {key}: {value}")

    exp_config = ExperimentConfig(
        dataset_path=args.input,
        evaluation_interval=args.evaluation_interval,
        window_size=args.window_size,
        base_config=config,
    )
    output_dir = Path(args.output)
    run_single_experiment(stream, exp_config, output_dir, plots=args.plots)

    logger.info(f"Results saved to: {output_dir}")


if __name__ == "__main__":
    main()

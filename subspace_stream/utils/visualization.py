"""
Visualization utilities for subspace-stream.
"""

from typing import List, Optional, Tuple
import matplotlib.pyplot as plt
from matplotlib.patches import Circle
import numpy as np
from pathlib import Path
from ..evaluation.metrics import ClusteringMetrics


def plot_clustering(
    points: np.ndarray,
    micro_snapshot,
    macro_snapshot,
    dims: Tuple[int, int] = (0, 1),
    save_path: Optional[str] = None,
    show: bool = True,
) -> None:
    """
    Plot a 2-D projection of recent points with both clustering levels.

    Potential micro-clusters are drawn as blue circles of their radius,
    outliers as red dashed circles, offline cluster centers as black crosses.

    Args:
        points: Recent points of shape (n_samples, n_features)
        micro_snapshot: MicroClusteringSnapshot
        macro_snapshot: MacroClusteringSnapshot
        dims: The two dimensions to project on
        save_path: Path to save figure
        show: Whether to open a window
    """
    fig, ax = plt.subplots(figsize=(10, 8))
    x, y = dims

    if len(points):
        points = np.asarray(points)
        ax.scatter(points[:, x], points[:, y], s=4, c="lightgray", label="Points")

    for mc in micro_snapshot.potential:
        if mc.is_faded():
            continue
        center = mc.center()
        ax.add_patch(
            Circle((center[x], center[y]), mc.radius(), fill=False, color="blue", alpha=0.6)
        )
    for mc in micro_snapshot.outlier:
        if mc.is_faded():
            continue
        center = mc.center()
        ax.add_patch(
            Circle(
                (center[x], center[y]),
                mc.radius(),
                fill=False,
                color="red",
                linestyle="--",
                alpha=0.4,
            )
        )

    for cluster in macro_snapshot.clusters:
        ax.plot(cluster.center[x], cluster.center[y], "kx", markersize=10)
        ax.annotate(
            str(cluster.cluster_id),
            (cluster.center[x], cluster.center[y]),
            textcoords="offset points",
            xytext=(5, 5),
            fontsize=9,
        )

    ax.set_xlabel(f"Dimension {x}", fontsize=12)
    ax.set_ylabel(f"Dimension {y}", fontsize=12)
    ax.set_title(
        f"t={micro_snapshot.timestamp}: {len(micro_snapshot.potential)} potential, "
        f"{len(micro_snapshot.outlier)} outlier, {len(macro_snapshot)} clusters",
        fontsize=14,
    )
    ax.set_aspect("equal", adjustable="datalim")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(save_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    plt.close(fig)


def plot_metrics(
    metrics_list: List[ClusteringMetrics],
    save_path: Optional[str] = None,
    show: bool = True,
) -> None:
    """
    Plot quality measures and cluster counts over time.

    Args:
        metrics_list: List of ClusteringMetrics objects
        save_path: Path to save figure
        show: Whether to open a window
    """
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    timestamps = [m.timestamp for m in metrics_list]

    ax1.plot(timestamps, [m.purity * 100 for m in metrics_list], "g-", linewidth=2, label="Purity")
    ax1.plot(timestamps, [m.rand_statistic * 100 for m in metrics_list], "b-", linewidth=2, label="Rand")
    ax1.plot(timestamps, [m.noise_ratio * 100 for m in metrics_list], "orange", linewidth=2, label="Noise")
    ax1.set_ylabel("Value (%)", fontsize=12)
    ax1.set_ylim([0, 105])
    ax1.grid(True, alpha=0.3)
    ax1.legend(fontsize=10)

    ax2.plot(timestamps, [m.n_micro for m in metrics_list], "purple", linewidth=2, label="Micro-clusters")
    ax2.plot(timestamps, [m.n_macro for m in metrics_list], "k-", linewidth=2, label="Macro-clusters")
    ax2.set_xlabel("Evaluation Moments", fontsize=12)
    ax2.set_ylabel("Count", fontsize=12)
    ax2.grid(True, alpha=0.3)
    ax2.legend(fontsize=10)

    plt.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(save_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    plt.close(fig)

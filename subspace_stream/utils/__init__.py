"""Utility functions."""

from .io import (
    load_arff,
    load_csv,
    save_micro_clusters,
    save_macro_clusters,
    save_metrics,
    load_metrics,
)
from .visualization import plot_clustering, plot_metrics

__all__ = [
    "load_arff",
    "load_csv",
    "save_micro_clusters",
    "save_macro_clusters",
    "save_metrics",
    "load_metrics",
    "plot_clustering",
    "plot_metrics",
]

"""
File I/O utilities for subspace-stream.
"""
from typing import List, Tuple
import csv
import numpy as np
from pathlib import Path
from scipy.io import arff
import pandas as pd
from ..core.structures import StreamPoint
from ..evaluation.metrics import ClusteringMetrics


def load_arff(filepath: str, has_label: bool = True) -> Tuple[List[StreamPoint], List[str]]:
    """
    Load ARFF file and convert to StreamPoints.

    Nominal class values are mapped to integer codes in order of first
    appearance.

    Args:
        filepath: Path to ARFF file
        has_label: Whether the last attribute is the class

    Returns:
        Tuple of (points_list, attribute_names)
    """
    data, meta = arff.loadarff(filepath)
    df = pd.DataFrame(data)

    # Convert bytes to string if needed
    for col in df.columns:
        if df[col].dtype == object:
            df[col] = df[col].str.decode('utf-8')

    if has_label:
        label_col = df.columns[-1]
        if not pd.api.types.is_numeric_dtype(df[label_col]):
            df[label_col], _ = pd.factorize(df[label_col])

    return _to_points(df, has_label), list(df.columns)


def load_csv(filepath: str, has_header: bool = False, has_label: bool = True) -> List[StreamPoint]:
    """
    Load CSV file and convert to StreamPoints.

    Args:
        filepath: Path to CSV file
        has_header: Whether first row is header
        has_label: Whether last column is the class

    Returns:
        List of StreamPoints
    """
    df = pd.read_csv(filepath, header=0 if has_header else None)
    return _to_points(df, has_label)


def _to_points(df: pd.DataFrame, has_label: bool) -> List[StreamPoint]:
    values = df.to_numpy(dtype=np.float64)
    return [
        StreamPoint.from_array(row, has_label=has_label, timestamp=idx)
        for idx, row in enumerate(values)
    ]


def save_micro_clusters(snapshot, filepath: str) -> None:
    """
    Save a micro-clustering snapshot to CSV.

    One row per micro-cluster with its pool, weight, projected radius,
    relevant dimension count and center.

    Args:
        snapshot: MicroClusteringSnapshot
        filepath: Output path
    """
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            'Id', 'Pool', 'Weight', 'Created', 'Projected_Radius',
            'Relevant_Dims', 'Center'
        ])

        for pool, clusters in (('potential', snapshot.potential), ('outlier', snapshot.outlier)):
            for mc in clusters:
                # Faded clusters keep their row but have no shape
                if mc.is_faded():
                    writer.writerow([mc.cluster_id, pool, mc.weight, mc.creation_time, '', '', ''])
                    continue
                writer.writerow([
                    mc.cluster_id,
                    pool,
                    mc.weight,
                    mc.creation_time,
                    mc.projected_radius(),
                    mc.num_relevant_dims(),
                    ' '.join(f'{x:.6g}' for x in mc.center())
                ])


def save_macro_clusters(snapshot, filepath: str) -> None:
    """
    Save a macro-clustering snapshot to CSV.

    Args:
        snapshot: MacroClusteringSnapshot
        filepath: Output path
    """
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            'Id', 'Weight', 'Created', 'Members', 'Relevant_Dims', 'Center'
        ])

        for cluster in snapshot.clusters:
            writer.writerow([
                cluster.cluster_id,
                cluster.weight,
                cluster.created_at,
                ' '.join(str(m) for m in cluster.member_ids),
                ' '.join(str(d) for d in cluster.relevant_dims),
                ' '.join(f'{x:.6g}' for x in cluster.center)
            ])


def save_metrics(metrics_list: List[ClusteringMetrics], filepath: str) -> None:
    """
    Save metrics to CSV.

    Args:
        metrics_list: List of ClusteringMetrics objects
        filepath: Output path
    """
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            'Timestamp', 'Purity', 'Entropy', 'Rand', 'Points',
            'Micro', 'Macro', 'Noise_Ratio'
        ])

        for m in metrics_list:
            writer.writerow([
                m.timestamp,
                m.purity,
                m.entropy,
                m.rand_statistic,
                m.n_points,
                m.n_micro,
                m.n_macro,
                m.noise_ratio
            ])


def load_metrics(filepath: str) -> List[ClusteringMetrics]:
    """
    Load metrics from CSV.

    Args:
        filepath: Path to metrics CSV

    Returns:
        List of ClusteringMetrics objects
    """
    metrics_list = []

    with open(filepath, 'r') as f:
        reader = csv.DictReader(f)
        for row in reader:
            metrics = ClusteringMetrics(
                timestamp=int(row['Timestamp']),
                purity=float(row['Purity']),
                entropy=float(row['Entropy']),
                rand_statistic=float(row['Rand']),
                n_points=int(row['Points']),
                n_micro=int(row['Micro']),
                n_macro=int(row['Macro']),
                noise_ratio=float(row['Noise_Ratio'])
            )
            metrics_list.append(metrics)

    return metrics_list

"""Configuration."""
from .parameters import StreamConfig, ExperimentConfig

__all__ = [
    'StreamConfig',
    'ExperimentConfig',
]

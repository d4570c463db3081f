"""
Application Layer

Partitioned sources exposed to host execution frameworks.
"""

from .keys_source import RedisKeysSource
from .time_series_dataset import TimeSeriesDataset
from .interfaces import PartitionedSource

__all__ = [
    "RedisKeysSource",
    "TimeSeriesDataset",
    "PartitionedSource",
]

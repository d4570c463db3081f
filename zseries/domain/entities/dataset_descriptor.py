"""
Domain Entity: DatasetDescriptor

Immutable description of what a time-series fetch should return.
Every transition replaces exactly the named field; successive calls on the
same field replace the earlier value instead of combining with it.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

import numpy as np

from .time_index import TimeIndex, Timestamp, to_epoch_millis

Vector = np.ndarray
SeriesTransform = Callable[[Vector], Vector]


@dataclass(frozen=True)
class DatasetDescriptor:
    """
    Fetch parameters shared by every partition of a dataset.

    Attributes:
        index: Grid all vectors are aligned to
        pattern: Regex a column name must fully match, None keeps all
        start_bound: Keep keys whose first score is <= this (epoch ms)
        end_bound: Keep keys whose last score is >= this (epoch ms)
        transform: Applied to every assembled vector before it is yielded
    """

    index: TimeIndex
    pattern: Optional[str] = None
    start_bound: Optional[int] = None
    end_bound: Optional[int] = None
    transform: Optional[SeriesTransform] = None

    def with_pattern(self, pattern: str) -> "DatasetDescriptor":
        return replace(self, pattern=pattern)

    def with_start_bound(self, ts: Timestamp) -> "DatasetDescriptor":
        return replace(self, start_bound=to_epoch_millis(ts))

    def with_end_bound(self, ts: Timestamp) -> "DatasetDescriptor":
        return replace(self, end_bound=to_epoch_millis(ts))

    def with_index(self, index: TimeIndex) -> "DatasetDescriptor":
        return replace(self, index=index)

    def with_transform(self, transform: SeriesTransform) -> "DatasetDescriptor":
        return replace(self, transform=transform)

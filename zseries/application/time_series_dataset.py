"""
Application: Time Series Dataset

Lazily evaluated, partitioned collection of (column name, vector) pairs.
Transformations return a new dataset sharing the same partitions; nothing
touches the store until a host framework (or collect) computes partitions.
"""

import re
from functools import partial
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from zseries.domain.entities import (
    DatasetDescriptor,
    SeriesTransform,
    SlotPartition,
    TimeIndex,
    Timestamp,
    Vector,
)
from zseries.domain.errors import ConfigurationError
from zseries.domain.services import TimeSeriesFetcher
from zseries.infrastructure.stats import fill_missing, FILL_METHODS


class TimeSeriesDataset:
    """
    Series of the structured keys of a RedisKeysSource.

    Each transformation replaces one field of the descriptor. Calling the
    same transformation twice keeps only the second value:
    filter_keys("a.*").filter_keys("b.*") selects by "b.*" alone, and a
    later map_series or fill replaces an earlier one.
    """

    def __init__(self, keys_source, descriptor: DatasetDescriptor, fetcher: TimeSeriesFetcher):
        self.keys_source = keys_source
        self.descriptor = descriptor
        self.fetcher = fetcher

    @property
    def index(self) -> TimeIndex:
        return self.descriptor.index

    def _with(self, descriptor: DatasetDescriptor) -> "TimeSeriesDataset":
        return TimeSeriesDataset(self.keys_source, descriptor, self.fetcher)

    # Host framework surface

    def get_partitions(self) -> List[SlotPartition]:
        return self.keys_source.get_partitions()

    def preferred_locations(self, partition: SlotPartition) -> List[str]:
        return self.keys_source.preferred_locations(partition)

    def compute(self, partition: SlotPartition) -> Iterator[Tuple[str, Vector]]:
        keys = self.keys_source.compute(partition)
        nodes = self.keys_source.topology.nodes_in_range(partition.slot_range)
        return self.fetcher.fetch_partition(nodes, keys, self.descriptor, trace_id=partition.label)

    # Transformations

    def filter_keys(self, pattern: str) -> "TimeSeriesDataset":
        """
        Keep the columns whose full name (prefix + column) matches a regex.

        Raises:
            ConfigurationError: pattern is not a valid regular expression
        """
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"invalid key pattern {pattern!r}: {e}") from e
        return self._with(self.descriptor.with_pattern(pattern))

    def filter_starting_before(self, ts: Timestamp) -> "TimeSeriesDataset":
        """Keep the series whose first observation is at or before ts."""
        return self._with(self.descriptor.with_start_bound(ts))

    def filter_ending_after(self, ts: Timestamp) -> "TimeSeriesDataset":
        """Keep the series whose last observation is at or after ts."""
        return self._with(self.descriptor.with_end_bound(ts))

    def slice(self, start: Timestamp, end: Timestamp) -> "TimeSeriesDataset":
        """Restrict the index to [start, end]; filters are kept as they are."""
        return self._with(self.descriptor.with_index(self.index.slice(start, end)))

    def fill(self, method: str) -> "TimeSeriesDataset":
        """
        Fill missing values with linear, nearest, next, previous, spline or zero.

        Raises:
            ConfigurationError: Unknown method
        """
        if method not in FILL_METHODS:
            raise ConfigurationError(
                f"unknown fill method {method!r}, expected one of {sorted(FILL_METHODS)}"
            )
        return self.map_series(partial(fill_missing, method=method))

    def map_series(self, fn: SeriesTransform, index: Optional[TimeIndex] = None) -> "TimeSeriesDataset":
        """
        Apply fn to every fetched vector.

        With index, the index is replaced too: series are then fetched and
        assembled on it before fn runs.
        """
        descriptor = self.descriptor.with_transform(fn)
        if index is not None:
            descriptor = descriptor.with_index(index)
        return self._with(descriptor)

    # Local evaluation

    def collect(self, executor=None) -> List[Tuple[str, Vector]]:
        from zseries.infrastructure.executors import LocalPartitionExecutor

        return (executor or LocalPartitionExecutor()).run(self)

    def to_dict(self, executor=None) -> Dict[str, Vector]:
        """
        Series keyed by column name.

        Raises:
            ConfigurationError: Two structured keys yield the same column name
        """
        series: Dict[str, Vector] = {}
        for name, vector in self.collect(executor):
            if name in series:
                raise ConfigurationError(
                    f"column {name!r} is produced by more than one key, use to_matrix or filter_keys"
                )
            series[name] = vector
        return series

    def to_matrix(self, executor=None) -> Tuple[List[str], np.ndarray]:
        """
        Stack all series into a (series, time) matrix.

        Returns:
            Column names sorted, and the matrix with one row per series.
            A name produced by several keys appears once per series.
        """
        rows = sorted(self.collect(executor), key=lambda item: item[0])
        names = [name for name, _ in rows]
        if not rows:
            return names, np.empty((0, self.index.size), dtype=np.float64)
        return names, np.vstack([vector for _, vector in rows])

"""
Application: Redis Keys Source

Partitioned source of the key names matching a glob pattern. Its
partitions are the slot ranges planned once at construction; every
dataset built from it shares them.
"""

from typing import Iterator, List, Optional

from zseries.domain.entities import ClusterTopology, SlotPartition, TimeIndex, DatasetDescriptor
from zseries.domain.services import KeyResolver, SlotRangePartitioner, TimeSeriesFetcher


class RedisKeysSource:
    """
    Keys of a cluster, partitioned by hash slot.

    Args:
        topology: Cluster snapshot the plan is computed from
        key_resolver: Discovers keys per partition
        fetcher: Used by the datasets derived from this source
        key_pattern: Glob pattern or literal key
        partition_count: Requested degree of parallelism
    """

    def __init__(
        self,
        topology: ClusterTopology,
        key_resolver: KeyResolver,
        fetcher: TimeSeriesFetcher,
        key_pattern: str = "*",
        partition_count: int = 3,
        partitioner: Optional[SlotRangePartitioner] = None,
    ):
        self.topology = topology
        self.key_resolver = key_resolver
        self.fetcher = fetcher
        self.key_pattern = key_pattern
        self.partition_count = partition_count
        partitioner = partitioner or SlotRangePartitioner()
        self._partitions = partitioner.plan(topology.nodes, partition_count)

    def get_partitions(self) -> List[SlotPartition]:
        return list(self._partitions)

    def preferred_locations(self, partition: SlotPartition) -> List[str]:
        return [partition.host]

    def compute(self, partition: SlotPartition) -> Iterator[str]:
        nodes = self.topology.nodes_in_range(partition.slot_range)
        keys = self.key_resolver.discover_in_range(nodes, partition.slot_range, self.key_pattern)
        return iter(sorted(keys))

    def time_series(self, index: TimeIndex) -> "TimeSeriesDataset":
        """
        Dataset of the series stored under this source's keys.

        Args:
            index: Grid every fetched vector is aligned to
        """
        from .time_series_dataset import TimeSeriesDataset

        return TimeSeriesDataset(self, DatasetDescriptor(index=index), self.fetcher)

    def collect(self, executor=None) -> List[str]:
        """Evaluate every partition locally."""
        from zseries.infrastructure.executors import LocalPartitionExecutor

        return (executor or LocalPartitionExecutor()).run(self)

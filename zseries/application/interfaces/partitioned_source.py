"""
Application Interface: Partitioned Source

The narrow surface a host execution framework drives. The framework
decides where and when each partition is computed; zseries only
describes the partitions and computes one when asked.
"""

from typing import Iterator, List, Protocol, TypeVar

from zseries.domain.entities import SlotPartition

T_co = TypeVar("T_co", covariant=True)


class PartitionedSource(Protocol[T_co]):
    """Interface implemented by RedisKeysSource and TimeSeriesDataset."""

    def get_partitions(self) -> List[SlotPartition]:
        """Ordered partition descriptors; stable for the lifetime of the source."""
        ...

    def compute(self, partition: SlotPartition) -> Iterator[T_co]:
        """Lazily produce the elements of one partition."""
        ...

    def preferred_locations(self, partition: SlotPartition) -> List[str]:
        """Host names where computing the partition is cheapest."""
        ...

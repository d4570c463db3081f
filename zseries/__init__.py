"""
zseries Core Package

Slot-partitioned time-series retrieval from Redis sorted sets.

Architecture:
- Keys are discovered per hash-slot partition on the master serving them
- Key-level filters are pushed down as pipelined round trips
- Series are rebuilt as dense numpy vectors on a shared TimeIndex
- A host framework drives get_partitions / compute / preferred_locations
"""

__version__ = "0.1.0"

from .domain import (
    ZSeriesError, ConfigurationError, TopologyConsistencyError, ProtocolError
)
from .domain.entities import (
    Node, NodeRole, SlotRange, ClusterTopology, SlotPartition,
    TimeIndex, UniformTimeIndex, IrregularTimeIndex, DatasetDescriptor
)
from .application import RedisKeysSource, TimeSeriesDataset, PartitionedSource
from .infrastructure.factory import ZSeriesFactory


def keys_source(host: str, port: int, key_pattern: str = "*", partition_count: int = None) -> RedisKeysSource:
    """Keys of the cluster reachable through host:port, partitioned by hash slot."""
    return ZSeriesFactory.create_keys_source(host, port, key_pattern, partition_count)

"""
Domain Entities

Pure domain objects with no store or framework dependencies.
"""

from .node import Node, NodeRole, SlotRange, ClusterTopology, MAX_SLOT
from .partition import SlotPartition
from .structured_key import StructuredKey, DEFAULT_MARKER
from .time_index import (
    TimeIndex,
    UniformTimeIndex,
    IrregularTimeIndex,
    Timestamp,
    to_epoch_millis,
    from_epoch_millis,
)
from .dataset_descriptor import DatasetDescriptor, Vector, SeriesTransform

__all__ = [
    "Node",
    "NodeRole",
    "SlotRange",
    "ClusterTopology",
    "MAX_SLOT",
    "SlotPartition",
    "StructuredKey",
    "DEFAULT_MARKER",
    "TimeIndex",
    "UniformTimeIndex",
    "IrregularTimeIndex",
    "Timestamp",
    "to_epoch_millis",
    "from_epoch_millis",
    "DatasetDescriptor",
    "Vector",
    "SeriesTransform",
]

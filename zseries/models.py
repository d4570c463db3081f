from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from enum import Enum
import time


class ComponentType(str, Enum):
    PARTITIONER = "SlotRangePartitioner"
    KEY_RESOLVER = "KeyResolver"
    FETCHER = "TimeSeriesFetcher"
    TOPOLOGY = "ClusterTopologyLoader"
    EXECUTOR = "LocalPartitionExecutor"


class EventType(str, Enum):
    TOPOLOGY_LOADED = "Topology_Loaded"
    PARTITION_PLANNED = "Partition_Planned"
    KEYS_DISCOVERED = "Keys_Discovered"
    KEYS_FILTERED = "Keys_Filtered"
    SERIES_FETCHED = "Series_Fetched"
    CONNECTION_RELEASED = "Connection_Released"
    PARTITION_COMPLETED = "Partition_Completed"
    PARTITION_FAILED = "Partition_Failed"


class LogEntry(BaseModel):
    trace_id: str
    timestamp: float = Field(default_factory=time.time)
    component: ComponentType
    event_type: EventType
    payload_hash: Optional[str] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None


class ClusterNodeRecord(BaseModel):
    """One node as described by a static topology entry in the config file"""
    host: str
    port: int
    role: str = "master"  # "master" or "replica"
    slot_start: int
    slot_end: int


class SeriesRecord(BaseModel):
    """A fetched series in the shape the CLI prints it"""
    name: str
    values: List[Optional[float]]

    @classmethod
    def from_vector(cls, name: str, vector) -> "SeriesRecord":
        # NaN is not valid JSON, unobserved positions become null
        return cls(
            name=name,
            values=[None if v != v else float(v) for v in vector],
        )

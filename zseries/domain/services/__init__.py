"""
Domain Services

Partition planning, key resolution and series reconstruction.
Store access goes through the repository interfaces only.
"""

from .slot_partitioner import SlotRangePartitioner
from .key_resolver import KeyResolver, key_slot
from .series_assembler import SeriesAssembler, member_values
from .time_series_fetcher import TimeSeriesFetcher, SERIES_TYPE

__all__ = [
    "SlotRangePartitioner",
    "KeyResolver",
    "key_slot",
    "SeriesAssembler",
    "member_values",
    "TimeSeriesFetcher",
    "SERIES_TYPE",
]

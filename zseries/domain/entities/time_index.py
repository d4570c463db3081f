"""
Domain Entity: TimeIndex

The shared, immutable time grid every fetched vector is aligned to.
Timestamps are epoch milliseconds; datetimes are accepted wherever a
timestamp is and naive datetimes are taken as UTC.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Iterator, Sequence, Union

import numpy as np

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Timestamp = Union[int, float, datetime, str, np.integer]


def to_epoch_millis(value: Timestamp) -> int:
    """
    Normalize a timestamp to epoch milliseconds.

    Args:
        value: int/float milliseconds, a datetime, or an ISO-8601 string

    Returns:
        Milliseconds since the Unix epoch
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - EPOCH) // timedelta(milliseconds=1)
    if isinstance(value, (int, float, np.integer, np.floating)):
        return int(value)
    raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")


def from_epoch_millis(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=int(millis))


class TimeIndex(ABC):
    """Ordered grid of timestamps. Subclasses never mutate after construction."""

    @property
    @abstractmethod
    def timestamps(self) -> np.ndarray:
        """Read-only int64 array of epoch milliseconds."""
        ...

    @abstractmethod
    def locate(self, ts: Timestamp) -> int:
        """Position of ts on the grid, or -1 when ts is not a grid point."""
        ...

    @abstractmethod
    def slice(self, start: Timestamp, end: Timestamp) -> "TimeIndex":
        """Sub-index of the grid points within [start, end]."""
        ...

    @property
    def size(self) -> int:
        return len(self.timestamps)

    def __len__(self) -> int:
        return self.size

    @property
    def first(self) -> int:
        if self.size == 0:
            raise IndexError("first of an empty TimeIndex")
        return int(self.timestamps[0])

    @property
    def last(self) -> int:
        if self.size == 0:
            raise IndexError("last of an empty TimeIndex")
        return int(self.timestamps[-1])

    def __iter__(self) -> Iterator[int]:
        return (int(ts) for ts in self.timestamps)

    def datetimes(self):
        return [from_epoch_millis(ts) for ts in self]

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeIndex):
            return NotImplemented
        return np.array_equal(self.timestamps, other.timestamps)

    def __hash__(self) -> int:
        return hash(self.timestamps.tobytes())


class UniformTimeIndex(TimeIndex):
    """
    Evenly spaced grid: start, start + frequency, ... (periods points).

    Args:
        start: First timestamp
        periods: Number of points
        frequency: Spacing in milliseconds (or a timedelta)
    """

    def __init__(self, start: Timestamp, periods: int, frequency: Union[int, timedelta]):
        if isinstance(frequency, timedelta):
            frequency = frequency // timedelta(milliseconds=1)
        if frequency <= 0:
            raise ValueError(f"frequency must be positive, got {frequency}")
        if periods < 0:
            raise ValueError(f"periods must be non-negative, got {periods}")

        self.start = to_epoch_millis(start)
        self.periods = int(periods)
        self.frequency = int(frequency)

        stamps = self.start + self.frequency * np.arange(self.periods, dtype=np.int64)
        stamps.flags.writeable = False
        self._timestamps = stamps

    @classmethod
    def between(cls, start: Timestamp, end: Timestamp, frequency: Union[int, timedelta]) -> "UniformTimeIndex":
        """Grid from start up to and including the last point not after end."""
        if isinstance(frequency, timedelta):
            frequency = frequency // timedelta(milliseconds=1)
        start_ms, end_ms = to_epoch_millis(start), to_epoch_millis(end)
        periods = max((end_ms - start_ms) // frequency + 1, 0)
        return cls(start_ms, periods, frequency)

    @property
    def timestamps(self) -> np.ndarray:
        return self._timestamps

    def locate(self, ts: Timestamp) -> int:
        offset = to_epoch_millis(ts) - self.start
        if offset < 0 or offset % self.frequency:
            return -1
        loc = offset // self.frequency
        return loc if loc < self.periods else -1

    def slice(self, start: Timestamp, end: Timestamp) -> "UniformTimeIndex":
        lo_offset = to_epoch_millis(start) - self.start
        hi_offset = to_epoch_millis(end) - self.start
        lo = max(-(-lo_offset // self.frequency), 0)  # ceiling division
        hi = min(hi_offset // self.frequency, self.periods - 1)
        periods = max(hi - lo + 1, 0)
        return UniformTimeIndex(self.start + lo * self.frequency, periods, self.frequency)

    def __repr__(self) -> str:
        return f"UniformTimeIndex(start={self.start}, periods={self.periods}, frequency={self.frequency})"


class IrregularTimeIndex(TimeIndex):
    """
    Grid of arbitrary strictly increasing timestamps.

    Args:
        timestamps: Timestamps in increasing order
    """

    def __init__(self, timestamps: Sequence[Timestamp]):
        stamps = np.array([to_epoch_millis(ts) for ts in timestamps], dtype=np.int64)
        if stamps.size > 1 and not np.all(np.diff(stamps) > 0):
            raise ValueError("IrregularTimeIndex timestamps must be strictly increasing")
        stamps.flags.writeable = False
        self._timestamps = stamps

    @property
    def timestamps(self) -> np.ndarray:
        return self._timestamps

    def locate(self, ts: Timestamp) -> int:
        millis = to_epoch_millis(ts)
        loc = int(np.searchsorted(self._timestamps, millis))
        if loc < self.size and self._timestamps[loc] == millis:
            return loc
        return -1

    def slice(self, start: Timestamp, end: Timestamp) -> "IrregularTimeIndex":
        lo = np.searchsorted(self._timestamps, to_epoch_millis(start), side="left")
        hi = np.searchsorted(self._timestamps, to_epoch_millis(end), side="right")
        return IrregularTimeIndex(self._timestamps[lo:hi])

    def __repr__(self) -> str:
        return f"IrregularTimeIndex(size={self.size})"

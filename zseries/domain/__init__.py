"""
Domain Layer

Entities, repository interfaces and services for slot-partitioned
time-series retrieval.
"""

from .errors import (
    ZSeriesError,
    ConfigurationError,
    TopologyConsistencyError,
    ProtocolError,
)

__all__ = [
    "ZSeriesError",
    "ConfigurationError",
    "TopologyConsistencyError",
    "ProtocolError",
]

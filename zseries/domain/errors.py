"""
Domain Errors

Failures surfaced by the partitioning, key resolution and fetch paths.
None of these are retried inside zseries; the host framework owns retries.
"""


class ZSeriesError(Exception):
    """Base class for zseries failures."""
    pass


class ConfigurationError(ZSeriesError, ValueError):
    """Raised for an empty topology, a non-positive partition count or an unknown option."""
    pass


class TopologyConsistencyError(ZSeriesError, LookupError):
    """Raised when no master owns a key's hash slot."""
    pass


class ProtocolError(ZSeriesError):
    """Raised when a store request fails or returns a reply that cannot be parsed."""

    def __init__(self, message: str, address: str = None):
        super().__init__(f"{address}: {message}" if address else message)
        self.address = address

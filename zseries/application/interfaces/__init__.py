"""
Application Interfaces

Protocols the application layer exposes to host frameworks.
"""

from .partitioned_source import PartitionedSource

__all__ = ["PartitionedSource"]

"""
Infrastructure: Redis Adapters

redis-py backed implementations of the store repository interfaces.
"""

from .node_connection import RedisNodeConnection, RedisConnectionFactory
from .topology_loader import ClusterTopologyLoader

__all__ = [
    "RedisNodeConnection",
    "RedisConnectionFactory",
    "ClusterTopologyLoader",
]

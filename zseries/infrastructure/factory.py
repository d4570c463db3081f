"""
Infrastructure: zseries Factory

Dependency injection factory for assembling all components.
Single source of truth for component wiring.
"""

import os
from typing import Any, Dict, Optional

import redis

from zseries.application import RedisKeysSource
from zseries.config import get_zseries_config
from zseries.domain.services import KeyResolver, SlotRangePartitioner, TimeSeriesFetcher
from zseries.infrastructure.executors import LocalPartitionExecutor
from zseries.infrastructure.redis_store import ClusterTopologyLoader, RedisConnectionFactory


class ZSeriesFactory:
    """
    Factory for creating zseries sources.

    Implements dependency injection pattern.
    """

    @staticmethod
    def create_keys_source(
        host: str,
        port: int,
        key_pattern: str = "*",
        partition_count: Optional[int] = None,
        config: Optional[Dict[str, Any]] = None,
        client_class=redis.Redis,
    ) -> RedisKeysSource:
        """
        Create a fully wired RedisKeysSource.

        The topology is read once here, from the config's static node list
        when present, otherwise from CLUSTER SLOTS on host:port.

        Args:
            host: Any node of the cluster
            port: Its port
            key_pattern: Glob pattern or literal key
            partition_count: Requested partitions (config default when None)
            config: Settings dict (packaged config when None)
            client_class: redis.Redis or a compatible class

        Returns:
            Configured RedisKeysSource
        """
        config = config if config is not None else get_zseries_config()
        redis_cfg = config.get("redis", {})
        cluster_cfg = config.get("cluster", {})
        keys_cfg = config.get("keys", {})
        if partition_count is None:
            partition_count = int(config.get("partitions", {}).get("default_count", 3))

        socket_timeout = redis_cfg.get("socket_timeout")

        # Infrastructure: Topology
        loader = ClusterTopologyLoader(
            client_class=client_class,
            max_slot=int(cluster_cfg.get("max_slot", 16383)),
            socket_timeout=socket_timeout,
        )
        static_nodes = cluster_cfg.get("nodes") or []
        topology = loader.from_records(static_nodes) if static_nodes else loader.load(host, port)

        # Infrastructure: Connections
        connections = RedisConnectionFactory(
            socket_timeout=socket_timeout,
            client_class=client_class,
        )

        # Domain Services
        key_resolver = KeyResolver(
            connections=connections,
            scan_count=int(keys_cfg.get("scan_count", 1000)),
        )
        fetcher = TimeSeriesFetcher(
            connections=connections,
            marker=keys_cfg.get("marker", "_RedisTS_"),
            series_type=keys_cfg.get("series_type", "zset"),
        )

        return RedisKeysSource(
            topology=topology,
            key_resolver=key_resolver,
            fetcher=fetcher,
            key_pattern=key_pattern,
            partition_count=partition_count,
            partitioner=SlotRangePartitioner(),
        )

    @staticmethod
    def create_from_env(key_pattern: str = "*") -> RedisKeysSource:
        """
        Create a keys source from environment variables.

        Convenience method for production deployment.

        Returns:
            Configured RedisKeysSource
        """
        config = get_zseries_config()
        redis_cfg = config.get("redis", {})
        host = os.getenv("REDIS_HOST", redis_cfg.get("host", "localhost"))
        port = int(os.getenv("REDIS_PORT", redis_cfg.get("port", 6379)))
        partitions = os.getenv("ZSERIES_PARTITIONS")

        return ZSeriesFactory.create_keys_source(
            host=host,
            port=port,
            key_pattern=key_pattern,
            partition_count=int(partitions) if partitions else None,
            config=config,
        )

    @staticmethod
    def create_executor(config: Optional[Dict[str, Any]] = None) -> LocalPartitionExecutor:
        config = config if config is not None else get_zseries_config()
        return LocalPartitionExecutor(
            max_workers=int(config.get("executor", {}).get("max_workers", 4)),
        )

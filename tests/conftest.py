"""
Shared test fixtures and utilities for zseries tests
"""

from typing import Dict, List, Tuple
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis

from zseries.config import clear_config_cache
from zseries.domain.entities import ClusterTopology, Node, NodeRole, SlotRange
from zseries.domain.services import KeyResolver, TimeSeriesFetcher
from zseries.infrastructure.redis_store import RedisConnectionFactory


class FakeRedisServer:
    """
    One fakeredis keyspace shared by every FakeRedis client of a test.

    Also holds what fakeredis has no notion of: the CLUSTER SLOTS reply,
    injected command failures and connection bookkeeping.
    """

    def __init__(self):
        self.server = fakeredis.FakeServer()
        self.admin = fakeredis.FakeRedis(server=self.server, decode_responses=True)
        self.cluster_slots = None  # None -> "cluster support disabled"
        self.opened: List[Tuple[str, int]] = []
        self.closed = 0
        self.fail_commands = set()

    def zadd(self, key: str, mapping: Dict[str, float]):
        self.admin.zadd(key, mapping)

    def set(self, key, value):
        """Plain string value; bytes keys are stored as given."""
        if isinstance(key, bytes):
            fakeredis.FakeRedis(server=self.server).set(key, value)
        else:
            self.admin.set(key, value)


class FakeRedis(fakeredis.FakeRedis):
    """fakeredis client bound to the current test's FakeRedisServer."""

    backend: FakeRedisServer = None

    def __init__(self, host="localhost", port=6379, **kwargs):
        super().__init__(host=host, port=port, server=self.backend.server, **kwargs)
        self.released = False
        self.backend.opened.append((host, port))

    def execute_command(self, *args, **options):
        if args[:2] == ("CLUSTER", "SLOTS"):
            if self.backend.cluster_slots is None:
                raise redis.ResponseError("This instance has cluster support disabled")
            return self.backend.cluster_slots
        if str(args[0]).lower() in self.backend.fail_commands:
            raise redis.ConnectionError(f"Error connecting to {args[0]}")
        return super().execute_command(*args, **options)

    def pipeline(self, transaction=True, shard_hint=None):
        pipe = super().pipeline(transaction=transaction, shard_hint=shard_hint)
        if "pipeline" in self.backend.fail_commands:
            pipe.execute = MagicMock(side_effect=redis.ConnectionError("Connection reset by peer"))
        return pipe

    def close(self):
        # redis.Redis.__del__ closes again, count the explicit release only
        if not getattr(self, "released", True):
            self.released = True
            self.backend.closed += 1
        super().close()


@pytest.fixture(autouse=True)
def fresh_config():
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def fake_server():
    server = FakeRedisServer()
    FakeRedis.backend = server
    yield server
    FakeRedis.backend = None


@pytest.fixture
def connections(fake_server):
    return RedisConnectionFactory(client_class=FakeRedis)


@pytest.fixture
def single_node():
    return Node("127.0.0.1", 7000, NodeRole.MASTER, SlotRange(0, 16383))


@pytest.fixture
def single_topology(single_node):
    return ClusterTopology.of([single_node])


@pytest.fixture
def three_masters():
    return [
        Node("10.0.0.1", 7000, NodeRole.MASTER, SlotRange(0, 5460)),
        Node("10.0.0.2", 7000, NodeRole.MASTER, SlotRange(5461, 10922)),
        Node("10.0.0.3", 7000, NodeRole.MASTER, SlotRange(10923, 16383)),
    ]


@pytest.fixture
def resolver(connections):
    return KeyResolver(connections=connections, scan_count=10)


@pytest.fixture
def fetcher(connections):
    return TimeSeriesFetcher(connections=connections)


@pytest.fixture
def redis_class(fake_server):
    """FakeRedis bound to this test's server, for code that takes a client_class."""
    return FakeRedis

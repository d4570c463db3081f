"""
Infrastructure: Redis Node Connection

redis-py implementation of IStoreConnection, and the factory that scopes
one connection per use.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple

import redis

from zseries.domain.entities import Node
from zseries.domain.errors import ProtocolError
from zseries.domain.services.key_resolver import KEY_ENCODING_ERRORS
from zseries.logging_utils import StructuredLogger
from zseries.models import ComponentType, EventType


class RedisNodeConnection:
    """
    Connection to one Redis node.

    Every redis-py failure surfaces as ProtocolError carrying the node
    address, with the original exception chained.
    """

    def __init__(self, client: redis.Redis, address: str):
        self.client = client
        self.address = address

    @contextmanager
    def _protocol_errors(self) -> Iterator[None]:
        try:
            yield
        except redis.RedisError as e:
            raise ProtocolError(str(e), self.address) from e

    def scan(self, cursor: int, match: str, count: int) -> Tuple[int, List[str]]:
        with self._protocol_errors():
            next_cursor, keys = self.client.scan(cursor=cursor, match=match, count=count)
        return int(next_cursor), list(keys)

    def types(self, keys: Sequence[str]) -> List[str]:
        with self._protocol_errors():
            pipe = self.client.pipeline(transaction=False)
            for key in keys:
                pipe.type(key)
            return list(pipe.execute())

    def first_scores(self, keys: Sequence[str]) -> List[Optional[float]]:
        return self._edge_scores(keys, 0)

    def last_scores(self, keys: Sequence[str]) -> List[Optional[float]]:
        return self._edge_scores(keys, -1)

    def _edge_scores(self, keys: Sequence[str], rank: int) -> List[Optional[float]]:
        with self._protocol_errors():
            pipe = self.client.pipeline(transaction=False)
            for key in keys:
                pipe.zrange(key, rank, rank, withscores=True)
            replies = pipe.execute()
        # An empty reply means the set vanished since it was type-checked
        return [float(reply[0][1]) if reply else None for reply in replies]

    def range_by_score(self, key: str, min_score: float, max_score: float) -> List[Tuple[str, float]]:
        with self._protocol_errors():
            reply = self.client.zrangebyscore(key, min_score, max_score, withscores=True)
        return [(member, float(score)) for member, score in reply]

    def close(self) -> None:
        self.client.close()


class RedisConnectionFactory:
    """
    Opens scoped redis-py connections to nodes.

    Args:
        socket_timeout: Seconds, None blocks indefinitely
        client_class: redis.Redis or a compatible class
    """

    def __init__(
        self,
        socket_timeout: Optional[float] = None,
        client_class=redis.Redis,
        logger: Optional[StructuredLogger] = None,
    ):
        self.socket_timeout = socket_timeout
        self.client_class = client_class
        self.logger = logger or StructuredLogger(ComponentType.FETCHER)

    def open(self, host: str, port: int) -> redis.Redis:
        return self.client_class(
            host=host,
            port=port,
            decode_responses=True,
            encoding_errors=KEY_ENCODING_ERRORS,
            socket_timeout=self.socket_timeout,
        )

    @contextmanager
    def connect(self, node: Node, role: str = "filter") -> Iterator[RedisNodeConnection]:
        """Connection to node, closed when the block exits however it exits."""
        conn = RedisNodeConnection(self.open(node.host, node.port), node.address)
        try:
            yield conn
        finally:
            conn.close()
            self.logger.debug_event(
                trace_id=node.address,
                event_type=EventType.CONNECTION_RELEASED,
                payload={"role": role},
            )

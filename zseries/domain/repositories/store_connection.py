"""
Repository Interface: Store Connection

Defines the store primitives the domain services need from one node.
Batch methods issue one pipelined round trip for the whole key list.
"""

from typing import ContextManager, List, Optional, Protocol, Sequence, Tuple

from ..entities import Node

ScoredMember = Tuple[str, float]


class IStoreConnection(Protocol):
    """
    Interface for a connection to a single store node.

    Implementations raise ProtocolError for any request failure.
    """

    address: str

    def scan(self, cursor: int, match: str, count: int) -> Tuple[int, List[str]]:
        """
        One SCAN step.

        Returns:
            (next cursor, keys); cursor 0 means the iteration is complete
        """
        ...

    def types(self, keys: Sequence[str]) -> List[str]:
        """Pipelined TYPE per key, results in key order."""
        ...

    def first_scores(self, keys: Sequence[str]) -> List[Optional[float]]:
        """Pipelined lowest score per key, None for a missing or empty set."""
        ...

    def last_scores(self, keys: Sequence[str]) -> List[Optional[float]]:
        """Pipelined highest score per key, None for a missing or empty set."""
        ...

    def range_by_score(self, key: str, min_score: float, max_score: float) -> List[ScoredMember]:
        """Members with score in [min_score, max_score], ascending by score."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...


class IConnectionFactory(Protocol):
    """Interface for opening scoped connections to nodes."""

    def connect(self, node: Node, role: str = "filter") -> ContextManager[IStoreConnection]:
        """
        Open a connection to a node, released when the context exits.

        Args:
            node: Node to connect to
            role: Label for the purpose of the connection, used in logs
        """
        ...

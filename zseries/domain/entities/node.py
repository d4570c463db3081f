"""
Domain Entity: Node

Represents one Redis node and the hash-slot range it serves,
plus the ordered topology of the whole cluster.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

MAX_SLOT = 16383


class NodeRole(str, Enum):
    """Role of a node for the slot range it serves."""

    MASTER = "master"
    REPLICA = "replica"


@dataclass(frozen=True)
class SlotRange:
    """Inclusive range of hash slots [start, end]."""

    start: int
    end: int

    def __contains__(self, slot: int) -> bool:
        return self.start <= slot <= self.end

    def overlaps(self, other: "SlotRange") -> bool:
        return self.start <= other.end and other.start <= self.end


@dataclass(frozen=True)
class Node:
    """
    A Redis node serving one contiguous slot range.

    A physical node owning several non-contiguous ranges appears once
    per range.
    """

    host: str
    port: int
    role: NodeRole
    slot_range: SlotRange

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_master(self) -> bool:
        return self.role == NodeRole.MASTER

    @classmethod
    def from_tuple(cls, entry: Tuple[str, int, str, int, int]) -> "Node":
        """
        Create a node from a (host, port, role, slot_start, slot_end) tuple.

        Args:
            entry: Topology tuple as supplied by a topology collaborator

        Returns:
            Node with the parsed role and slot range
        """
        host, port, role, start, end = entry
        return cls(
            host=host,
            port=int(port),
            role=NodeRole(role),
            slot_range=SlotRange(int(start), int(end)),
        )


@dataclass(frozen=True)
class ClusterTopology:
    """
    Immutable snapshot of the cluster's nodes ordered by slot start.

    Masters sort ahead of replicas that serve the same range.
    """

    nodes: Tuple[Node, ...]
    max_slot: int = MAX_SLOT

    @classmethod
    def of(cls, nodes: Iterable[Node], max_slot: int = MAX_SLOT) -> "ClusterTopology":
        ordered = sorted(
            nodes,
            key=lambda n: (n.slot_range.start, not n.is_master, n.host, n.port),
        )
        return cls(nodes=tuple(ordered), max_slot=max_slot)

    def masters(self) -> List[Node]:
        return [node for node in self.nodes if node.is_master]

    def nodes_in_range(self, slot_range: SlotRange) -> List[Node]:
        """All nodes, masters and replicas, whose range overlaps slot_range."""
        return [node for node in self.nodes if node.slot_range.overlaps(slot_range)]

    def __len__(self) -> int:
        return len(self.nodes)

"""
Domain Service: Key Resolver

Discovers keys in a slot range, routes them to the master serving their
hash slot and filters them by store-side type.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set

from redis.crc import key_slot as _crc16_slot

from ..entities import Node, SlotRange
from ..errors import TopologyConsistencyError
from ..repositories import IConnectionFactory, IStoreConnection
from zseries.logging_utils import StructuredLogger
from zseries.models import ComponentType, EventType

GLOB_METACHARACTERS = frozenset("*?[")

# Key names are opaque bytes; undecodable ones round-trip as lone surrogates
KEY_ENCODING_ERRORS = "surrogateescape"


def key_slot(key: str) -> int:
    """Cluster hash slot of a key (CRC16 mod 16384, honouring {hash tags})."""
    return _crc16_slot(key.encode("utf-8", KEY_ENCODING_ERRORS))


class KeyResolver:
    """
    Domain service for key discovery and routing.

    Args:
        connections: Factory for scoped node connections
        scan_count: COUNT hint for each SCAN step
    """

    def __init__(
        self,
        connections: IConnectionFactory,
        scan_count: int = 1000,
        logger: Optional[StructuredLogger] = None,
    ):
        self.connections = connections
        self.scan_count = scan_count
        self.logger = logger or StructuredLogger(ComponentType.KEY_RESOLVER)

    @staticmethod
    def is_pattern_key(key: str) -> bool:
        """
        Check if a key name is a glob pattern rather than a literal key.

        True when the name holds an unescaped '*', '?' or '['. A backslash
        escapes the character after it.
        """
        escaped = False
        for char in key:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char in GLOB_METACHARACTERS:
                return True
        return False

    def discover_keys(self, node: Node, slot_range: SlotRange, pattern: str) -> Set[str]:
        """
        Find the keys on a node matching a pattern whose slot is in slot_range.

        A literal key is returned without a round trip when its slot is in
        range.

        Args:
            node: Node to scan
            slot_range: Slots the caller is responsible for
            pattern: Glob pattern or literal key

        Returns:
            Matching keys
        """
        if not self.is_pattern_key(pattern):
            return {pattern} if key_slot(pattern) in slot_range else set()

        keys: Set[str] = set()
        with self.connections.connect(node, role="scan") as conn:
            cursor = 0
            while True:
                cursor, batch = conn.scan(cursor, pattern, self.scan_count)
                keys.update(key for key in batch if key_slot(key) in slot_range)
                if cursor == 0:
                    break
        return keys

    def discover_in_range(self, nodes: Sequence[Node], slot_range: SlotRange, pattern: str) -> Set[str]:
        """
        Union of discover_keys over the masters overlapping slot_range.

        Replicas hold copies of their master's keys and are not scanned.
        """
        keys: Set[str] = set()
        masters = [node for node in nodes if node.is_master and node.slot_range.overlaps(slot_range)]
        if not self.is_pattern_key(pattern):
            return self.discover_keys(masters[0], slot_range, pattern) if masters else keys

        for node in masters:
            keys.update(self.discover_keys(node, slot_range, pattern))

        self.logger.log_event(
            trace_id=f"slots-{slot_range.start}-{slot_range.end}",
            event_type=EventType.KEYS_DISCOVERED,
            payload={"pattern": pattern, "nodes": [n.address for n in masters]},
            metrics={"keys": len(keys)},
        )
        return keys

    @staticmethod
    def group_by_node(nodes: Sequence[Node], keys: Iterable[str]) -> Dict[Node, List[str]]:
        """
        Group keys by the master serving their hash slot.

        Raises:
            TopologyConsistencyError: No master serves a key's slot
        """
        masters = [node for node in nodes if node.is_master]
        groups: Dict[Node, List[str]] = {}
        for key in keys:
            slot = key_slot(key)
            owner = next((node for node in masters if slot in node.slot_range), None)
            if owner is None:
                raise TopologyConsistencyError(
                    f"no master serves slot {slot} of key {key!r}"
                )
            groups.setdefault(owner, []).append(key)
        return groups

    @staticmethod
    def filter_by_type(conn: IStoreConnection, keys: Sequence[str], wanted_type: str) -> List[str]:
        """
        Keep the keys whose store-side type is wanted_type.

        One pipelined TYPE per key, sent in a single round trip.
        """
        if not keys:
            return []
        types = conn.types(keys)
        return [key for key, key_type in zip(keys, types) if key_type == wanted_type]

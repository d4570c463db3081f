"""
Infrastructure: Cluster Topology Loader

Builds a ClusterTopology from CLUSTER SLOTS, from a non-cluster node, or
from static records in the config file.
"""

from typing import Any, Iterable, List, Optional

import redis

from zseries.domain.entities import ClusterTopology, Node, NodeRole, SlotRange, MAX_SLOT
from zseries.domain.errors import ConfigurationError, ProtocolError
from zseries.logging_utils import StructuredLogger
from zseries.models import ClusterNodeRecord, ComponentType, EventType

CLUSTER_DISABLED = "cluster support disabled"


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class ClusterTopologyLoader:
    """
    Loads the slot topology a partition plan is computed from.

    Args:
        client_class: redis.Redis or a compatible class
        max_slot: Highest hash slot
        socket_timeout: Seconds, None blocks indefinitely
    """

    def __init__(
        self,
        client_class=redis.Redis,
        max_slot: int = MAX_SLOT,
        socket_timeout: Optional[float] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.client_class = client_class
        self.max_slot = max_slot
        self.socket_timeout = socket_timeout
        self.logger = logger or StructuredLogger(ComponentType.TOPOLOGY)

    def load(self, host: str, port: int) -> ClusterTopology:
        """
        Ask a node for the cluster's slot layout.

        A node running without cluster support is the single master of
        every slot.

        Raises:
            ProtocolError: The node could not be queried
        """
        client = self.client_class(
            host=host, port=port, decode_responses=True, socket_timeout=self.socket_timeout
        )
        try:
            reply = client.execute_command("CLUSTER", "SLOTS")
            topology = self.parse_cluster_slots(reply, host)
        except redis.ResponseError as e:
            if CLUSTER_DISABLED not in str(e).lower():
                raise ProtocolError(str(e), f"{host}:{port}") from e
            topology = ClusterTopology.of(
                [Node(host, port, NodeRole.MASTER, SlotRange(0, self.max_slot))],
                max_slot=self.max_slot,
            )
        except redis.RedisError as e:
            raise ProtocolError(str(e), f"{host}:{port}") from e
        finally:
            client.close()

        self.logger.log_event(
            trace_id="driver",
            event_type=EventType.TOPOLOGY_LOADED,
            payload=[(n.address, n.role.value, n.slot_range.start, n.slot_range.end) for n in topology.nodes],
            metrics={"nodes": len(topology), "masters": len(topology.masters())},
        )
        return topology

    def parse_cluster_slots(self, reply: Any, seed_host: str = "") -> ClusterTopology:
        """
        Parse a CLUSTER SLOTS reply.

        Accepts the raw reply, a list of [start, end, [host, port, id, ...],
        replica entries...], or the mapping redis-py produces,
        {(start, end): {"primary": (host, port), "replicas": [...]}}.
        An empty host means the node that answered.
        """
        nodes: List[Node] = []

        def endpoint(entry) -> tuple:
            host = _text(entry[0]) or seed_host
            return (seed_host if host == "?" else host), int(entry[1])

        if isinstance(reply, dict):
            for (start, end), owners in reply.items():
                slots = SlotRange(int(start), int(end))
                nodes.append(Node(*endpoint(owners["primary"]), NodeRole.MASTER, slots))
                for replica in owners.get("replicas", []):
                    nodes.append(Node(*endpoint(replica), NodeRole.REPLICA, slots))
        else:
            for entry in reply:
                start, end, master, *replicas = entry
                slots = SlotRange(int(start), int(end))
                nodes.append(Node(*endpoint(master), NodeRole.MASTER, slots))
                for replica in replicas:
                    nodes.append(Node(*endpoint(replica), NodeRole.REPLICA, slots))

        return ClusterTopology.of(nodes, max_slot=self.max_slot)

    def from_records(self, records: Iterable[dict]) -> ClusterTopology:
        """
        Build a topology from static {host, port, role, slot_start, slot_end} records.

        Raises:
            ConfigurationError: A record is invalid or no records were given
        """
        nodes = []
        for raw in records:
            try:
                record = ClusterNodeRecord(**raw)
                nodes.append(Node.from_tuple(
                    (record.host, record.port, record.role, record.slot_start, record.slot_end)
                ))
            except ValueError as e:
                raise ConfigurationError(f"invalid topology record {raw!r}: {e}") from e
        if not nodes:
            raise ConfigurationError("static topology has no nodes")
        return ClusterTopology.of(nodes, max_slot=self.max_slot)

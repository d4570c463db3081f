"""
Domain Service: Slot Range Partitioner

Maps the cluster's slot-range topology onto a requested number of
partitions. Each partition is a contiguous slot sub-range addressed at the
master that serves its first slot, so work stays local to the data.
"""

from typing import List, Optional, Sequence

from ..entities import Node, SlotPartition, SlotRange
from ..errors import ConfigurationError
from zseries.logging_utils import StructuredLogger
from zseries.models import ComponentType, EventType


class SlotRangePartitioner:
    """
    Domain service computing partition plans.

    Three cases, by number of masters n and requested count p:
    - n == p: one partition per master
    - n < p: every master is split into p // n chunks, the last master
      also takes the p % n remainder chunks
    - n > p: masters are grouped into p consecutive runs of n // p,
      the last run also takes the n % p remainder masters

    Masters must be sorted by slot start; runs are assumed contiguous.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger or StructuredLogger(ComponentType.PARTITIONER)

    def plan(self, nodes: Sequence[Node], partition_count: int) -> List[SlotPartition]:
        """
        Compute the partition plan.

        Args:
            nodes: Cluster nodes; replicas are ignored
            partition_count: Requested degree of parallelism

        Returns:
            Partitions ordered by slot, covering every master's slots once

        Raises:
            ConfigurationError: No masters supplied or partition_count < 1
        """
        if partition_count < 1:
            raise ConfigurationError(f"partition count must be at least 1, got {partition_count}")

        masters = sorted(
            (node for node in nodes if node.is_master),
            key=lambda n: n.slot_range.start,
        )
        if not masters:
            raise ConfigurationError("cannot plan partitions for an empty topology")

        if len(masters) == partition_count:
            ranges = [(node, node.slot_range) for node in masters]
        elif len(masters) < partition_count:
            ranges = self._split(masters, partition_count)
        else:
            ranges = self._group(masters, partition_count)

        plan = [
            SlotPartition(index=i, host=node.host, port=node.port, slot_range=slot_range)
            for i, (node, slot_range) in enumerate(ranges)
        ]

        self.logger.log_event(
            trace_id="driver",
            event_type=EventType.PARTITION_PLANNED,
            payload=[(p.address, p.slot_range.start, p.slot_range.end) for p in plan],
            metrics={"masters": len(masters), "requested": partition_count, "planned": len(plan)},
        )
        return plan

    @staticmethod
    def split_range(slot_range: SlotRange, count: int) -> List[SlotRange]:
        """
        Split a slot range into count contiguous chunks.

        The final chunk extends to the range's end and absorbs the division
        remainder. Chunks that would be empty (count larger than the span)
        are left out.
        """
        start, end = slot_range.start, slot_range.end
        step = (end - start) // count
        chunks = []
        for i in range(count):
            lo = start if i == 0 else start + step * i + 1
            hi = end if i == count - 1 else start + step * (i + 1)
            if lo <= hi:
                chunks.append(SlotRange(lo, hi))
        return chunks

    def _split(self, masters: List[Node], partition_count: int):
        per_node, remainder = divmod(partition_count, len(masters))
        ranges = []
        for pos, node in enumerate(masters):
            count = per_node + remainder if pos == len(masters) - 1 else per_node
            ranges.extend((node, chunk) for chunk in self.split_range(node.slot_range, count))
        return ranges

    @staticmethod
    def _group(masters: List[Node], partition_count: int):
        per_group = len(masters) // partition_count
        ranges = []
        for idx in range(partition_count):
            first = masters[idx * per_group]
            last_pos = len(masters) - 1 if idx == partition_count - 1 else (idx + 1) * per_group - 1
            last = masters[last_pos]
            ranges.append((first, SlotRange(first.slot_range.start, last.slot_range.end)))
        return ranges

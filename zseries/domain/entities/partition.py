"""
Domain Entity: SlotPartition

One entry of a partition plan, and the opaque descriptor handed to the
host framework for scheduling.
"""

from dataclasses import dataclass

from .node import SlotRange


@dataclass(frozen=True)
class SlotPartition:
    """
    A contiguous slot sub-range assigned to the node that serves it.

    Plain data only, so it pickles cleanly into remote workers.
    """

    index: int  # Position in the plan, 0-based
    host: str
    port: int
    slot_range: SlotRange

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def label(self) -> str:
        """Trace id used in log events for this partition."""
        return f"partition-{self.index}"

"""
Infrastructure: Local Partition Executor

Stand-in host framework that computes every partition of a source on a
thread pool in this process. Partitions share nothing, so each runs on its
own worker thread; results are concatenated in partition order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, TypeVar

from zseries.application.interfaces import PartitionedSource
from zseries.domain.entities import SlotPartition
from zseries.logging_utils import StructuredLogger
from zseries.models import ComponentType, EventType

T = TypeVar("T")


class LocalPartitionExecutor:
    """
    Runs a PartitionedSource to completion.

    Args:
        max_workers: Partitions computed concurrently
    """

    def __init__(self, max_workers: int = 4, logger: Optional[StructuredLogger] = None):
        self.max_workers = max_workers
        self.logger = logger or StructuredLogger(ComponentType.EXECUTOR)

    def run(self, source: PartitionedSource[T]) -> List[T]:
        """
        Compute all partitions and collect their elements.

        Raises:
            Exception: The first failure in partition order; partitions not
            yet started are cancelled
        """
        partitions = source.get_partitions()
        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="zseries-partition",
        ) as pool:
            futures = [pool.submit(self._compute, source, partition) for partition in partitions]
            try:
                return [item for future in futures for item in future.result()]
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    def _compute(self, source: PartitionedSource[T], partition: SlotPartition) -> List[T]:
        try:
            items = list(source.compute(partition))
        except Exception as e:
            self.logger.log_event(
                trace_id=partition.label,
                event_type=EventType.PARTITION_FAILED,
                payload={"address": partition.address, "error": repr(e)},
                level=logging.ERROR,
            )
            raise

        self.logger.log_event(
            trace_id=partition.label,
            event_type=EventType.PARTITION_COMPLETED,
            payload={"address": partition.address},
            metrics={
                "elements": len(items),
                "slot_start": partition.slot_range.start,
                "slot_end": partition.slot_range.end,
            },
        )
        return items

"""
Domain Service: Time Series Fetcher

Per partition, narrows the assigned keys with pushdown filters evaluated
through pipelined round trips, then range-queries every surviving key and
reconstructs dense vectors on the dataset's TimeIndex.
"""

from contextlib import ExitStack
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..entities import DatasetDescriptor, Node, StructuredKey, Vector, DEFAULT_MARKER
from ..repositories import IConnectionFactory, IStoreConnection
from .key_resolver import KeyResolver
from .series_assembler import SeriesAssembler
from zseries.logging_utils import StructuredLogger
from zseries.models import ComponentType, EventType

SERIES_TYPE = "zset"


class TimeSeriesFetcher:
    """
    Domain service for the fetch-and-reconstruct algorithm.

    Work is strictly sequential. Each node call holds two connections, one
    for the filter pipelines and one for range queries; both are released
    on every exit path, including a consumer closing the generator early.

    Args:
        connections: Factory for scoped node connections
        marker: Structured key marker
        series_type: Store-side type a series key must have
    """

    def __init__(
        self,
        connections: IConnectionFactory,
        marker: str = DEFAULT_MARKER,
        series_type: str = SERIES_TYPE,
        assembler: Optional[SeriesAssembler] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.connections = connections
        self.marker = marker
        self.series_type = series_type
        self.assembler = assembler or SeriesAssembler()
        self.logger = logger or StructuredLogger(ComponentType.FETCHER)

    def fetch_partition(
        self,
        nodes: Sequence[Node],
        keys: Iterable[str],
        descriptor: DatasetDescriptor,
        trace_id: str = "driver",
    ) -> Iterator[Tuple[str, Vector]]:
        """
        Route keys to their masters and fetch each group in turn.

        Raises:
            TopologyConsistencyError: A key's slot has no master in nodes
        """
        groups = KeyResolver.group_by_node(nodes, keys)
        for node, node_keys in groups.items():
            yield from self.fetch(node, node_keys, descriptor, trace_id=trace_id)

    def fetch(
        self,
        node: Node,
        keys: Sequence[str],
        descriptor: DatasetDescriptor,
        trace_id: str = "driver",
    ) -> Iterator[Tuple[str, Vector]]:
        """
        Fetch the series of keys held by one node.

        Args:
            node: Master serving every key
            keys: Assigned keys
            descriptor: Filters, index and transform to apply
            trace_id: Correlation id for log events

        Yields:
            (column name, vector) pairs, vector length == len(descriptor.index)
        """
        selections = self._select_columns(keys, descriptor.pattern)
        index = descriptor.index

        with ExitStack() as stack:
            filter_conn = stack.enter_context(self.connections.connect(node, role="filter"))
            range_conn = stack.enter_context(self.connections.connect(node, role="range"))

            candidates = list(selections)
            typed = KeyResolver.filter_by_type(filter_conn, candidates, self.series_type)
            started = self._filter_by_start(filter_conn, typed, descriptor.start_bound)
            survivors = self._filter_by_end(filter_conn, started, descriptor.end_bound)

            self.logger.debug_event(
                trace_id=trace_id,
                event_type=EventType.KEYS_FILTERED,
                payload={"node": node.address, "pattern": descriptor.pattern},
                metrics={
                    "assigned": len(keys),
                    "structured": len(candidates),
                    "typed": len(typed),
                    "started": len(started),
                    "survivors": len(survivors),
                },
            )

            series = 0
            for key in survivors:
                members = range_conn.range_by_score(key, index.first, index.last) if index.size else []
                for name, vector in self.assembler.assemble(key, selections[key], members, index):
                    series += 1
                    yield name, (descriptor.transform(vector) if descriptor.transform else vector)

            self.logger.log_event(
                trace_id=trace_id,
                event_type=EventType.SERIES_FETCHED,
                payload={"node": node.address},
                metrics={"keys": len(survivors), "series": series, "index_size": index.size},
            )

    def _select_columns(self, keys: Iterable[str], pattern: Optional[str]) -> Dict[str, List[Tuple[int, str]]]:
        """Selected columns per structured key; keys with none selected are dropped."""
        selections = {}
        for key in keys:
            structured = StructuredKey.parse(key, self.marker)
            if structured is None:
                continue
            selection = structured.select(pattern)
            if selection:
                selections[key] = selection
        return selections

    @staticmethod
    def _filter_by_start(conn: IStoreConnection, keys: List[str], start_bound: Optional[int]) -> List[str]:
        """Keys whose first score is at or before start_bound."""
        if start_bound is None or not keys:
            return keys
        scores = conn.first_scores(keys)
        return [key for key, score in zip(keys, scores) if score is not None and int(score) <= start_bound]

    @staticmethod
    def _filter_by_end(conn: IStoreConnection, keys: List[str], end_bound: Optional[int]) -> List[str]:
        """Keys whose last score is at or after end_bound."""
        if end_bound is None or not keys:
            return keys
        scores = conn.last_scores(keys)
        return [key for key, score in zip(keys, scores) if score is not None and int(score) >= end_bound]

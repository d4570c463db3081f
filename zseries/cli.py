#!/usr/bin/env python3
"""
zseries CLI

Command-line interface for listing keys and fetching aligned series
from a Redis Cluster (or a single Redis node).

Usage:
    # List the keys matching a glob pattern
    python -m zseries.cli keys --host localhost --port 7000 --key-pattern "ts_*"

    # Fetch hourly series for one day, columns matching a regex
    python -m zseries.cli fetch \\
        --host localhost --port 7000 \\
        --start 2024-01-01T00:00:00 --end 2024-01-01T23:00:00 \\
        --frequency 3600000 \\
        --pattern "AAPL.*" \\
        --fill previous
"""

import argparse
import sys
from typing import Optional

from zseries.config import get_zseries_config
from zseries.domain.entities import UniformTimeIndex
from zseries.domain.errors import ZSeriesError
from zseries.infrastructure.factory import ZSeriesFactory
from zseries.models import SeriesRecord


def parse_timestamp(value: str):
    """Epoch milliseconds when numeric, otherwise an ISO-8601 datetime string."""
    return int(value) if value.lstrip("-").isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    config = get_zseries_config()
    redis_cfg = config.get("redis", {})

    parser = argparse.ArgumentParser(
        description="zseries - slot-partitioned time-series retrieval from Redis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--host", default=redis_cfg.get("host", "localhost"), help="Any cluster node")
    parser.add_argument("--port", type=int, default=redis_cfg.get("port", 6379))
    parser.add_argument("--key-pattern", default="*", help="Glob pattern or literal key (default: *)")
    parser.add_argument("--partitions", type=int, help="Partition count (default: from config)")
    parser.add_argument("--workers", type=int, help="Partitions computed concurrently")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("keys", help="List matching keys")

    fetch = sub.add_parser("fetch", help="Fetch series aligned to a uniform index")
    fetch.add_argument("--start", type=parse_timestamp, required=True, help="Epoch ms or ISO datetime")
    fetch.add_argument("--end", type=parse_timestamp, required=True, help="Epoch ms or ISO datetime")
    fetch.add_argument("--frequency", type=int, required=True, help="Index spacing in milliseconds")
    fetch.add_argument("--pattern", help="Regex a column name must match")
    fetch.add_argument("--starting-before", type=parse_timestamp)
    fetch.add_argument("--ending-after", type=parse_timestamp)
    fetch.add_argument("--fill", help="linear, nearest, next, previous, spline or zero")
    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    try:
        source = ZSeriesFactory.create_keys_source(
            host=args.host,
            port=args.port,
            key_pattern=args.key_pattern,
            partition_count=args.partitions,
        )
        executor = ZSeriesFactory.create_executor()
        if args.workers:
            executor.max_workers = args.workers

        if args.command == "keys":
            for key in source.collect(executor):
                print(key)
            return 0

        dataset = source.time_series(UniformTimeIndex.between(args.start, args.end, args.frequency))
        if args.pattern:
            dataset = dataset.filter_keys(args.pattern)
        if args.starting_before is not None:
            dataset = dataset.filter_starting_before(args.starting_before)
        if args.ending_after is not None:
            dataset = dataset.filter_ending_after(args.ending_after)
        if args.fill:
            dataset = dataset.fill(args.fill)

        for name, vector in dataset.collect(executor):
            print(SeriesRecord.from_vector(name, vector).model_dump_json())
        return 0

    except ZSeriesError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
End-to-end tests: factory wiring, topology discovery, partitioned fetch
and the CLI, against the in-memory FakeRedis server.
"""

import json
import math
from functools import partial

import numpy as np
import pytest

import zseries
from zseries import UniformTimeIndex
from zseries.cli import main
from zseries.infrastructure.factory import ZSeriesFactory

T0 = 1_600_000_000_000
STEP = 60_000

BASE_CONFIG = {
    "redis": {"host": "localhost", "port": 7000, "socket_timeout": None},
    "cluster": {"max_slot": 16383, "nodes": []},
    "keys": {"marker": "_RedisTS_", "scan_count": 100, "series_type": "zset"},
    "partitions": {"default_count": 3},
    "executor": {"max_workers": 2},
}


@pytest.fixture
def cluster(fake_server):
    fake_server.cluster_slots = [
        [0, 5460, ["10.0.0.1", 7000, "id1"], ["10.0.1.1", 7001, "id4"]],
        [5461, 10922, ["10.0.0.2", 7000, "id2"]],
        [10923, 16383, ["10.0.0.3", 7000, "id3"]],
    ]
    fake_server.zadd("ts_RedisTS_P_RedisTS_c1,c2", {
        "a_1.0,2.0": T0,
        "b_3.0,4.0": T0 + STEP,
        "c_5.0,6.0": T0 + 2 * STEP,
    })
    return fake_server


@pytest.fixture
def make_source(redis_class):
    def make(key_pattern="*", partition_count=None, config=BASE_CONFIG):
        return ZSeriesFactory.create_keys_source(
            host="10.0.0.1",
            port=7000,
            key_pattern=key_pattern,
            partition_count=partition_count,
            config=config,
            client_class=redis_class,
        )
    return make


@pytest.fixture
def fake_cli_factory(monkeypatch, redis_class):
    create = ZSeriesFactory.create_keys_source
    monkeypatch.setattr(
        ZSeriesFactory, "create_keys_source", staticmethod(partial(create, client_class=redis_class))
    )


def test_structured_key_round_trip(cluster, make_source):
    """One structured key with three elements yields exactly two aligned vectors."""
    index = UniformTimeIndex(T0, 3, STEP)

    results = make_source().time_series(index).collect()

    assert sorted(name for name, _ in results) == ["Pc1", "Pc2"]
    series = dict(results)
    np.testing.assert_array_equal(series["Pc1"], [1.0, 3.0, 5.0])
    np.testing.assert_array_equal(series["Pc2"], [2.0, 4.0, 6.0])


def test_partition_count_from_config(cluster, make_source):
    source = make_source()

    assert [p.address for p in source.get_partitions()] == ["10.0.0.1:7000", "10.0.0.2:7000", "10.0.0.3:7000"]


@pytest.mark.parametrize("partition_count", [1, 2, 5, 8])
def test_results_do_not_depend_on_partitioning(cluster, make_source, partition_count):
    for i in range(10):
        cluster.zadd(f"s{i}_RedisTS_S{i}_RedisTS_v", {f"t_{i}.0": T0 + STEP})
    index = UniformTimeIndex(T0, 2, STEP)

    series = make_source(partition_count=partition_count).time_series(index).to_dict()

    assert len(series) == 12
    assert series["S7v"][1] == 7.0 and math.isnan(series["S7v"][0])
    assert cluster.closed == len(cluster.opened)


def test_literal_key_pattern(cluster, make_source):
    cluster.zadd("ts_RedisTS_Q_RedisTS_x", {"1.0": T0})
    index = UniformTimeIndex(T0, 1, STEP)

    series = make_source(key_pattern="ts_RedisTS_Q_RedisTS_x").time_series(index).to_dict()

    assert list(series) == ["Qx"]


def test_static_topology_from_config(fake_server, make_source):
    config = dict(BASE_CONFIG, cluster={
        "max_slot": 16383,
        "nodes": [{"host": "solo", "port": 6379, "slot_start": 0, "slot_end": 16383}],
    })

    source = make_source(partition_count=2, config=config)

    assert [p.host for p in source.get_partitions()] == ["solo", "solo"]


def test_non_cluster_node(fake_server, make_source):
    fake_server.zadd("ts_RedisTS_P_RedisTS_c1", {"1.0": T0})

    series = make_source(partition_count=4).time_series(UniformTimeIndex(T0, 1, STEP)).to_dict()

    assert list(series) == ["Pc1"]


def test_foreign_binary_keys_are_skipped(cluster, make_source):
    cluster.set(b"\xff\xfebinary", "x")
    cluster.zadd("ts_RedisTS_P_RedisTS_c3", {"t_7.0": T0})

    series = make_source().time_series(UniformTimeIndex(T0, 1, STEP)).to_dict()

    assert sorted(series) == ["Pc1", "Pc2", "Pc3"]


def test_cli_fetch(cluster, fake_cli_factory, capsys):
    code = main([
        "--host", "10.0.0.1", "--port", "7000", "--partitions", "2",
        "fetch", "--start", str(T0), "--end", str(T0 + 3 * STEP), "--frequency", str(STEP),
        "--pattern", "Pc1", "--fill", "previous",
    ])

    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line) for line in lines] == [{"name": "Pc1", "values": [1.0, 3.0, 5.0, 5.0]}]


def test_cli_keys(cluster, fake_cli_factory, capsys):
    assert main(["--host", "10.0.0.1", "--port", "7000", "keys"]) == 0
    assert capsys.readouterr().out.split() == ["ts_RedisTS_P_RedisTS_c1,c2"]


def test_create_from_env(monkeypatch):
    captured = {}
    monkeypatch.setattr(ZSeriesFactory, "create_keys_source", staticmethod(lambda **kw: captured.update(kw)))
    monkeypatch.setenv("REDIS_HOST", "cache.internal")
    monkeypatch.setenv("REDIS_PORT", "7005")
    monkeypatch.setenv("ZSERIES_PARTITIONS", "6")

    ZSeriesFactory.create_from_env("ts_*")

    assert (captured["host"], captured["port"], captured["partition_count"]) == ("cache.internal", 7005, 6)
    assert captured["key_pattern"] == "ts_*"


def test_keys_source_entry_point(cluster, fake_cli_factory):
    source = zseries.keys_source("10.0.0.1", 7000, "ts_*", partition_count=2)

    assert len(source.get_partitions()) == 2
    assert source.collect() == ["ts_RedisTS_P_RedisTS_c1,c2"]

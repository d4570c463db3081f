"""
Unit tests for the redis-py adapters.

Tests:
- Pipelined batch requests
- Error translation to ProtocolError
- Scoped connection release
- CLUSTER SLOTS parsing and the non-cluster fallback
"""

import pytest
import redis
from unittest.mock import MagicMock

from zseries.domain.entities import Node, NodeRole, SlotRange
from zseries.domain.errors import ConfigurationError, ProtocolError
from zseries.infrastructure.redis_store import (
    ClusterTopologyLoader,
    RedisConnectionFactory,
    RedisNodeConnection,
)


@pytest.fixture
def mock_client():
    client = MagicMock()
    pipe = MagicMock()
    client.pipeline.return_value = pipe
    return client


class TestRedisNodeConnection:

    def test_types_use_one_non_transactional_pipeline(self, mock_client):
        pipe = mock_client.pipeline.return_value
        pipe.execute.return_value = ["zset", "string"]
        conn = RedisNodeConnection(mock_client, "h:1")

        assert conn.types(["a", "b"]) == ["zset", "string"]
        mock_client.pipeline.assert_called_once_with(transaction=False)
        assert [c.args for c in pipe.type.call_args_list] == [("a",), ("b",)]
        pipe.execute.assert_called_once()

    def test_first_and_last_scores(self, mock_client):
        pipe = mock_client.pipeline.return_value
        pipe.execute.return_value = [[("m", 10.0)], []]
        conn = RedisNodeConnection(mock_client, "h:1")

        assert conn.first_scores(["a", "b"]) == [10.0, None]
        pipe.zrange.assert_any_call("a", 0, 0, withscores=True)

        pipe.zrange.reset_mock()
        conn.last_scores(["a", "b"])
        pipe.zrange.assert_any_call("b", -1, -1, withscores=True)

    def test_range_by_score(self, mock_client):
        mock_client.zrangebyscore.return_value = [("t_1,2", 5.0)]
        conn = RedisNodeConnection(mock_client, "h:1")

        assert conn.range_by_score("k", 1, 9) == [("t_1,2", 5.0)]
        mock_client.zrangebyscore.assert_called_once_with("k", 1, 9, withscores=True)

    def test_scan(self, mock_client):
        mock_client.scan.return_value = (17, ["a", "b"])
        conn = RedisNodeConnection(mock_client, "h:1")

        assert conn.scan(0, "x*", 100) == (17, ["a", "b"])
        mock_client.scan.assert_called_once_with(cursor=0, match="x*", count=100)

    def test_redis_errors_become_protocol_errors(self, mock_client):
        mock_client.zrangebyscore.side_effect = redis.ConnectionError("refused")
        conn = RedisNodeConnection(mock_client, "h:1")

        with pytest.raises(ProtocolError) as excinfo:
            conn.range_by_score("k", 0, 1)

        assert excinfo.value.address == "h:1"
        assert isinstance(excinfo.value.__cause__, redis.ConnectionError)

    def test_pipeline_reply_errors_become_protocol_errors(self, mock_client):
        mock_client.pipeline.return_value.execute.side_effect = redis.ResponseError("WRONGTYPE")
        conn = RedisNodeConnection(mock_client, "h:1")

        with pytest.raises(ProtocolError):
            conn.first_scores(["k"])


class TestRedisConnectionFactory:

    def test_connect_closes_on_exit(self):
        client_class = MagicMock()
        factory = RedisConnectionFactory(socket_timeout=2.5, client_class=client_class)
        node = Node("h", 7000, NodeRole.MASTER, SlotRange(0, 16383))

        with factory.connect(node) as conn:
            assert conn.address == "h:7000"

        client_class.assert_called_once_with(
            host="h", port=7000, decode_responses=True, encoding_errors="surrogateescape", socket_timeout=2.5
        )
        client_class.return_value.close.assert_called_once()

    def test_connect_closes_on_error(self):
        client_class = MagicMock()
        factory = RedisConnectionFactory(client_class=client_class)
        node = Node("h", 7000, NodeRole.MASTER, SlotRange(0, 16383))

        with pytest.raises(RuntimeError):
            with factory.connect(node):
                raise RuntimeError("boom")

        client_class.return_value.close.assert_called_once()


class TestClusterTopologyLoader:

    RAW_SLOTS = [
        [10923, 16383, ["10.0.0.3", 7000, "id3"], ["10.0.1.3", 7001, "id6"]],
        [0, 5460, ["10.0.0.1", 7000, "id1"]],
        [5461, 10922, ["10.0.0.2", 7000, "id2"]],
    ]

    def test_parse_raw_reply(self):
        topology = ClusterTopologyLoader().parse_cluster_slots(self.RAW_SLOTS)

        assert [n.address for n in topology.masters()] == ["10.0.0.1:7000", "10.0.0.2:7000", "10.0.0.3:7000"]
        replicas = [n for n in topology.nodes if not n.is_master]
        assert replicas == [Node("10.0.1.3", 7001, NodeRole.REPLICA, SlotRange(10923, 16383))]

    def test_parse_mapping_reply(self):
        reply = {
            (0, 8191): {"primary": ("10.0.0.1", 7000), "replicas": [("10.0.1.1", 7001)]},
            (8192, 16383): {"primary": ("10.0.0.2", 7000), "replicas": []},
        }

        topology = ClusterTopologyLoader().parse_cluster_slots(reply)

        assert len(topology) == 3
        assert topology.masters()[1].slot_range == SlotRange(8192, 16383)

    def test_empty_host_means_seed(self):
        topology = ClusterTopologyLoader().parse_cluster_slots([[0, 16383, ["", 7000, "id"]]], "seed")

        assert topology.masters()[0].host == "seed"

    def test_load_queries_cluster_slots_and_closes(self):
        client_class = MagicMock()
        client_class.return_value.execute_command.return_value = self.RAW_SLOTS

        topology = ClusterTopologyLoader(client_class=client_class).load("10.0.0.1", 7000)

        client_class.return_value.execute_command.assert_called_once_with("CLUSTER", "SLOTS")
        client_class.return_value.close.assert_called_once()
        assert len(topology.masters()) == 3

    def test_non_cluster_node_owns_every_slot(self):
        client_class = MagicMock()
        client_class.return_value.execute_command.side_effect = redis.ResponseError(
            "ERR This instance has cluster support disabled"
        )

        topology = ClusterTopologyLoader(client_class=client_class).load("solo", 6379)

        assert topology.masters() == [Node("solo", 6379, NodeRole.MASTER, SlotRange(0, 16383))]

    def test_unreachable_node_raises(self):
        client_class = MagicMock()
        client_class.return_value.execute_command.side_effect = redis.ConnectionError("refused")

        with pytest.raises(ProtocolError):
            ClusterTopologyLoader(client_class=client_class).load("gone", 6379)
        client_class.return_value.close.assert_called_once()

    def test_static_records(self):
        topology = ClusterTopologyLoader().from_records([
            {"host": "a", "port": 1, "slot_start": 0, "slot_end": 9000},
            {"host": "b", "port": 2, "role": "master", "slot_start": 9001, "slot_end": 16383},
        ])

        assert [n.host for n in topology.masters()] == ["a", "b"]

    @pytest.mark.parametrize("records", [
        [],
        [{"host": "a", "port": 1, "role": "leader", "slot_start": 0, "slot_end": 1}],
        [{"host": "a", "slot_start": 0, "slot_end": 1}],
    ])
    def test_bad_static_records_raise(self, records):
        with pytest.raises(ConfigurationError):
            ClusterTopologyLoader().from_records(records)

import hashlib
import time

import pytest

from asteroidmq.node_id import NodeId
from asteroidmq.util import executor_digest


def test_default_is_zero():
    assert NodeId().bytes == b"\x00" * 16


def test_indexed_layout():
    node = NodeId.new_indexed(1)
    assert node.bytes[0] == NodeId.KIND_INDEXED
    assert int.from_bytes(node.bytes[1:9], "big") == 1
    assert node.bytes[9:] == b"\x00" * 7


def test_indexed_out_of_range():
    with pytest.raises(ValueError):
        NodeId.new_indexed(-1)


def test_indexed_ordering():
    assert NodeId.new_indexed(1) < NodeId.new_indexed(2)
    assert sorted([NodeId.new_indexed(3), NodeId.new_indexed(1)])[0] == NodeId.new_indexed(1)


def test_sha256_layout():
    node = NodeId.sha256(b"node-a")
    assert node.bytes[0] == NodeId.KIND_SHA256
    assert node.bytes[1:] == hashlib.sha256(b"node-a").digest()[:15]


def test_snowflake_layout():
    before = int(time.time())
    node = NodeId.snowflake()
    after = int(time.time())
    assert node.bytes[0] == NodeId.KIND_SNOWFLAKE
    assert int.from_bytes(node.bytes[1:9], "big") == executor_digest()
    stamp = int.from_bytes(node.bytes[10:16], "big")
    assert before % 2**48 <= stamp <= after % 2**48 or stamp < before % 2**48


def test_snowflake_instance_increments():
    first = NodeId.snowflake()
    second = NodeId.snowflake()
    assert second.bytes[9] == (first.bytes[9] + 1) % 256


def test_base64_round_trip():
    node = NodeId.sha256(b"round trip")
    assert NodeId.from_base64(node.to_base64()) == node


def test_json_round_trip():
    node = NodeId.new_indexed(42)
    assert NodeId.from_json(node.to_json()) == node


def test_from_base64_wrong_length():
    with pytest.raises(ValueError):
        NodeId.from_base64("AAAA")


def test_from_json_non_string():
    with pytest.raises(TypeError):
        NodeId.from_json(7)


def test_display():
    assert str(NodeId.new_indexed(1)) == "00-0000000000000001-00-000000000000"


def test_repr_wraps_display():
    node = NodeId.new_indexed(9)
    assert repr(node) == f"NodeId({node})"
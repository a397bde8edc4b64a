from datetime import datetime, timezone

import pytest

from asteroidmq.durable import MessageDurableConfig
from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Subject
from asteroidmq.message import (
    Message,
    MessageAck,
    MessageAckExpectKind,
    MessageHeader,
    MessageHeaderBuilder,
    MessageId,
    MessageStatusKind,
    MessageTargetKind,
)
from asteroidmq.topic import TopicCode


@pytest.mark.parametrize(
    "value, kind",
    [
        (0xFE, MessageStatusKind.SENDING),
        (0xFF, MessageStatusKind.UNSENT),
        (0x00, MessageStatusKind.SENT),
        (0x01, MessageStatusKind.RECEIVED),
        (0x02, MessageStatusKind.PROCESSED),
        (0x80, MessageStatusKind.FAILED),
        (0x81, MessageStatusKind.UNREACHABLE),
    ],
)
def test_status_try_from_u8(value, kind):
    assert MessageStatusKind.try_from_u8(value) is kind


def test_status_try_from_u8_unknown():
    assert MessageStatusKind.try_from_u8(0x03) is None


def test_status_names():
    values = [0xFE, 0xFF, 0x00, 0x01, 0x02, 0x80, 0x81]
    assert [str(MessageStatusKind.try_from_u8(value)) for value in values] == [
        "Sending",
        "Unsent",
        "Sent",
        "Received",
        "Processed",
        "Failed",
        "Unreachable",
    ]


def test_status_is_reached():
    sent = MessageAckExpectKind.SENT
    received = MessageAckExpectKind.RECEIVED
    processed = MessageAckExpectKind.PROCESSED
    assert MessageStatusKind.SENT.is_reached(sent)
    assert not MessageStatusKind.SENT.is_reached(received)
    assert MessageStatusKind.RECEIVED.is_reached(received)
    assert not MessageStatusKind.RECEIVED.is_reached(processed)
    assert MessageStatusKind.PROCESSED.is_reached(processed)
    assert not MessageStatusKind.SENDING.is_reached(sent)
    assert not MessageStatusKind.FAILED.is_reached(sent)


def test_status_failed_and_resolved():
    assert MessageStatusKind.FAILED.is_failed()
    assert MessageStatusKind.UNREACHABLE.is_failed()
    assert not MessageStatusKind.SENT.is_failed()
    assert MessageStatusKind.UNREACHABLE.is_resolved(MessageAckExpectKind.PROCESSED)
    assert not MessageStatusKind.RECEIVED.is_resolved(MessageAckExpectKind.PROCESSED)
    assert MessageStatusKind.UNSENT.is_unsent()
    assert not MessageStatusKind.SENDING.is_unsent()


def test_ack_kind_conversions():
    assert MessageAckExpectKind.try_from_u8(2) is MessageAckExpectKind.PROCESSED
    assert MessageAckExpectKind.try_from_u8(5) is None
    for kind in MessageAckExpectKind:
        assert kind.to_status().value == kind.value
        assert str(kind.to_status()) == str(kind)


def test_target_kind_from_u8():
    assert MessageTargetKind.from_u8(0) is MessageTargetKind.DURABLE
    assert MessageTargetKind.from_u8(2) is MessageTargetKind.AVAILABLE
    assert MessageTargetKind.from_u8(200) is MessageTargetKind.PUSH


def test_message_id_display():
    message_id = MessageId(bytes(range(16)))
    assert str(message_id) == "00010203-0405060708090a0b-0c0d0e0f"
    assert repr(message_id) == f"MessageId({message_id})"


def test_message_id_base64_round_trip():
    message_id = MessageId(bytes(range(100, 116)))
    assert MessageId.from_base64(message_id.to_base64()) == message_id
    assert MessageId.from_json(message_id.to_json()) == message_id


def test_message_id_wrong_length():
    with pytest.raises(ValueError):
        MessageId.from_base64(MessageId(bytes(16)).to_base64()[:-4] + "AAA=")
    with pytest.raises(ValueError):
        MessageId(b"short")


def test_message_id_invalid_base64():
    with pytest.raises(ValueError):
        MessageId.from_base64("!!!not base64!!!")


def test_message_id_snowflake_layout():
    first = MessageId.new_snowflake()
    second = MessageId.new_snowflake()
    assert first.bytes[0:4] == second.bytes[0:4]
    counter_a = int.from_bytes(first.bytes[12:16], "big")
    counter_b = int.from_bytes(second.bytes[12:16], "big")
    assert (counter_a + 1) & 0xFFFF_FFFF == counter_b
    timestamp = int.from_bytes(first.bytes[4:12], "big")
    now = int(datetime.now(timezone.utc).timestamp())
    assert abs(now - timestamp) <= 5


def test_builder_defaults():
    header = MessageHeader.builder([Subject("events/hello-world")]).build()
    assert header.ack_kind is MessageAckExpectKind.SENT
    assert header.target_kind is MessageTargetKind.PUSH
    assert header.durability is None
    assert header.subjects == (Subject("events/hello-world"),)


def test_builder_modes():
    config = MessageDurableConfig(expire=datetime(2030, 1, 1, tzinfo=timezone.utc), max_receiver=3)
    durable = MessageHeaderBuilder([]).mode_durable(config).build()
    assert durable.target_kind is MessageTargetKind.DURABLE
    assert durable.durability == config
    online = (
        MessageHeader.builder([Subject("a")])
        .ack_kind(MessageAckExpectKind.PROCESSED)
        .mode_online()
        .build()
    )
    assert online.target_kind is MessageTargetKind.ONLINE
    assert online.ack_kind is MessageAckExpectKind.PROCESSED
    assert MessageHeader.builder([]).mode_online().mode_push().build().target_kind is MessageTargetKind.PUSH


def test_builder_gives_fresh_ids():
    builder = MessageHeader.builder([Subject("x")])
    ids = {builder.build().message_id for _ in range(5)}
    assert len(ids) == 5


def test_header_acks():
    header = MessageHeader.builder([Subject("a/b")]).build()
    topic = TopicCode("events")
    addr = EndpointAddr(bytes([7]) * 16)
    for method, kind in [
        (header.ack_received, MessageStatusKind.RECEIVED),
        (header.ack_processed, MessageStatusKind.PROCESSED),
        (header.ack_failed, MessageStatusKind.FAILED),
    ]:
        ack = method(topic, addr)
        assert ack == MessageAck(ack_to=header.message_id, topic_code=topic, source=addr, kind=kind)


def test_message_ack_json_round_trip():
    header = MessageHeader.builder([Subject("a")]).build()
    ack = header.ack_processed(TopicCode("t"), EndpointAddr(bytes([1]) * 16))
    encoded = ack.to_json()
    assert encoded["from"] == ack.source.to_json()
    assert encoded["kind"] == "Processed"
    assert MessageAck.from_json(encoded) == ack


def test_message_accessors_and_text():
    header = MessageHeader.builder([Subject("events/hello-world")]).ack_kind(
        MessageAckExpectKind.RECEIVED
    ).build()
    message = Message.create(header, "Message No.1")
    assert message.id() == header.message_id
    assert message.ack_kind() is MessageAckExpectKind.RECEIVED
    assert message.subjects() == (Subject("events/hello-world"),)
    assert message.text() == "Message No.1"


def test_message_json_payload():
    message = Message.create(MessageHeader.builder([]).build(), b'{"number": 42, "text": "hi"}')
    assert message.json() == {"number": 42, "text": "hi"}


def test_message_payload_errors():
    message = Message.create(MessageHeader.builder([]).build(), b"\xff\xfe")
    with pytest.raises(UnicodeDecodeError):
        message.text()
    with pytest.raises(ValueError):
        Message.create(MessageHeader.builder([]).build(), "not json").json()


def test_message_json_round_trip():
    config = MessageDurableConfig(expire=datetime(2031, 5, 6, 7, 8, 9, tzinfo=timezone.utc))
    header = (
        MessageHeader.builder([Subject("event/hello"), Subject("event/hello/avatar/b2")])
        .ack_kind(MessageAckExpectKind.PROCESSED)
        .mode_durable(config)
        .build()
    )
    message = Message.create(header, bytes(range(50)))
    encoded = message.to_json()
    assert encoded["header"]["target_kind"] == str(MessageTargetKind.DURABLE)
    assert Message.from_json(encoded) == message


def test_header_from_json_rejects_unknown_ack_kind():
    encoded = MessageHeader.builder([]).build().to_json()
    encoded["ack_kind"] = "Whenever"
    with pytest.raises(ValueError):
        MessageHeader.from_json(encoded)
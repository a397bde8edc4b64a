import pytest

from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Interest
from asteroidmq.message import MessageId, MessageStatusKind
from asteroidmq.proposal import EndpointInterest, MessageStateUpdate, SetState
from asteroidmq.topic import TopicCode


def _addr(fill: int) -> EndpointAddr:
    return EndpointAddr(bytes([fill]) * 16)


def test_endpoint_interest_round_trip():
    proposal = EndpointInterest(
        topic_code=TopicCode("test"),
        endpoint=_addr(9),
        interests=[Interest("event/*"), Interest("event/**/b2")],
    )
    encoded = proposal.to_json()
    assert encoded["interests"] == ["event/*", "event/**/b2"]
    assert encoded["endpoint"] == _addr(9).to_json()
    assert EndpointInterest.from_json(encoded) == proposal


def test_state_update_empty():
    message_id = MessageId(bytes(range(16)))
    update = MessageStateUpdate.empty(message_id)
    assert update.message_id == message_id
    assert update.status == {}
    assert update.to_json()["status"] == {}


def test_state_update_round_trip():
    update = MessageStateUpdate(
        message_id=MessageId.new_snowflake(),
        status={_addr(1): MessageStatusKind.PROCESSED, _addr(2): MessageStatusKind.FAILED},
    )
    assert MessageStateUpdate.from_json(update.to_json()) == update


def test_set_state_round_trip():
    state = SetState(
        topic=TopicCode("events"),
        update=MessageStateUpdate(
            message_id=MessageId(bytes([3]) * 16), status={_addr(4): MessageStatusKind.RECEIVED}
        ),
    )
    encoded = state.to_json()
    assert encoded["topic"] == "events"
    assert encoded["update"]["message_id"] == MessageId(bytes([3]) * 16).to_base64()
    assert SetState.from_json(encoded) == state


def test_set_state_rejects_bad_status():
    encoded = SetState(
        topic=TopicCode("events"), update=MessageStateUpdate.empty(MessageId(bytes(16)))
    ).to_json()
    encoded["update"]["status"] = {_addr(5).to_json(): "Lost"}
    with pytest.raises(ValueError):
        SetState.from_json(encoded)


def test_endpoint_interest_rejects_bad_address():
    with pytest.raises(ValueError):
        EndpointInterest.from_json({"topic_code": "t", "endpoint": "AAAA", "interests": []})
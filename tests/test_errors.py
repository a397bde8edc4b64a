import pytest

from asteroidmq.errors import Error, ErrorKind
from asteroidmq.topic import WaitAckError, WaitAckErrorException


def test_display_without_detail():
    error = Error("topic already exists", ErrorKind.TOPIC_ALREADY_EXISTS)
    assert str(error) == "topic already exists: TopicAlreadyExists"
    assert error.kind is ErrorKind.TOPIC_ALREADY_EXISTS
    assert error.detail is None


def test_unknown():
    error = Error.unknown("topic proposal committed but still not found")
    assert error.kind is ErrorKind.CUSTOM
    assert error.detail == "unknown error"
    assert str(error).startswith("topic proposal committed but still not found: Custom(")
    assert "unknown error" in str(error)


def test_custom_keeps_cause():
    inner = RuntimeError("join failed")
    error = Error.custom("runtime join error", inner)
    assert error.kind is ErrorKind.CUSTOM
    assert error.__cause__ is inner
    assert error.detail is inner


def test_kind_inferred_from_inner_error():
    io = Error("read", OSError("disk"))
    assert io.kind is ErrorKind.IO
    ack = Error("waiting event ack", WaitAckError.from_exception(WaitAckErrorException.OVERFLOW))
    assert ack.kind is ErrorKind.ACK
    assert ack.detail.exception is WaitAckErrorException.OVERFLOW


def test_contextual():
    wrap = Error.contextual("load topic list")
    error = wrap(ErrorKind.OFFLINE)
    assert error.context == "load topic list"
    assert error.kind is ErrorKind.OFFLINE
    custom = wrap(ValueError("bad"))
    assert custom.kind is ErrorKind.CUSTOM


def test_contextual_offline_text():
    error = Error.contextual("no connection to leader")(ErrorKind.OFFLINE)
    assert error.kind is ErrorKind.OFFLINE
    assert error.context == "no connection to leader"
    assert error.detail is None
    assert str(error) == f"no connection to leader: {ErrorKind.OFFLINE}"


def test_bad_kind():
    with pytest.raises(TypeError):
        Error("context", 42)
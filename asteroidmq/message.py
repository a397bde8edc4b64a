"""Messages, their headers, identifiers and acknowledgement states."""

from __future__ import annotations

import base64
import binascii
import enum
import json as _json
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Optional, Union

from asteroidmq.durable import MessageDurableConfig
from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Subject
from asteroidmq.topic import TopicCode
from asteroidmq.util import MaybeBase64Bytes, dashed, executor_digest, hex_string, timestamp_sec

_thread_state = threading.local()


class _WireEnum(enum.Enum):
    def __str__(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_wire(cls, value: object):
        for member in cls:
            if str(member) == value:
                return member
        raise ValueError(f"unknown {cls.__name__}: {value!r}")


class MessageStatusKind(_WireEnum):
    """The delivery state of a message at one endpoint."""

    SENDING = 0xFE
    UNSENT = 0xFF
    SENT = 0x00
    RECEIVED = 0x01
    PROCESSED = 0x02
    FAILED = 0x80
    UNREACHABLE = 0x81

    @classmethod
    def try_from_u8(cls, value: int) -> Optional[MessageStatusKind]:
        try:
            return cls(value)
        except ValueError:
            return None

    def is_unsent(self) -> bool:
        return self is MessageStatusKind.UNSENT

    def is_reached(self, condition: MessageAckExpectKind) -> bool:
        return self in _REACHED[condition]

    def is_failed(self) -> bool:
        return self in (MessageStatusKind.FAILED, MessageStatusKind.UNREACHABLE)

    def is_resolved(self, condition: MessageAckExpectKind) -> bool:
        return self.is_failed() or self.is_reached(condition)

    def __str__(self) -> str:
        return self.name.capitalize()


class MessageAckExpectKind(_WireEnum):
    """The acknowledgement a sender waits for."""

    SENT = 0x00
    RECEIVED = 0x01
    PROCESSED = 0x02

    @classmethod
    def try_from_u8(cls, value: int) -> Optional[MessageAckExpectKind]:
        try:
            return cls(value)
        except ValueError:
            return None

    def to_status(self) -> MessageStatusKind:
        return MessageStatusKind(self.value)

    def __str__(self) -> str:
        return self.name.capitalize()


_REACHED = {
    MessageAckExpectKind.SENT: frozenset(
        {MessageStatusKind.SENT, MessageStatusKind.RECEIVED, MessageStatusKind.PROCESSED}
    ),
    MessageAckExpectKind.RECEIVED: frozenset(
        {MessageStatusKind.RECEIVED, MessageStatusKind.PROCESSED}
    ),
    MessageAckExpectKind.PROCESSED: frozenset({MessageStatusKind.PROCESSED}),
}


class MessageTargetKind(_WireEnum):
    """Which endpoints a message is delivered to."""

    DURABLE = 0
    ONLINE = 1
    AVAILABLE = 2
    PUSH = 3

    @classmethod
    def from_u8(cls, value: int) -> MessageTargetKind:
        try:
            return cls(value)
        except ValueError:
            return cls.PUSH


def _next_counter() -> int:
    value = getattr(_thread_state, "counter", 0)
    _thread_state.counter = (value + 1) & 0xFFFF_FFFF
    return value


@dataclass(frozen=True, order=True)
class MessageId:
    """A 16-byte message identifier: executor digest, timestamp and counter."""

    bytes: bytes

    def __post_init__(self) -> None:
        raw = self.bytes if isinstance(self.bytes, bytes) else bytes(self.bytes)
        if len(raw) != 16:
            raise ValueError(f"message id must be 16 bytes, got {len(raw)}")
        object.__setattr__(self, "bytes", raw)

    def __bytes__(self) -> bytes:
        return self.bytes

    @classmethod
    def new_snowflake(cls) -> MessageId:
        eid = (executor_digest() & 0xFFFF_FFFF).to_bytes(4, "big")
        timestamp = timestamp_sec().to_bytes(8, "big")
        counter = _next_counter().to_bytes(4, "big")
        return cls(eid + timestamp + counter)

    def to_base64(self) -> str:
        return base64.b64encode(self.bytes).decode("ascii")

    @classmethod
    def from_base64(cls, text: str) -> MessageId:
        try:
            decoded = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid message id: {exc}") from exc
        if len(decoded) != 16:
            raise ValueError(f"invalid length: {len(decoded)}")
        return cls(decoded)

    def to_json(self) -> str:
        return self.to_base64()

    @classmethod
    def from_json(cls, value: object) -> MessageId:
        if not isinstance(value, str):
            raise TypeError(f"expected a base64 string, got {type(value).__name__}")
        return cls.from_base64(value)

    def _dashed(self) -> str:
        parts = (self.bytes[0:4], self.bytes[4:12], self.bytes[12:16])
        return dashed(hex_string(part) for part in parts)

    def __str__(self) -> str:
        return self._dashed()

    def __repr__(self) -> str:
        return f"MessageId({self._dashed()})"


@dataclass(frozen=True)
class MessageAck:
    """An endpoint reporting a new status for a message."""

    ack_to: MessageId
    topic_code: TopicCode
    source: EndpointAddr
    kind: MessageStatusKind

    def to_json(self) -> dict[str, Any]:
        return {
            "ack_to": self.ack_to.to_json(),
            "topic_code": self.topic_code.to_json(),
            "from": self.source.to_json(),
            "kind": str(self.kind),
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> MessageAck:
        return cls(
            ack_to=MessageId.from_json(value["ack_to"]),
            topic_code=TopicCode.from_json(value["topic_code"]),
            source=EndpointAddr.from_json(value["from"]),
            kind=MessageStatusKind.from_wire(value["kind"]),
        )


@dataclass(frozen=True)
class MessageHeader:
    """Routing and acknowledgement settings of a message."""

    message_id: MessageId
    ack_kind: MessageAckExpectKind
    target_kind: MessageTargetKind
    durability: Optional[MessageDurableConfig]
    subjects: tuple[Subject, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "subjects", tuple(self.subjects))

    @classmethod
    def builder(cls, subjects: Iterable[Subject]) -> MessageHeaderBuilder:
        return MessageHeaderBuilder(subjects)

    def _ack(
        self, topic_code: TopicCode, source: EndpointAddr, kind: MessageStatusKind
    ) -> MessageAck:
        return MessageAck(ack_to=self.message_id, topic_code=topic_code, source=source, kind=kind)

    def ack_received(self, topic_code: TopicCode, source: EndpointAddr) -> MessageAck:
        return self._ack(topic_code, source, MessageStatusKind.RECEIVED)

    def ack_processed(self, topic_code: TopicCode, source: EndpointAddr) -> MessageAck:
        return self._ack(topic_code, source, MessageStatusKind.PROCESSED)

    def ack_failed(self, topic_code: TopicCode, source: EndpointAddr) -> MessageAck:
        return self._ack(topic_code, source, MessageStatusKind.FAILED)

    def to_json(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id.to_json(),
            "ack_kind": str(self.ack_kind),
            "target_kind": str(self.target_kind),
            "durability": None if self.durability is None else self.durability.to_json(),
            "subjects": [subject.to_json() for subject in self.subjects],
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> MessageHeader:
        durability = value.get("durability")
        return cls(
            message_id=MessageId.from_json(value["message_id"]),
            ack_kind=MessageAckExpectKind.from_wire(value["ack_kind"]),
            target_kind=MessageTargetKind.from_wire(value["target_kind"]),
            durability=None if durability is None else MessageDurableConfig.from_json(durability),
            subjects=tuple(Subject.from_json(subject) for subject in value["subjects"]),
        )


class MessageHeaderBuilder:
    """Fluent construction of a :class:`MessageHeader` with a fresh id."""

    def __init__(self, subjects: Iterable[Subject]) -> None:
        self.subjects: list[Subject] = list(subjects)
        self._ack_kind = MessageAckExpectKind.SENT
        self._target_kind = MessageTargetKind.PUSH
        self._durability: Optional[MessageDurableConfig] = None

    def ack_kind(self, ack_kind: MessageAckExpectKind) -> MessageHeaderBuilder:
        self._ack_kind = ack_kind
        return self

    def mode_online(self) -> MessageHeaderBuilder:
        self._target_kind = MessageTargetKind.ONLINE
        return self

    def mode_durable(self, config: MessageDurableConfig) -> MessageHeaderBuilder:
        self._target_kind = MessageTargetKind.DURABLE
        self._durability = config
        return self

    def mode_push(self) -> MessageHeaderBuilder:
        self._target_kind = MessageTargetKind.PUSH
        return self

    def build(self) -> MessageHeader:
        return MessageHeader(
            message_id=MessageId.new_snowflake(),
            ack_kind=self._ack_kind,
            target_kind=self._target_kind,
            durability=self._durability,
            subjects=tuple(self.subjects),
        )


@dataclass(frozen=True)
class Message:
    """A header and its opaque payload."""

    header: MessageHeader
    payload: MaybeBase64Bytes

    @classmethod
    def create(
        cls, header: MessageHeader, payload: Union[bytes, bytearray, str, MaybeBase64Bytes]
    ) -> Message:
        if isinstance(payload, MaybeBase64Bytes):
            return cls(header, payload)
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        return cls(header, MaybeBase64Bytes(bytes(payload)))

    def id(self) -> MessageId:
        return self.header.message_id

    def ack_kind(self) -> MessageAckExpectKind:
        return self.header.ack_kind

    def subjects(self) -> tuple[Subject, ...]:
        return self.header.subjects

    def json(self) -> Any:
        """Decode the payload as JSON; raises ``ValueError`` when it is not."""
        return _json.loads(self.payload.data)

    def text(self) -> str:
        """Decode the payload as UTF-8; raises ``UnicodeDecodeError`` when it is not."""
        return self.payload.data.decode("utf-8")

    def to_json(self) -> dict[str, Any]:
        return {"header": self.header.to_json(), "payload": self.payload.to_json()}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> Message:
        return cls(
            header=MessageHeader.from_json(value["header"]),
            payload=MaybeBase64Bytes.from_json(value["payload"]),
        )
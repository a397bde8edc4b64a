"""Requests, responses and pushes exchanged between an edge client and a node.

A request is one of :class:`EdgeMessage`, :class:`EdgeEndpointOnline`,
:class:`EdgeEndpointOffline`, :class:`EndpointInterest` or :class:`SetState`.
A response is an :class:`EdgeResult` of :class:`WaitAckSuccess` or
:class:`WaitAckError` for a sent message, an :class:`EndpointAddr` for an
endpoint that came online, or an :class:`EdgeResponseKind` member for the
answers that carry no content.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar, Union

from asteroidmq.durable import MessageDurableConfig
from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Interest, Subject
from asteroidmq.message import (
    Message,
    MessageAckExpectKind,
    MessageHeader,
    MessageId,
    MessageTargetKind,
)
from asteroidmq.proposal import EndpointInterest, SetState
from asteroidmq.topic import TopicCode, WaitAckError, WaitAckSuccess
from asteroidmq.util import MaybeBase64Bytes

T = TypeVar("T")
E = TypeVar("E")

_U32_MAX = 0xFFFF_FFFF


def _expect_object(value: object, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"expected a JSON object for {what}, got {type(value).__name__}")
    return value


def _check_seq_id(seq_id: int) -> None:
    if not 0 <= seq_id <= _U32_MAX:
        raise ValueError(f"sequence id out of range: {seq_id}")


def _topic_of(value: Union[TopicCode, str, bytes]) -> TopicCode:
    return value if isinstance(value, TopicCode) else TopicCode(value)


class EdgeErrorKind(enum.Enum):
    """The class of failure reported to an edge client."""

    DECODE = 0x00
    TOPIC_NOT_FOUND = 0x02
    ENDPOINT_NOT_FOUND = 0x03
    UNAUTHORIZED = 0x04
    INTERNAL = 0xF0

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))

    @classmethod
    def from_wire(cls, value: object) -> EdgeErrorKind:
        for member in cls:
            if str(member) == value:
                return member
        raise ValueError(f"unknown edge error kind: {value!r}")


@dataclass
class EdgeError:
    """An error answered to an edge client."""

    context: str
    kind: EdgeErrorKind
    message: Optional[str] = None

    @classmethod
    def with_message(cls, context: str, message: str, kind: EdgeErrorKind) -> EdgeError:
        return cls(context=context, kind=kind, message=message)

    def to_json(self) -> dict[str, Any]:
        return {"context": self.context, "message": self.message, "kind": str(self.kind)}

    @classmethod
    def from_json(cls, value: object) -> EdgeError:
        obj = _expect_object(value, "edge error")
        return cls(
            context=obj["context"],
            kind=EdgeErrorKind.from_wire(obj["kind"]),
            message=obj.get("message"),
        )


@dataclass(frozen=True)
class EdgeResult(Generic[T, E]):
    """Either a success value or an error value."""

    value: Optional[T] = None
    error: Optional[E] = None
    is_ok: bool = True

    @classmethod
    def ok(cls, value: T) -> EdgeResult[T, E]:
        return cls(value=value, is_ok=True)

    @classmethod
    def err(cls, error: E) -> EdgeResult[T, E]:
        return cls(error=error, is_ok=False)

    def unwrap(self) -> T:
        """Return the success value; raise the error (or a ``ValueError`` wrapping it)."""
        if self.is_ok:
            return self.value  # type: ignore[return-value]
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(self.error)


def _result_to_json(
    result: EdgeResult[Any, Any],
    encode_ok: Callable[[Any], Any],
    encode_err: Callable[[Any], Any],
) -> dict[str, Any]:
    if result.is_ok:
        return {"kind": "Ok", "content": encode_ok(result.value)}
    return {"kind": "Err", "content": encode_err(result.error)}


def _result_from_json(
    value: object,
    decode_ok: Callable[[Any], Any],
    decode_err: Callable[[Any], Any],
) -> EdgeResult[Any, Any]:
    obj = _expect_object(value, "result")
    kind = obj.get("kind")
    if kind == "Ok":
        return EdgeResult.ok(decode_ok(obj.get("content")))
    if kind == "Err":
        return EdgeResult.err(decode_err(obj.get("content")))
    raise ValueError(f"unknown result kind: {kind!r}")


@dataclass
class EdgeEndpointOnline:
    """Ask for a new endpoint in a topic with the given interests."""

    topic_code: TopicCode
    interests: list[Interest] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "topic_code": self.topic_code.to_json(),
            "interests": [interest.to_json() for interest in self.interests],
        }

    @classmethod
    def from_json(cls, value: object) -> EdgeEndpointOnline:
        obj = _expect_object(value, "endpoint online")
        return cls(
            topic_code=TopicCode.from_json(obj["topic_code"]),
            interests=[Interest.from_json(item) for item in obj["interests"]],
        )


@dataclass
class EdgeEndpointOffline:
    """Take an endpoint of a topic offline."""

    topic_code: TopicCode
    endpoint: EndpointAddr

    def to_json(self) -> dict[str, Any]:
        return {"topic_code": self.topic_code.to_json(), "endpoint": self.endpoint.to_json()}

    @classmethod
    def from_json(cls, value: object) -> EdgeEndpointOffline:
        obj = _expect_object(value, "endpoint offline")
        return cls(
            topic_code=TopicCode.from_json(obj["topic_code"]),
            endpoint=EndpointAddr.from_json(obj["endpoint"]),
        )


@dataclass
class EdgeMessageHeader:
    """A message header as sent by an edge client, before it gets an id."""

    ack_kind: MessageAckExpectKind
    target_kind: MessageTargetKind
    durability: Optional[MessageDurableConfig]
    subjects: list[Subject]
    topic: TopicCode

    def into_message_header(self) -> tuple[MessageHeader, TopicCode]:
        header = MessageHeader(
            message_id=MessageId.new_snowflake(),
            ack_kind=self.ack_kind,
            target_kind=self.target_kind,
            durability=self.durability,
            subjects=tuple(self.subjects),
        )
        return header, self.topic

    def to_json(self) -> dict[str, Any]:
        return {
            "ack_kind": str(self.ack_kind),
            "target_kind": str(self.target_kind),
            "durability": None if self.durability is None else self.durability.to_json(),
            "subjects": [subject.to_json() for subject in self.subjects],
            "topic": self.topic.to_json(),
        }

    @classmethod
    def from_json(cls, value: object) -> EdgeMessageHeader:
        obj = _expect_object(value, "edge message header")
        durability = obj.get("durability")
        return cls(
            ack_kind=MessageAckExpectKind.from_wire(obj["ack_kind"]),
            target_kind=MessageTargetKind.from_wire(obj["target_kind"]),
            durability=None if durability is None else MessageDurableConfig.from_json(durability),
            subjects=[Subject.from_json(item) for item in obj["subjects"]],
            topic=TopicCode.from_json(obj["topic"]),
        )


@dataclass
class EdgeMessage:
    """A message sent by an edge client."""

    header: EdgeMessageHeader
    payload: MaybeBase64Bytes

    @classmethod
    def builder(
        cls,
        topic_code: Union[TopicCode, str, bytes],
        subjects: Iterable[Subject],
        payload: Union[bytes, bytearray, str],
    ) -> EdgeMessageBuilder:
        return EdgeMessageBuilder(topic_code, subjects, payload)

    def into_message(self) -> tuple[Message, TopicCode]:
        header, topic = self.header.into_message_header()
        return Message(header, self.payload), topic

    def to_json(self) -> dict[str, Any]:
        return {"header": self.header.to_json(), "payload": self.payload.to_json()}

    @classmethod
    def from_json(cls, value: object) -> EdgeMessage:
        obj = _expect_object(value, "edge message")
        return cls(
            header=EdgeMessageHeader.from_json(obj["header"]),
            payload=MaybeBase64Bytes.from_json(obj["payload"]),
        )


class EdgeMessageBuilder:
    """Fluent construction of an :class:`EdgeMessage`."""

    def __init__(
        self,
        topic_code: Union[TopicCode, str, bytes],
        subjects: Iterable[Subject],
        payload: Union[bytes, bytearray, str],
    ) -> None:
        self._topic = _topic_of(topic_code)
        self._subjects: list[Subject] = list(subjects)
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        self._payload = bytes(payload)
        self._ack_kind = MessageAckExpectKind.SENT
        self._target_kind = MessageTargetKind.PUSH
        self._durability: Optional[MessageDurableConfig] = None

    def ack_kind(self, ack_kind: MessageAckExpectKind) -> EdgeMessageBuilder:
        self._ack_kind = ack_kind
        return self

    def mode_durable(self, durability: MessageDurableConfig) -> EdgeMessageBuilder:
        self._durability = durability
        self._target_kind = MessageTargetKind.DURABLE
        return self

    def mode_online(self) -> EdgeMessageBuilder:
        self._target_kind = MessageTargetKind.ONLINE
        return self

    def mode_push(self) -> EdgeMessageBuilder:
        self._target_kind = MessageTargetKind.PUSH
        return self

    def with_subject(self, subject: Subject) -> EdgeMessageBuilder:
        self._subjects.append(subject)
        return self

    def build(self) -> EdgeMessage:
        return EdgeMessage(
            header=EdgeMessageHeader(
                ack_kind=self._ack_kind,
                target_kind=self._target_kind,
                durability=self._durability,
                subjects=list(self._subjects),
                topic=self._topic,
            ),
            payload=MaybeBase64Bytes(self._payload),
        )


EdgeRequestContent = Union[
    EdgeMessage, EdgeEndpointOnline, EdgeEndpointOffline, EndpointInterest, SetState
]

_REQUEST_TYPES: dict[str, type] = {
    "SendMessage": EdgeMessage,
    "EndpointOnline": EdgeEndpointOnline,
    "EndpointOffline": EdgeEndpointOffline,
    "EndpointInterest": EndpointInterest,
    "SetState": SetState,
}


def request_to_json(request: EdgeRequestContent) -> dict[str, Any]:
    """Encode a request body with its variant tag."""
    for name, request_type in _REQUEST_TYPES.items():
        if isinstance(request, request_type):
            return {"kind": name, "content": request.to_json()}
    raise TypeError(f"not an edge request: {type(request).__name__}")


def request_from_json(value: object) -> EdgeRequestContent:
    """Decode a tagged request body."""
    obj = _expect_object(value, "edge request")
    kind = obj.get("kind")
    request_type = _REQUEST_TYPES.get(kind) if isinstance(kind, str) else None
    if request_type is None:
        raise ValueError(f"unknown edge request kind: {kind!r}")
    return request_type.from_json(obj.get("content"))


@dataclass
class EdgeRequest:
    """A request with the sequence id its response will carry."""

    seq_id: int
    request: EdgeRequestContent

    def __post_init__(self) -> None:
        _check_seq_id(self.seq_id)

    def to_json(self) -> dict[str, Any]:
        return {"seq_id": self.seq_id, "request": request_to_json(self.request)}

    @classmethod
    def from_json(cls, value: object) -> EdgeRequest:
        obj = _expect_object(value, "edge request")
        return cls(seq_id=obj["seq_id"], request=request_from_json(obj["request"]))


class EdgeResponseKind(enum.Enum):
    """The variants of a response; the wire tag is the value."""

    SEND_MESSAGE = "SendMessage"
    ENDPOINT_ONLINE = "EndpointOnline"
    ENDPOINT_OFFLINE = "EndpointOffline"
    ENDPOINT_INTEREST = "EndpointInterest"
    SET_STATE = "SetState"


_UNIT_RESPONSES = frozenset(
    {
        EdgeResponseKind.ENDPOINT_OFFLINE,
        EdgeResponseKind.ENDPOINT_INTEREST,
        EdgeResponseKind.SET_STATE,
    }
)

EdgeResponseContent = Union[
    "EdgeResult[WaitAckSuccess, WaitAckError]", EndpointAddr, EdgeResponseKind
]


def response_to_json(response: EdgeResponseContent) -> dict[str, Any]:
    """Encode a response body with its variant tag."""
    if isinstance(response, EdgeResult):
        content = _result_to_json(response, lambda ok: ok.to_json(), lambda err: err.to_json())
        return {"kind": EdgeResponseKind.SEND_MESSAGE.value, "content": content}
    if isinstance(response, EndpointAddr):
        return {"kind": EdgeResponseKind.ENDPOINT_ONLINE.value, "content": response.to_json()}
    if isinstance(response, EdgeResponseKind) and response in _UNIT_RESPONSES:
        return {"kind": response.value}
    raise TypeError(f"not an edge response: {response!r}")


def response_from_json(value: object) -> EdgeResponseContent:
    """Decode a tagged response body."""
    obj = _expect_object(value, "edge response")
    kind = EdgeResponseKind(obj.get("kind"))
    if kind is EdgeResponseKind.SEND_MESSAGE:
        return _result_from_json(
            obj.get("content"), WaitAckSuccess.from_json, WaitAckError.from_json
        )
    if kind is EdgeResponseKind.ENDPOINT_ONLINE:
        return EndpointAddr.from_json(obj.get("content"))
    return kind


@dataclass
class EdgeResponse:
    """The answer to the request with the same sequence id."""

    seq_id: int
    result: EdgeResult[EdgeResponseContent, EdgeError]

    def __post_init__(self) -> None:
        _check_seq_id(self.seq_id)

    @classmethod
    def from_result(
        cls,
        seq_id: int,
        result: Union[EdgeResult[EdgeResponseContent, EdgeError], EdgeResponseContent, EdgeError],
    ) -> EdgeResponse:
        """Wrap a response body or an :class:`EdgeError` (or a ready result)."""
        if isinstance(result, EdgeResult) and not _is_send_message_body(result):
            wrapped = result
        elif isinstance(result, EdgeError):
            wrapped = EdgeResult.err(result)
        else:
            wrapped = EdgeResult.ok(result)
        return cls(seq_id=seq_id, result=wrapped)

    def to_json(self) -> dict[str, Any]:
        return {
            "seq_id": self.seq_id,
            "result": _result_to_json(self.result, response_to_json, lambda err: err.to_json()),
        }

    @classmethod
    def from_json(cls, value: object) -> EdgeResponse:
        obj = _expect_object(value, "edge response")
        return cls(
            seq_id=obj["seq_id"],
            result=_result_from_json(obj["result"], response_from_json, EdgeError.from_json),
        )


def _is_send_message_body(result: EdgeResult[Any, Any]) -> bool:
    inner = result.value if result.is_ok else result.error
    return isinstance(inner, (WaitAckSuccess, WaitAckError))


@dataclass
class EdgePush:
    """A message pushed by the node to some of the client's endpoints."""

    endpoints: list[EndpointAddr]
    message: Message

    def to_json(self) -> dict[str, Any]:
        return {
            "kind": "Message",
            "content": {
                "endpoints": [addr.to_json() for addr in self.endpoints],
                "message": self.message.to_json(),
            },
        }

    @classmethod
    def from_json(cls, value: object) -> EdgePush:
        obj = _expect_object(value, "edge push")
        if obj.get("kind") != "Message":
            raise ValueError(f"unknown edge push kind: {obj.get('kind')!r}")
        content = _expect_object(obj.get("content"), "edge push content")
        return cls(
            endpoints=[EndpointAddr.from_json(item) for item in content["endpoints"]],
            message=Message.from_json(content["message"]),
        )


EdgePayload = Union[EdgePush, EdgeResponse, EdgeRequest, EdgeError]

_PAYLOAD_TYPES: dict[str, type] = {
    "Push": EdgePush,
    "Response": EdgeResponse,
    "Request": EdgeRequest,
    "Error": EdgeError,
}


def encode_payload(payload: EdgePayload) -> str:
    """Serialize a payload to compact JSON text."""
    for name, payload_type in _PAYLOAD_TYPES.items():
        if isinstance(payload, payload_type):
            body = {"kind": name, "content": payload.to_json()}
            return json.dumps(body, separators=(",", ":"))
    raise TypeError(f"not an edge payload: {type(payload).__name__}")


def decode_payload(text: Union[str, bytes]) -> EdgePayload:
    """Parse JSON text into a payload; raises ``ValueError`` on bad input."""
    obj = _expect_object(json.loads(text), "edge payload")
    kind = obj.get("kind")
    payload_type = _PAYLOAD_TYPES.get(kind) if isinstance(kind, str) else None
    if payload_type is None:
        raise ValueError(f"unknown edge payload kind: {kind!r}")
    return payload_type.from_json(obj.get("content"))
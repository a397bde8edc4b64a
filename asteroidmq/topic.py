"""Topic codes and the outcome of waiting for message acknowledgements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from asteroidmq.endpoint import EndpointAddr

if TYPE_CHECKING:
    from asteroidmq.message import MessageStatusKind


@dataclass(frozen=True)
class TopicCode:
    """The name of a topic; expected to be valid UTF-8."""

    data: bytes

    def __post_init__(self) -> None:
        value: Union[str, bytes, bytearray, memoryview] = self.data
        if isinstance(value, str):
            raw = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
        else:
            raise TypeError(f"expected str or bytes, got {type(value).__name__}")
        object.__setattr__(self, "data", raw)

    def __str__(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def as_bytes(self) -> bytes:
        return self.data

    def to_json(self) -> str:
        return str(self)

    @classmethod
    def from_json(cls, value: object) -> TopicCode:
        if not isinstance(value, str):
            raise TypeError(f"expected a string topic code, got {type(value).__name__}")
        return cls(value)


class WaitAckErrorException(enum.Enum):
    """Why waiting for acknowledgements ended without a status report."""

    MESSAGE_DROPPED = 0
    OVERFLOW = 1
    NO_AVAILABLE_TARGET = 2

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))

    @classmethod
    def from_wire(cls, value: object) -> WaitAckErrorException:
        for member in cls:
            if str(member) == value:
                return member
        raise ValueError(f"unknown wait ack exception: {value!r}")


class AckWaitErrorKind(enum.Enum):
    """How waiting for an acknowledgement can fail."""

    TIMEOUT = "timeout"
    FAIL = "fail"


def status_to_json(status: dict[EndpointAddr, MessageStatusKind]) -> dict[str, str]:
    """Encode an endpoint-to-status map for JSON."""
    return {addr.to_json(): str(kind) for addr, kind in status.items()}


def status_from_json(value: object) -> dict[EndpointAddr, MessageStatusKind]:
    """Decode an endpoint-to-status map from JSON."""
    from asteroidmq.message import MessageStatusKind

    if not isinstance(value, dict):
        raise TypeError(f"expected a status object, got {type(value).__name__}")
    by_name = {str(kind): kind for kind in MessageStatusKind}
    result: dict[EndpointAddr, MessageStatusKind] = {}
    for key, name in value.items():
        if name not in by_name:
            raise ValueError(f"unknown message status: {name!r}")
        result[EndpointAddr.from_json(key)] = by_name[name]
    return result


@dataclass
class WaitAckSuccess:
    """Final statuses of all targets once the expected acknowledgement is reached."""

    status: dict[EndpointAddr, MessageStatusKind] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {"status": status_to_json(self.status)}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> WaitAckSuccess:
        return cls(status=status_from_json(value["status"]))


@dataclass
class WaitAckError:
    """Statuses collected before waiting failed, with an optional reason."""

    status: dict[EndpointAddr, MessageStatusKind] = field(default_factory=dict)
    exception: Optional[WaitAckErrorException] = None

    @classmethod
    def from_exception(cls, exception: WaitAckErrorException) -> WaitAckError:
        return cls(status={}, exception=exception)

    def to_json(self) -> dict[str, Any]:
        return {
            "status": status_to_json(self.status),
            "exception": None if self.exception is None else str(self.exception),
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> WaitAckError:
        raw_exception = value.get("exception")
        exception = None if raw_exception is None else WaitAckErrorException.from_wire(raw_exception)
        return cls(status=status_from_json(value["status"]), exception=exception)
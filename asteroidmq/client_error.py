"""Errors raised by the edge client."""

from __future__ import annotations

import enum
from typing import Any, Optional


class ClientErrorKind(enum.Enum):
    """The class of a client failure."""

    UNEXPECTED_RESPONSE = "unexpected_response"
    EDGE = "edge"
    WS = "ws"
    NO_CONNECTION = "no_connection"
    DISCONNECTED = "disconnected"
    IO = "io"
    WAIT_ACK = "wait_ack"


_PREFIXES = {
    ClientErrorKind.UNEXPECTED_RESPONSE: "Unexpected response",
    ClientErrorKind.EDGE: "Edge error",
    ClientErrorKind.WS: "WebSocket error",
    ClientErrorKind.NO_CONNECTION: "No connection for request",
    ClientErrorKind.IO: "IO error",
    ClientErrorKind.WAIT_ACK: "WaitAck error",
}


class ClientNodeError(Exception):
    """A failure of a client node request; ``detail`` holds what caused it."""

    def __init__(self, kind: ClientErrorKind, detail: Optional[Any] = None) -> None:
        super().__init__(kind.value)
        self.kind = kind
        self.detail = detail
        if isinstance(detail, BaseException):
            self.__cause__ = detail

    @classmethod
    def unexpected_response(cls, response: Any) -> ClientNodeError:
        return cls(ClientErrorKind.UNEXPECTED_RESPONSE, response)

    @classmethod
    def disconnected(cls) -> ClientNodeError:
        return cls(ClientErrorKind.DISCONNECTED)

    @classmethod
    def no_connection(cls, request: Any) -> ClientNodeError:
        return cls(ClientErrorKind.NO_CONNECTION, request)

    @classmethod
    def from_edge(cls, error: Any) -> ClientNodeError:
        return cls(ClientErrorKind.EDGE, error)

    @classmethod
    def from_wait_ack(cls, error: Any) -> ClientNodeError:
        return cls(ClientErrorKind.WAIT_ACK, error)

    @classmethod
    def from_websocket(cls, error: BaseException) -> ClientNodeError:
        return cls(ClientErrorKind.WS, error)

    def __str__(self) -> str:
        if self.kind is ClientErrorKind.DISCONNECTED:
            return "Disconnected"
        return f"{_PREFIXES[self.kind]}: {self.detail!r}"
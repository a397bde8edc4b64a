"""Errors raised by node operations."""

from __future__ import annotations

import enum
import json
from collections.abc import Callable
from typing import Any, Union

from asteroidmq.topic import WaitAckError


class ErrorKind(enum.Enum):
    """The class of a node error."""

    DURABILITY = "durability"
    OFFLINE = "offline"
    TOPIC_ALREADY_EXISTS = "topic_already_exists"
    NOT_LEADER = "not_leader"
    IO = "io"
    ACK = "ack"
    CUSTOM = "custom"
    RAFT_CLIENT = "raft_client"

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


def _classify(kind: object) -> tuple[ErrorKind, Any]:
    if isinstance(kind, ErrorKind):
        return kind, None
    if isinstance(kind, OSError):
        return ErrorKind.IO, kind
    if isinstance(kind, WaitAckError):
        return ErrorKind.ACK, kind
    if isinstance(kind, BaseException):
        return ErrorKind.CUSTOM, kind
    raise TypeError(f"cannot make an error kind from {type(kind).__name__}")


class Error(Exception):
    """A node error: what was being done, and what went wrong."""

    def __init__(
        self,
        context: str,
        kind: Union[ErrorKind, BaseException, WaitAckError],
        detail: Any = None,
    ) -> None:
        resolved, inner = _classify(kind)
        super().__init__(context)
        self.context = context
        self.kind = resolved
        self.detail = inner if detail is None else detail
        if isinstance(self.detail, BaseException):
            self.__cause__ = self.detail

    @classmethod
    def unknown(cls, context: str) -> Error:
        return cls(context, ErrorKind.CUSTOM, "unknown error")

    @classmethod
    def custom(cls, context: str, error: BaseException) -> Error:
        return cls(context, ErrorKind.CUSTOM, error)

    @classmethod
    def contextual(cls, context: str) -> Callable[[Any], Error]:
        """A function that wraps a kind or an underlying error with this context."""

        def wrap(kind: Any) -> Error:
            return cls(context, kind)

        return wrap

    def _kind_text(self) -> str:
        if self.detail is None:
            return str(self.kind)
        detail = json.dumps(self.detail) if isinstance(self.detail, str) else repr(self.detail)
        return f"{self.kind}({detail})"

    def __str__(self) -> str:
        return f"{self.context}: {self._kind_text()}"
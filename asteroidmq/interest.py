"""Subjects of messages and the interests that match them."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

_ASCII_WHITESPACE = b" \t\n\r\x0c"

BytesLike = Union[bytes, bytearray, memoryview, str]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"expected str or bytes, got {type(value).__name__}")


def subject_segments(data: bytes) -> Iterator[bytes]:
    """Split a subject on slashes; runs of slashes count as one separator."""
    rest = bytes(data)
    while rest:
        index = rest.find(b"/")
        if index < 0:
            yield rest
            return
        yield rest[:index]
        rest = rest[index:].lstrip(b"/")


@dataclass(frozen=True)
class Subject:
    """A slash-separated path that a message is published under."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _to_bytes(self.data))

    def __str__(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def as_bytes(self) -> bytes:
        return self.data

    def segments(self) -> Iterator[bytes]:
        return subject_segments(self.data)

    def to_json(self) -> str:
        return str(self)

    @classmethod
    def from_json(cls, value: object) -> Subject:
        if not isinstance(value, str):
            raise TypeError(f"expected a string subject, got {type(value).__name__}")
        return cls(value)


class SegmentKind(enum.Enum):
    """What an interest segment matches."""

    SPECIFIC = "specific"
    ANY = "any"
    RECURSIVE_ANY = "recursive_any"


@dataclass(frozen=True)
class InterestSegment:
    """One segment of an interest pattern."""

    kind: SegmentKind
    value: bytes = b""


@dataclass(frozen=True)
class Interest:
    """A glob pattern over subjects: segments may be literal, ``*`` or ``**``."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _to_bytes(self.data))

    def __str__(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def as_segments(self) -> Iterator[InterestSegment]:
        for segment in self.data.split(b"/"):
            if not segment:
                continue
            trimmed = segment.strip(_ASCII_WHITESPACE)
            if trimmed == b"*":
                yield InterestSegment(SegmentKind.ANY)
            elif trimmed == b"**":
                yield InterestSegment(SegmentKind.RECURSIVE_ANY)
            else:
                yield InterestSegment(SegmentKind.SPECIFIC, trimmed)

    def to_json(self) -> str:
        return str(self)

    @classmethod
    def from_json(cls, value: object) -> Interest:
        if not isinstance(value, str):
            raise TypeError(f"expected a string interest, got {type(value).__name__}")
        return cls(value)
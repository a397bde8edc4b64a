"""Codec identifiers for edge connections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class CodecKind:
    """A one-byte codec identifier."""

    value: int

    CBOR: ClassVar[CodecKind]
    BINCODE: ClassVar[CodecKind]
    JSON: ClassVar[CodecKind]

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"codec kind out of range: {self.value}")

    def __str__(self) -> str:
        return f"{self.value:02x}"


CodecKind.CBOR = CodecKind(0x00)
CodecKind.BINCODE = CodecKind(0x01)
CodecKind.JSON = CodecKind(0x40)
"""Node identifiers."""

from __future__ import annotations

import base64
import binascii
import hashlib
import itertools
from dataclasses import dataclass
from typing import ClassVar

from asteroidmq.util import dashed, executor_digest, hex_string, timestamp_sec

_instance_counter = itertools.count()


@dataclass(frozen=True, order=True)
class NodeId:
    """A 16-byte node identifier whose first byte tells how it was made."""

    bytes: bytes = b"\x00" * 16

    KIND_INDEXED: ClassVar[int] = 0x00
    KIND_SHA256: ClassVar[int] = 0x01
    KIND_SNOWFLAKE: ClassVar[int] = 0x02

    def __post_init__(self) -> None:
        raw = self.bytes if isinstance(self.bytes, bytes) else bytes(self.bytes)
        if len(raw) != 16:
            raise ValueError(f"node id must be 16 bytes, got {len(raw)}")
        object.__setattr__(self, "bytes", raw)

    def __bytes__(self) -> bytes:
        return self.bytes

    @classmethod
    def new_indexed(cls, index: int) -> NodeId:
        if not 0 <= index < 2**64:
            raise ValueError(f"node index out of range: {index}")
        return cls(bytes([cls.KIND_INDEXED]) + index.to_bytes(8, "big") + b"\x00" * 7)

    @classmethod
    def sha256(cls, data: bytes) -> NodeId:
        digest = hashlib.sha256(data).digest()
        return cls(bytes([cls.KIND_SHA256]) + digest[:15])

    @classmethod
    def snowflake(cls) -> NodeId:
        instance = next(_instance_counter) & 0xFF
        return cls(
            bytes([cls.KIND_SNOWFLAKE])
            + executor_digest().to_bytes(8, "big")
            + bytes([instance])
            + timestamp_sec().to_bytes(8, "big")[2:8]
        )

    def to_base64(self) -> str:
        return base64.urlsafe_b64encode(self.bytes).decode("ascii")

    @classmethod
    def from_base64(cls, text: str) -> NodeId:
        try:
            decoded = base64.b64decode(text, altchars=b"-_", validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid node id: {exc}") from exc
        return cls(decoded)

    def to_json(self) -> str:
        return self.to_base64()

    @classmethod
    def from_json(cls, value: object) -> NodeId:
        if not isinstance(value, str):
            raise TypeError(f"expected a base64 string, got {type(value).__name__}")
        return cls.from_base64(value)

    def _dashed(self) -> str:
        parts = (self.bytes[0:1], self.bytes[1:9], self.bytes[9:10], self.bytes[10:16])
        return dashed(hex_string(part) for part in parts)

    def __str__(self) -> str:
        return self._dashed()

    def __repr__(self) -> str:
        return f"NodeId({self._dashed()})"
"""Endpoint addresses."""

from __future__ import annotations

import base64
import binascii
import struct
import threading
from dataclasses import dataclass

from asteroidmq.util import dashed, executor_digest, hex_string, timestamp_sec

_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_thread_state = threading.local()


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (64 - shift))) & _MASK64


def _sip_round(v0: int, v1: int, v2: int, v3: int) -> tuple[int, int, int, int]:
    v0 = (v0 + v1) & _MASK64
    v1 = _rotl(v1, 13) ^ v0
    v0 = _rotl(v0, 32)
    v2 = (v2 + v3) & _MASK64
    v3 = _rotl(v3, 16) ^ v2
    v0 = (v0 + v3) & _MASK64
    v3 = _rotl(v3, 21) ^ v0
    v2 = (v2 + v1) & _MASK64
    v1 = _rotl(v1, 17) ^ v2
    v2 = _rotl(v2, 32)
    return v0, v1, v2, v3


def _siphash13(data: bytes, k0: int = 0, k1: int = 0) -> int:
    v0 = k0 ^ 0x736F6D6570736575
    v1 = k1 ^ 0x646F72616E646F6D
    v2 = k0 ^ 0x6C7967656E657261
    v3 = k1 ^ 0x7465646279746573
    full = len(data) - len(data) % 8
    for (block,) in struct.iter_unpack("<Q", data[:full]):
        v3 ^= block
        v0, v1, v2, v3 = _sip_round(v0, v1, v2, v3)
        v0 ^= block
    last = ((len(data) & 0xFF) << 56) | int.from_bytes(data[full:], "little")
    v3 ^= last
    v0, v1, v2, v3 = _sip_round(v0, v1, v2, v3)
    v0 ^= last
    v2 ^= 0xFF
    for _ in range(3):
        v0, v1, v2, v3 = _sip_round(v0, v1, v2, v3)
    return v0 ^ v1 ^ v2 ^ v3


def _next_counter() -> int:
    value = getattr(_thread_state, "counter", 0)
    _thread_state.counter = (value + 1) & 0xFFFF_FFFF
    return value


@dataclass(frozen=True)
class EndpointAddr:
    """A 16-byte endpoint address: timestamp, counter and executor digest."""

    bytes: bytes

    def __post_init__(self) -> None:
        raw = self.bytes if isinstance(self.bytes, bytes) else bytes(self.bytes)
        if len(raw) != 16:
            raise ValueError(f"endpoint address must be 16 bytes, got {len(raw)}")
        object.__setattr__(self, "bytes", raw)

    def __bytes__(self) -> bytes:
        return self.bytes

    @classmethod
    def new_snowflake(cls) -> EndpointAddr:
        timestamp = timestamp_sec().to_bytes(8, "big")
        counter = _next_counter().to_bytes(4, "big")
        eid = (executor_digest() & 0xFFFF_FFFF).to_bytes(4, "big")
        return cls(timestamp + counter + eid)

    def hash64(self) -> int:
        """SipHash-1-3 of the address bytes with zero keys."""
        return _siphash13(self.bytes)

    def to_json(self) -> str:
        return base64.urlsafe_b64encode(self.bytes).decode("ascii")

    @classmethod
    def from_json(cls, value: object) -> EndpointAddr:
        if not isinstance(value, str):
            raise TypeError(f"expected a base64 string, got {type(value).__name__}")
        try:
            decoded = base64.b64decode(value, altchars=b"-_", validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid endpoint address: {exc}") from exc
        if len(decoded) != 16:
            raise ValueError("invalid length")
        return cls(decoded)

    def __repr__(self) -> str:
        parts = (self.bytes[0:8], self.bytes[8:12], self.bytes[12:16])
        return f"EndpointAddr({dashed(hex_string(part) for part in parts)})"
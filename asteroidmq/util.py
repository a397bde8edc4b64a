"""Byte helpers, identifier formatting and process identity."""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

_MACHINE_ID_FILES = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))
_thread_state = threading.local()


@dataclass(frozen=True)
class MaybeBase64Bytes:
    """Raw bytes that travel as standard base64 text in JSON."""

    data: bytes = b""

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def to_json(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @classmethod
    def from_json(cls, value: object) -> MaybeBase64Bytes:
        if not isinstance(value, str):
            raise TypeError(f"expected a base64 string, got {type(value).__name__}")
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
        return cls(decoded)


def hex_string(data: bytes) -> str:
    """Lower-case hex of the given bytes, two digits per byte."""
    return bytes(data).hex()


def dashed(parts: Iterable[object]) -> str:
    """Join the parts with dashes."""
    return "-".join(str(part) for part in parts)


def _machine_id() -> str:
    for path in _MACHINE_ID_FILES:
        try:
            text = path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if text:
            return text
    env = os.environ.get("MACHINE_ID")
    if env is None:
        raise RuntimeError("Cannot get machine id")
    return env


def executor_digest() -> int:
    """A 64-bit digest of this machine and the calling thread, cached per thread."""
    digest = getattr(_thread_state, "digest", None)
    if digest is None:
        hasher = hashlib.blake2b(digest_size=8)
        hasher.update(f"{os.getpid()}:{threading.get_ident()}".encode())
        hasher.update(_machine_id().encode())
        digest = int.from_bytes(hasher.digest(), "big")
        _thread_state.digest = digest
    return digest


def timestamp_sec() -> int:
    """Seconds since the Unix epoch."""
    return int(time.time())
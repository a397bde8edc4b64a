"""Network defaults and a seconds timestamp."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from asteroidmq.util import timestamp_sec

DEFAULT_TCP_PORT = 9559
DEFAULT_TCP_ADDR = ipaddress.IPv4Address("0.0.0.0")
DEFAULT_TCP_SOCKET_ADDR = (str(DEFAULT_TCP_ADDR), DEFAULT_TCP_PORT)


@dataclass(frozen=True, order=True)
class TimestampSec:
    """Whole seconds since the Unix epoch."""

    seconds: int

    def __post_init__(self) -> None:
        if not 0 <= self.seconds < 2**64:
            raise ValueError(f"timestamp out of range: {self.seconds}")

    @classmethod
    def now(cls) -> TimestampSec:
        return cls(timestamp_sec())
"""Durability settings of a message."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

_U32_MAX = 0xFFFF_FFFF
_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?(Z|z|[+-]\d{2}:\d{2})$"
)


def _format_datetime(value: datetime) -> str:
    utc = value.astimezone(timezone.utc)
    text = utc.strftime("%Y-%m-%dT%H:%M:%S")
    micro = utc.microsecond
    if micro:
        text += f".{micro // 1000:03d}" if micro % 1000 == 0 else f".{micro:06d}"
    return text + "Z"


def _parse_datetime(text: str) -> datetime:
    match = _RFC3339.match(text)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    parsed = datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
    )
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class MessageDurableConfig:
    """When a durable message expires and how many receivers it may reach."""

    expire: datetime
    max_receiver: Optional[int] = None

    def __post_init__(self) -> None:
        expire = self.expire
        if expire.tzinfo is None:
            expire = expire.replace(tzinfo=timezone.utc)
        object.__setattr__(self, "expire", expire.astimezone(timezone.utc))
        if self.max_receiver is not None and not 0 <= self.max_receiver <= _U32_MAX:
            raise ValueError(f"max_receiver out of range: {self.max_receiver}")

    def to_json(self) -> dict[str, Any]:
        return {"expire": _format_datetime(self.expire), "max_receiver": self.max_receiver}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> MessageDurableConfig:
        expire = value["expire"]
        if not isinstance(expire, str):
            raise TypeError("expire must be a string")
        return cls(expire=_parse_datetime(expire), max_receiver=value.get("max_receiver"))
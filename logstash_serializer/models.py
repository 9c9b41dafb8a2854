"""Event model: an opaque body plus flat string headers."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

CHARSET = "utf-8"


@dataclass(frozen=True)
class Event:
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze a private copy so callers cannot mutate the event afterwards.
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


def create_event(body, headers: Optional[Mapping[str, str]] = None) -> Event:
    """Factory that accepts a str or bytes body."""
    if isinstance(body, str):
        body = body.encode(CHARSET)
    return Event(body=bytes(body), headers=headers if headers is not None else {})


def decode_text(data: bytes) -> str:
    return data.decode(CHARSET, errors="replace")

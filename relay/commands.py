"""Typed commands handed from the HTTP layer to the relay core."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Register:
    pass


@dataclass(frozen=True)
class Publish:
    sender_id: str
    channel: str
    content: str
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class Subscribe:
    client_id: str
    channel: str


@dataclass(frozen=True)
class Poll:
    client_id: str
    since: int = 0


@dataclass(frozen=True)
class ExternalIngest:
    client_id: str
    secret: str
    content: str


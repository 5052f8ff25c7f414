"""
Domain: Support tickets.

Contract excerpts implemented here:
- Messages are append-only within a ticket.
- last_updated is bumped on every message append and on close, so it is
  never older than the most recent message or status change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .time import require_utc_timestamp
from .values import known_or_raw


class TicketStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True, slots=True)
class TicketMessage:
    sender: str
    content: str
    timestamp: datetime
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)


@dataclass(slots=True)
class Ticket:
    id: str
    last_updated: datetime
    user_id: Optional[str] = None
    subject: Optional[str] = None
    messages: List[TicketMessage] = field(default_factory=list)
    status: Union[TicketStatus, str] = TicketStatus.OPEN
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        require_utc_timestamp("last_updated", self.last_updated)
        self.status = known_or_raw(TicketStatus, self.status)

    def is_open(self) -> bool:
        return self.status == TicketStatus.OPEN

    def append_message(self, message: TicketMessage, *, at: datetime) -> None:
        require_utc_timestamp("at", at)
        self.messages.append(message)
        self._touch(max(at, message.timestamp))

    def close(self, *, at: datetime) -> None:
        require_utc_timestamp("at", at)
        self.status = TicketStatus.CLOSED
        self._touch(at)

    def _touch(self, at: datetime) -> None:
        # Never move backwards, even if the clock does.
        if at > self.last_updated:
            self.last_updated = at

"""
Domain: Credit top-up transactions.

A transaction is a request to add credits to a user's balance. Approval is
what actually moves the money: each transition to APPROVED credits the
owning user with the transaction amount.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from .time import require_utc_timestamp
from .values import known_or_raw, to_money


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(slots=True)
class Transaction:
    id: str
    user_id: str
    amount: Decimal
    status: Union[TransactionStatus, str] = TransactionStatus.PENDING
    timestamp: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.amount = to_money("amount", self.amount)
        self.status = known_or_raw(TransactionStatus, self.status)
        if self.timestamp is not None:
            require_utc_timestamp("timestamp", self.timestamp)

    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

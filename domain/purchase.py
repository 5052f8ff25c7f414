"""
Domain: Purchase records.

Purchases form an append-only log. A record is never mutated or deleted
once created; item name and price are snapshots taken at purchase time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from .time import require_utc_timestamp
from .values import to_money


@dataclass(frozen=True, slots=True)
class Purchase:
    """
    Immutable record of a completed purchase.

    Captures:
    - Who bought it (user_id)
    - What was purchased (item_id, item_name snapshot)
    - What was handed over (content_delivered)
    - When and for how much (timestamp, price snapshot)
    """

    id: str
    user_id: str
    item_id: str
    item_name: str
    content_delivered: str
    timestamp: datetime
    price: Decimal
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)
        object.__setattr__(self, "price", to_money("price", self.price))

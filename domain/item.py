"""
Domain: Purchasable items and sequential stock.

Contract excerpts implemented here:
- An INSTANT item delivers the same content to every buyer.
- A SEQUENTIAL item delivers one unit of stock per purchase, in list order.
- Once a SequentialItem is marked delivered it never reverts, and it is
  excluded from every availability query for its Item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from .values import to_money


class ItemType(str, Enum):
    INSTANT = "INSTANT"
    SEQUENTIAL = "SEQUENTIAL"


@dataclass(slots=True)
class SequentialItem:
    """A single deliverable unit of stock."""

    content: str
    is_delivered: bool = False

    def mark_delivered(self) -> None:
        if self.is_delivered:
            raise ValueError("SequentialItem is already delivered")
        self.is_delivered = True


@dataclass(slots=True)
class Item:
    """
    Catalogue entry.

    Exactly one of content / sequential_items is meaningful, depending on type:
    - INSTANT: content is handed out on every purchase.
    - SEQUENTIAL: sequential_items is consumed front to back.
    """

    id: str
    name: str
    price: Decimal
    type: ItemType = ItemType.INSTANT
    content: Optional[str] = None
    sequential_items: List[SequentialItem] = field(default_factory=list)
    delivered_count: int = 0
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.price = to_money("price", self.price)
        if self.delivered_count < 0:
            raise ValueError("delivered_count must be >= 0")

    def available_units(self) -> List[SequentialItem]:
        """Undelivered units in delivery order."""

        return [unit for unit in self.sequential_items if not unit.is_delivered]

    @property
    def stock_remaining(self) -> Optional[int]:
        """Units left to sell; None for INSTANT items (unlimited)."""

        if self.type == ItemType.INSTANT:
            return None
        return len(self.available_units())

    def next_available_unit(self) -> Optional[SequentialItem]:
        for unit in self.sequential_items:
            if not unit.is_delivered:
                return unit
        return None

    def deliver_next_unit(self) -> Optional[str]:
        """
        Mark the first undelivered unit as delivered and return its content.

        Returns None (and changes nothing) when the item is out of stock.
        """

        unit = self.next_available_unit()
        if unit is None:
            return None
        unit.mark_delivered()
        self.delivered_count += 1
        return unit.content

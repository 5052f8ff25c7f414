"""
Domain: The store document.

The whole storefront state is a single document with six ordered
collections. Lookups are linear scans; collections are small and kept in
insertion order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .item import Item
from .purchase import Purchase
from .redeem_code import RedeemCode
from .ticket import Ticket
from .transaction import Transaction
from .user import User


@dataclass(slots=True)
class StoreDocument:
    users: List[User] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    purchases: List[Purchase] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    redeem_codes: List[RedeemCode] = field(default_factory=list)
    tickets: List[Ticket] = field(default_factory=list)

    @staticmethod
    def empty() -> "StoreDocument":
        return StoreDocument()

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def find_item(self, item_id: str) -> Optional[Item]:
        return next((i for i in self.items if i.id == item_id), None)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def find_unused_code(self, code: str) -> Optional[RedeemCode]:
        return next((c for c in self.redeem_codes if c.matches(code)), None)

    def find_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return next((t for t in self.tickets if t.id == ticket_id), None)

    def replace_item(self, item: Item) -> bool:
        """Replace the first item with the same id in place. False if none matches."""

        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                return True
        return False

    def remove_items(self, item_id: str) -> int:
        """Remove every item with the given id. Returns how many were removed."""

        before = len(self.items)
        self.items = [i for i in self.items if i.id != item_id]
        return before - len(self.items)

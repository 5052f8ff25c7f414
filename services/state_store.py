"""
StateStore: the data-access façade over the storefront document.

Every public call is self-contained:
1. load the whole document from the storage backend (empty on first run),
2. read or apply one rule in memory,
3. if anything was mutated, write the whole document back in one `set`.

Nothing is cached between calls, so each call sees whatever the backend
holds right now. Each call is the unit of atomicity; two calls are never
atomic together.

Expected failures (unknown ids, insufficient credits, out of stock, used
codes, bad tokens) come back as result objects, never as exceptions.

Example:
    store = StateStore(InMemoryStorage())
    store.add_user(User(id="u1", credits=Decimal("100")))
    store.add_item(Item(id="i1", name="Gift card", price=Decimal("30"), content="CODE123"))

    result = store.process_purchase("u1", "i1")
    # result.success is True, result.content == "CODE123"
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional

from domain.document import StoreDocument
from domain.item import Item
from domain.purchase import Purchase
from domain.redeem_code import RedeemCode
from domain.ticket import Ticket, TicketMessage
from domain.transaction import Transaction, TransactionStatus
from domain.user import User
from domain.values import to_money
from repositories.document_repository import STORAGE_KEY, load_document, save_document
from repositories.storage import KeyValueStorage, storage_from_env
from services.credit_service import (
    RedeemResult,
    adjust_user_credits,
    apply_transaction_status,
    redeem_code,
)
from services.purchase_service import PurchaseResult, fulfill_purchase
from services.ticket_service import append_ticket_message, close_ticket
from services.verification_service import VerificationResult, verify_token

logger = logging.getLogger(__name__)


def _as_decimal(value: Any) -> Decimal:
    """Coerce a caller-supplied amount; NaN and infinities are rejected with ValueError."""
    return to_money("amount", value)


class StateStore:
    """
    CRUD and domain operations over users, items, purchases, transactions,
    redeem codes and tickets.

    Args:
        storage: Key-value backend. Defaults to the one selected by the
            environment (see `repositories.storage.storage_from_env`).
        key: Key the document is stored under.
    """

    def __init__(self, storage: Optional[KeyValueStorage] = None, key: str = STORAGE_KEY) -> None:
        self.storage = storage if storage is not None else storage_from_env()
        self.key = key

    def _load(self) -> StoreDocument:
        return load_document(self.storage, self.key)

    def _save(self, document: StoreDocument) -> None:
        save_document(document, self.storage, self.key)

    # Users

    def get_users(self) -> List[User]:
        return self._load().users

    def get_user(self, user_id: str) -> Optional[User]:
        return self._load().find_user(user_id)

    def add_user(self, user: User) -> None:
        """Append a user. Id uniqueness is the caller's responsibility."""

        document = self._load()
        document.users.append(user)
        self._save(document)

    def verify_user(self, token: str) -> VerificationResult:
        """Stub check: any non-empty token succeeds. No lookup is performed."""

        return verify_token(token)

    def update_user_credits(self, user_id: str, amount: Decimal | int | str) -> None:
        """Add amount (may be negative) to the user's credits. Always writes."""

        document = self._load()
        adjust_user_credits(document, user_id, _as_decimal(amount))
        self._save(document)

    # Items

    def get_items(self) -> List[Item]:
        return self._load().items

    def get_item(self, item_id: str) -> Optional[Item]:
        return self._load().find_item(item_id)

    def add_item(self, item: Item) -> None:
        document = self._load()
        document.items.append(item)
        self._save(document)

    def update_item(self, item: Item) -> bool:
        """Replace the item with the same id in place. Nothing is written if none matches."""

        document = self._load()
        if not document.replace_item(item):
            logger.warning("Item %r not found; nothing updated", item.id)
            return False
        self._save(document)
        return True

    def delete_item(self, item_id: str) -> None:
        """Remove every item with this id."""

        document = self._load()
        document.remove_items(item_id)
        self._save(document)

    # Purchases

    def get_purchases(self) -> List[Purchase]:
        return self._load().purchases

    def get_purchases_for_user(self, user_id: str) -> List[Purchase]:
        return [p for p in self._load().purchases if p.user_id == user_id]

    def add_purchase(self, purchase: Purchase) -> None:
        """Append a raw purchase record. No credits or stock are touched."""

        document = self._load()
        document.purchases.append(purchase)
        self._save(document)

    def process_purchase(self, user_id: str, item_id: str) -> PurchaseResult:
        """
        Buy one item for one user.

        On success the buyer is debited, SEQUENTIAL stock advances by one unit
        and a Purchase is appended, all in a single write. On failure nothing
        is written.
        """

        document = self._load()
        result = fulfill_purchase(document, user_id, item_id)
        if result.success:
            self._save(document)
        return result

    # Transactions

    def get_transactions(self) -> List[Transaction]:
        return self._load().transactions

    def add_transaction(self, transaction: Transaction) -> None:
        document = self._load()
        document.transactions.append(transaction)
        self._save(document)

    def update_transaction_status(self, transaction_id: str, status: TransactionStatus | str) -> None:
        """
        Set a transaction's status. APPROVED credits the owner every time it
        is applied, including re-approvals. Other values, known or not, are
        stored as given without touching credits. Always writes.
        """

        document = self._load()
        apply_transaction_status(document, transaction_id, status)
        self._save(document)

    # Redeem codes

    def get_redeem_codes(self) -> List[RedeemCode]:
        return self._load().redeem_codes

    def add_redeem_code(self, code: RedeemCode) -> None:
        document = self._load()
        document.redeem_codes.append(code)
        self._save(document)

    def redeem(self, user_id: str, code: str) -> RedeemResult:
        """Redeem a one-time code. Nothing is written on failure."""

        document = self._load()
        result = redeem_code(document, user_id, code)
        if result.success:
            self._save(document)
        return result

    # Tickets

    def get_tickets(self) -> List[Ticket]:
        return self._load().tickets

    def get_tickets_for_user(self, user_id: str) -> List[Ticket]:
        return [t for t in self._load().tickets if t.user_id == user_id]

    def create_ticket(self, ticket: Ticket) -> None:
        document = self._load()
        document.tickets.append(ticket)
        self._save(document)

    def add_ticket_message(self, ticket_id: str, message: TicketMessage) -> None:
        """Append a message to a ticket. Always writes, even if the ticket is unknown."""

        document = self._load()
        append_ticket_message(document, ticket_id, message)
        self._save(document)

    def close_ticket(self, ticket_id: str) -> None:
        """Close a ticket. Always writes, even if the ticket is unknown."""

        document = self._load()
        close_ticket(document, ticket_id)
        self._save(document)


__all__ = ["StateStore"]

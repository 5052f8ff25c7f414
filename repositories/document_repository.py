"""
Store document repository (persistence).

This module provides *only* persistence operations for the StoreDocument:
loading the serialized blob from a key-value backend into domain records and
writing the whole document back. It enforces no business rules.

Wire format (kept compatible with documents written by the browser client):
- One JSON object under STORAGE_KEY with the collections
  users, items, purchases, transactions, redeemCodes, tickets.
- Field names are camelCase.
- Timestamps are integer epoch milliseconds.
- Row keys this module does not know about are carried through untouched.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping

from domain.document import StoreDocument
from domain.item import Item, ItemType, SequentialItem
from domain.purchase import Purchase
from domain.redeem_code import RedeemCode
from domain.ticket import Ticket, TicketMessage, TicketStatus
from domain.time import parse_timestamp, to_epoch_millis
from domain.transaction import Transaction, TransactionStatus
from domain.user import User, UserRole
from domain.values import raw_value, to_money
from repositories.storage import KeyValueStorage

logger = logging.getLogger(__name__)

STORAGE_KEY: str = "ebon_shop_db"

_USER_FIELDS = {"id", "role", "credits", "username", "email"}
_ITEM_FIELDS = {
    "id", "name", "price", "type", "content", "sequentialItems", "deliveredCount", "description",
}
_PURCHASE_FIELDS = {"id", "userId", "itemId", "itemName", "contentDelivered", "timestamp", "price"}
_TRANSACTION_FIELDS = {"id", "userId", "amount", "status", "timestamp"}
_REDEEM_CODE_FIELDS = {"code", "amount", "isUsed"}
_TICKET_FIELDS = {"id", "userId", "subject", "messages", "status", "lastUpdated"}
_MESSAGE_FIELDS = {"sender", "content", "timestamp"}


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _to_number(value: Any) -> int | float:
    """Serialize money as a JSON number (an integer when it is whole)."""

    amount = to_money("amount", value)
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def _extra(row: Mapping[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    known_set = set(known)
    return {k: v for k, v in row.items() if k not in known_set}


def _with_optional(payload: Dict[str, Any], **fields: Any) -> Dict[str, Any]:
    for name, value in fields.items():
        if value is not None:
            payload[name] = value
    return payload


# ---------------------------------------------------------------------------
# Row -> domain
# ---------------------------------------------------------------------------


def _row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=str(row["id"]),
        role=str(row.get("role", UserRole.USER.value)),
        credits=_to_decimal(row.get("credits")),
        username=row.get("username"),
        email=row.get("email"),
        extra=_extra(row, _USER_FIELDS),
    )


def _row_to_sequential_item(row: Mapping[str, Any]) -> SequentialItem:
    return SequentialItem(
        content=str(row.get("content", "")),
        is_delivered=bool(row.get("isDelivered", False)),
    )


def _row_to_item(row: Mapping[str, Any]) -> Item:
    return Item(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        price=_to_decimal(row.get("price")),
        type=ItemType(str(row.get("type", ItemType.INSTANT.value))),
        content=row.get("content"),
        sequential_items=[_row_to_sequential_item(si) for si in row.get("sequentialItems") or []],
        delivered_count=int(row.get("deliveredCount", 0) or 0),
        description=row.get("description"),
        extra=_extra(row, _ITEM_FIELDS),
    )


def _row_to_purchase(row: Mapping[str, Any]) -> Purchase:
    return Purchase(
        id=str(row["id"]),
        user_id=str(row["userId"]),
        item_id=str(row["itemId"]),
        item_name=str(row.get("itemName", "")),
        content_delivered=str(row.get("contentDelivered", "")),
        timestamp=parse_timestamp(row["timestamp"]),
        price=_to_decimal(row.get("price")),
        extra=_extra(row, _PURCHASE_FIELDS),
    )


def _row_to_transaction(row: Mapping[str, Any]) -> Transaction:
    timestamp = row.get("timestamp")
    return Transaction(
        id=str(row["id"]),
        user_id=str(row["userId"]),
        amount=_to_decimal(row.get("amount")),
        status=str(row.get("status", TransactionStatus.PENDING.value)),
        timestamp=parse_timestamp(timestamp) if timestamp is not None else None,
        extra=_extra(row, _TRANSACTION_FIELDS),
    )


def _row_to_redeem_code(row: Mapping[str, Any]) -> RedeemCode:
    return RedeemCode(
        code=str(row["code"]),
        amount=_to_decimal(row.get("amount")),
        is_used=bool(row.get("isUsed", False)),
        extra=_extra(row, _REDEEM_CODE_FIELDS),
    )


def _row_to_message(row: Mapping[str, Any]) -> TicketMessage:
    return TicketMessage(
        sender=str(row.get("sender", "")),
        content=str(row.get("content", "")),
        timestamp=parse_timestamp(row["timestamp"]),
        extra=_extra(row, _MESSAGE_FIELDS),
    )


def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
    return Ticket(
        id=str(row["id"]),
        user_id=row.get("userId"),
        subject=row.get("subject"),
        messages=[_row_to_message(m) for m in row.get("messages") or []],
        status=str(row.get("status", TicketStatus.OPEN.value)),
        last_updated=parse_timestamp(row["lastUpdated"]),
        extra=_extra(row, _TICKET_FIELDS),
    )


# ---------------------------------------------------------------------------
# Domain -> row
# ---------------------------------------------------------------------------


def user_to_row(user: User) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(user.extra)
    payload.update(id=user.id, role=raw_value(user.role), credits=_to_number(user.credits))
    return _with_optional(payload, username=user.username, email=user.email)


def item_to_row(item: Item) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(item.extra)
    payload.update(
        id=item.id,
        name=item.name,
        price=_to_number(item.price),
        type=item.type.value,
        sequentialItems=[
            {"content": unit.content, "isDelivered": unit.is_delivered}
            for unit in item.sequential_items
        ],
        deliveredCount=item.delivered_count,
    )
    return _with_optional(payload, content=item.content, description=item.description)


def purchase_to_row(purchase: Purchase) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(purchase.extra)
    payload.update(
        id=purchase.id,
        userId=purchase.user_id,
        itemId=purchase.item_id,
        itemName=purchase.item_name,
        contentDelivered=purchase.content_delivered,
        timestamp=to_epoch_millis(purchase.timestamp),
        price=_to_number(purchase.price),
    )
    return payload


def transaction_to_row(transaction: Transaction) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(transaction.extra)
    payload.update(
        id=transaction.id,
        userId=transaction.user_id,
        amount=_to_number(transaction.amount),
        status=raw_value(transaction.status),
    )
    if transaction.timestamp is not None:
        payload["timestamp"] = to_epoch_millis(transaction.timestamp)
    return payload


def redeem_code_to_row(code: RedeemCode) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(code.extra)
    payload.update(code=code.code, amount=_to_number(code.amount), isUsed=code.is_used)
    return payload


def message_to_row(message: TicketMessage) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(message.extra)
    payload.update(
        sender=message.sender,
        content=message.content,
        timestamp=to_epoch_millis(message.timestamp),
    )
    return payload


def ticket_to_row(ticket: Ticket) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(ticket.extra)
    payload.update(
        id=ticket.id,
        messages=[message_to_row(m) for m in ticket.messages],
        status=raw_value(ticket.status),
        lastUpdated=to_epoch_millis(ticket.last_updated),
    )
    return _with_optional(payload, userId=ticket.user_id, subject=ticket.subject)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def document_from_json(text: str) -> StoreDocument:
    """Parse a serialized document. Missing collections load as empty."""

    data: Mapping[str, List[Mapping[str, Any]]] = json.loads(text)
    return StoreDocument(
        users=[_row_to_user(r) for r in data.get("users") or []],
        items=[_row_to_item(r) for r in data.get("items") or []],
        purchases=[_row_to_purchase(r) for r in data.get("purchases") or []],
        transactions=[_row_to_transaction(r) for r in data.get("transactions") or []],
        redeem_codes=[_row_to_redeem_code(r) for r in data.get("redeemCodes") or []],
        tickets=[_row_to_ticket(r) for r in data.get("tickets") or []],
    )


def document_to_json(document: StoreDocument) -> str:
    payload = {
        "users": [user_to_row(u) for u in document.users],
        "items": [item_to_row(i) for i in document.items],
        "purchases": [purchase_to_row(p) for p in document.purchases],
        "transactions": [transaction_to_row(t) for t in document.transactions],
        "redeemCodes": [redeem_code_to_row(c) for c in document.redeem_codes],
        "tickets": [ticket_to_row(t) for t in document.tickets],
    }
    return json.dumps(payload, separators=(",", ":"))


def load_document(storage: KeyValueStorage, key: str = STORAGE_KEY) -> StoreDocument:
    """
    Load the store document from storage.

    An absent key is a first run: an empty document is returned and nothing
    is written until the first mutating call saves it.
    """

    stored = storage.get(key)
    if stored is None:
        logger.debug("No document under %r; starting from an empty store", key)
        return StoreDocument.empty()
    return document_from_json(stored)


def save_document(document: StoreDocument, storage: KeyValueStorage, key: str = STORAGE_KEY) -> None:
    """Serialize the whole document and replace the stored value in one write."""

    storage.set(key, document_to_json(document))
    logger.debug("Saved document under %r", key)


__all__ = [
    "STORAGE_KEY",
    "document_from_json",
    "document_to_json",
    "load_document",
    "save_document",
]

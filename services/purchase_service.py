"""
Purchase service for fulfilling item purchases.

Handles:
- Existence and balance checks
- INSTANT vs SEQUENTIAL delivery
- Debiting the buyer and appending the purchase record

Rules are applied to an in-memory StoreDocument; persisting it is the
caller's job. All-or-nothing: the document is only mutated once every check
has passed, so a rejected purchase leaves credits, stock and the purchase
log exactly as they were.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import uuid4

from domain.document import StoreDocument
from domain.item import ItemType
from domain.purchase import Purchase
from domain.time import utc_now

logger = logging.getLogger(__name__)

ERROR_NOT_FOUND = "User or Item not found"
ERROR_INSUFFICIENT_CREDITS = "Insufficient credits"
ERROR_OUT_OF_STOCK = "Out of stock"


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    """
    Result of a purchase attempt.

    success: True if the purchase completed
    content: What was delivered to the buyer (only on success)
    error: Human-readable reason (only on failure)
    purchase: The appended Purchase record (only on success)
    """
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    purchase: Optional[Purchase] = None


def fulfill_purchase(
    document: StoreDocument,
    user_id: str,
    item_id: str,
    now: Optional[datetime] = None,
    purchase_id: Optional[str] = None,
) -> PurchaseResult:
    """
    Fulfill a purchase of one item by one user.

    Process:
    1. Look up user and item
    2. Reject if the user cannot afford the item price
    3. Resolve content:
       - INSTANT: the item's content ("" if unset)
       - SEQUENTIAL: the first undelivered unit, which is marked delivered
    4. Debit the user by the item price
    5. Append a Purchase snapshot (name, price, content, timestamp)

    Args:
        document: Store state to apply the purchase to
        user_id: Buyer
        item_id: Item being bought
        now: Purchase timestamp (defaults to the current UTC time)
        purchase_id: Identifier for the new Purchase (defaults to a uuid4)

    Returns:
        PurchaseResult with the delivered content or the rejection reason

    Example:
        result = fulfill_purchase(document, "u1", "steam-key")
        if result.success:
            print(f"Delivered: {result.content}")
        else:
            print(f"Purchase failed: {result.error}")
    """

    user = document.find_user(user_id)
    item = document.find_item(item_id)

    if user is None or item is None:
        logger.warning("Purchase rejected: user %r or item %r not found", user_id, item_id)
        return PurchaseResult(success=False, error=ERROR_NOT_FOUND)

    if not user.can_afford(item.price):
        logger.warning(
            "Purchase rejected: user %r has %s credits, item %r costs %s",
            user_id, user.credits, item_id, item.price,
        )
        return PurchaseResult(success=False, error=ERROR_INSUFFICIENT_CREDITS)

    if item.type == ItemType.INSTANT:
        content = item.content or ""
    else:
        delivered = item.deliver_next_unit()
        if delivered is None:
            logger.warning("Purchase rejected: item %r is out of stock", item_id)
            return PurchaseResult(success=False, error=ERROR_OUT_OF_STOCK)
        content = delivered

    user.adjust_credits(-item.price)

    purchase = Purchase(
        id=purchase_id or str(uuid4()),
        user_id=user_id,
        item_id=item_id,
        item_name=item.name,
        content_delivered=content,
        timestamp=now or utc_now(),
        price=item.price,
    )
    document.purchases.append(purchase)

    logger.info("User %r bought item %r for %s credits", user_id, item_id, item.price)
    return PurchaseResult(success=True, content=content, purchase=purchase)


__all__ = [
    "ERROR_INSUFFICIENT_CREDITS",
    "ERROR_NOT_FOUND",
    "ERROR_OUT_OF_STOCK",
    "PurchaseResult",
    "fulfill_purchase",
]

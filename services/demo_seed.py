"""
Demo catalogue for local development and demos.

Seeds:
- Admin account: demo-admin
- Standard account: demo-user (100 credits)
- INSTANT item: welcome-guide
- SEQUENTIAL item: gift-card-10 (3 units)
- Redeem code: WELCOME10 (10 credits)
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from domain.item import Item, ItemType, SequentialItem
from domain.redeem_code import RedeemCode
from domain.ticket import Ticket, TicketMessage
from domain.time import utc_now
from domain.user import User, UserRole
from services.state_store import StateStore

logger = logging.getLogger(__name__)

DEMO_ADMIN_ID = "demo-admin"
DEMO_USER_ID = "demo-user"
DEMO_INSTANT_ITEM_ID = "welcome-guide"
DEMO_SEQUENTIAL_ITEM_ID = "gift-card-10"
DEMO_REDEEM_CODE = "WELCOME10"
DEMO_TICKET_ID = "ticket-welcome"


def seed_demo_store(store: StateStore, now: Optional[datetime] = None) -> bool:
    """
    Populate an empty store with the demo catalogue.

    Does nothing if the store already has users.

    Returns:
        True if the demo data was written, False if the store was left alone
    """

    if store.get_users():
        logger.info("Store already has users; demo data not seeded")
        return False

    now = now or utc_now()

    store.add_user(User(id=DEMO_ADMIN_ID, role=UserRole.ADMIN, username="admin"))
    store.add_user(
        User(id=DEMO_USER_ID, role=UserRole.USER, credits=Decimal("100"), username="demo")
    )

    store.add_item(
        Item(
            id=DEMO_INSTANT_ITEM_ID,
            name="Welcome Guide",
            price=Decimal("5"),
            type=ItemType.INSTANT,
            content="https://example.com/welcome-guide.pdf",
            description="Delivered instantly to every buyer.",
        )
    )
    store.add_item(
        Item(
            id=DEMO_SEQUENTIAL_ITEM_ID,
            name="Gift Card 10",
            price=Decimal("30"),
            type=ItemType.SEQUENTIAL,
            sequential_items=[
                SequentialItem(content="GC10-AAAA-0001"),
                SequentialItem(content="GC10-AAAA-0002"),
                SequentialItem(content="GC10-AAAA-0003"),
            ],
            description="One unique code per purchase.",
        )
    )

    store.add_redeem_code(RedeemCode(code=DEMO_REDEEM_CODE, amount=Decimal("10")))

    store.create_ticket(
        Ticket(
            id=DEMO_TICKET_ID,
            user_id=DEMO_USER_ID,
            subject="Welcome",
            messages=[TicketMessage(sender=DEMO_ADMIN_ID, content="Ask us anything here.", timestamp=now)],
            last_updated=now,
        )
    )

    logger.info("Seeded demo store")
    return True


__all__ = [
    "DEMO_ADMIN_ID",
    "DEMO_USER_ID",
    "DEMO_INSTANT_ITEM_ID",
    "DEMO_SEQUENTIAL_ITEM_ID",
    "DEMO_REDEEM_CODE",
    "DEMO_TICKET_ID",
    "seed_demo_store",
]

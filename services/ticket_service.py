"""
Ticket service for support conversations.

Both operations leave the document untouched when the ticket does not exist.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from domain.document import StoreDocument
from domain.ticket import TicketMessage
from domain.time import utc_now

logger = logging.getLogger(__name__)


def append_ticket_message(
    document: StoreDocument,
    ticket_id: str,
    message: TicketMessage,
    now: Optional[datetime] = None,
) -> bool:
    """Append a message and bump last_updated. False if the ticket is unknown."""

    ticket = document.find_ticket(ticket_id)
    if ticket is None:
        logger.warning("Message dropped: ticket %r not found", ticket_id)
        return False
    ticket.append_message(message, at=now or utc_now())
    return True


def close_ticket(document: StoreDocument, ticket_id: str, now: Optional[datetime] = None) -> bool:
    """Mark a ticket CLOSED and bump last_updated. False if the ticket is unknown."""

    ticket = document.find_ticket(ticket_id)
    if ticket is None:
        logger.warning("Close skipped: ticket %r not found", ticket_id)
        return False
    ticket.close(at=now or utc_now())
    logger.info("Ticket %r closed", ticket_id)
    return True


__all__ = ["append_ticket_message", "close_ticket"]

"""
Credit service: every rule that moves a user's balance outside of purchases.

- Admin adjustments (add or subtract an arbitrary amount)
- Top-up transactions (approval credits the owner)
- Redeem codes (one-time credit)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from domain.document import StoreDocument
from domain.transaction import TransactionStatus
from domain.values import known_or_raw, raw_value

logger = logging.getLogger(__name__)

ERROR_USER_NOT_FOUND = "User not found"
ERROR_INVALID_CODE = "Invalid or already used code"


@dataclass(frozen=True, slots=True)
class RedeemResult:
    success: bool
    amount: Optional[Decimal] = None
    error: Optional[str] = None


def adjust_user_credits(document: StoreDocument, user_id: str, amount: Decimal) -> bool:
    """Add amount (may be negative) to a user's credits. False if the user is unknown."""

    user = document.find_user(user_id)
    if user is None:
        logger.warning("Credit adjustment of %s skipped: user %r not found", amount, user_id)
        return False
    user.adjust_credits(amount)
    return True


def apply_transaction_status(
    document: StoreDocument, transaction_id: str, status: Union[TransactionStatus, str]
) -> bool:
    """
    Set a transaction's status.

    Moving to APPROVED credits the owning user with the transaction amount.
    Any other status, including ones TransactionStatus does not list, is
    stored as given and leaves credits alone.
    There is no guard against approving twice: every APPROVED update credits
    the amount again.

    Returns False if the transaction does not exist.
    """

    status = known_or_raw(TransactionStatus, status)
    tx = document.find_transaction(transaction_id)
    if tx is None:
        logger.warning("Status update to %s skipped: transaction %r not found", raw_value(status), transaction_id)
        return False

    if tx.status == TransactionStatus.APPROVED and status == TransactionStatus.APPROVED:
        logger.warning("Transaction %r approved again; crediting %s a second time", tx.id, tx.amount)

    tx.status = status
    if status == TransactionStatus.APPROVED:
        if adjust_user_credits(document, tx.user_id, tx.amount):
            logger.info("Transaction %r approved: credited %s to user %r", tx.id, tx.amount, tx.user_id)
    return True


def redeem_code(document: StoreDocument, user_id: str, code: str) -> RedeemResult:
    """
    Redeem a one-time code for a user.

    Fails without touching the document if the user is unknown or there is
    no unused code with that text.
    """

    user = document.find_user(user_id)
    if user is None:
        logger.warning("Redeem rejected: user %r not found", user_id)
        return RedeemResult(success=False, error=ERROR_USER_NOT_FOUND)

    redeem = document.find_unused_code(code)
    if redeem is None:
        logger.warning("Redeem rejected for user %r: invalid or used code", user_id)
        return RedeemResult(success=False, error=ERROR_INVALID_CODE)

    redeem.mark_used()
    user.adjust_credits(redeem.amount)

    logger.info("User %r redeemed a code worth %s", user_id, redeem.amount)
    return RedeemResult(success=True, amount=redeem.amount)


__all__ = [
    "ERROR_INVALID_CODE",
    "ERROR_USER_NOT_FOUND",
    "RedeemResult",
    "adjust_user_credits",
    "apply_transaction_status",
    "redeem_code",
]

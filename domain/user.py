"""
Domain: User accounts.

A User holds a credit balance that is only ever changed by:
- a purchase debit,
- an approved top-up transaction,
- a redeemed code,
- an explicit admin adjustment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from .values import known_or_raw, to_money


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(slots=True)
class User:
    """
    Storefront account with a credit balance.

    credits is not constrained to be non-negative in storage; purchases
    guard the balance with a pre-check instead.
    """

    id: str
    role: Union[UserRole, str] = UserRole.USER
    credits: Decimal = Decimal("0")

    # Optional profile information
    username: Optional[str] = None
    email: Optional[str] = None

    # Fields owned by other layers, preserved as stored
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Roles written by other clients are kept verbatim.
        self.role = known_or_raw(UserRole, self.role)
        self.credits = to_money("credits", self.credits)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_afford(self, price: Decimal) -> bool:
        return self.credits >= price

    def adjust_credits(self, amount: Decimal) -> None:
        """Add amount (may be negative) to the balance."""
        self.credits += to_money("amount", amount)

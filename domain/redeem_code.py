"""
Domain: Redeem codes.

A code is good for exactly one redemption. is_used is a monotonic latch:
once set it is never cleared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict

from .values import to_money


@dataclass(slots=True)
class RedeemCode:
    code: str
    amount: Decimal
    is_used: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.amount = to_money("amount", self.amount)

    def matches(self, code: str) -> bool:
        """True if this is an unused code with the given text."""
        return self.code == code and not self.is_used

    def mark_used(self) -> None:
        if self.is_used:
            raise ValueError(f"Redeem code {self.code!r} is already used")
        self.is_used = True

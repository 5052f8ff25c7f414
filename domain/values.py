"""
Domain value coercion helpers (pure).

- Money is always a finite Decimal inside the domain, whatever number type
  the caller passed in.
- Status-like enums are open: values the enum does not know are kept as the
  raw string so records written by other clients still load and save.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Type, TypeVar, Union

E = TypeVar("E", bound=Enum)


def to_money(name: str, value: Any) -> Decimal:
    """
    Coerce a number to a finite Decimal.

    Raises:
        ValueError: if the value is not a number, or is NaN / infinite
    """

    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, not {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{name} must be a number, not {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"{name} must be finite, not {value!r}")
    return amount


def known_or_raw(enum_cls: Type[E], value: Any) -> Union[E, str]:
    """Return the enum member for value, or the raw string if the enum does not know it."""

    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return str(value)


def raw_value(value: Union[Enum, str]) -> str:
    """The stored spelling of an enum member or raw status string."""

    if isinstance(value, Enum):
        return str(value.value)
    return value

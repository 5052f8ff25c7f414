"""
Tests for `services/demo_seed.py`.
"""

from __future__ import annotations

from decimal import Decimal

from domain.user import User
from services.demo_seed import (
    DEMO_REDEEM_CODE,
    DEMO_SEQUENTIAL_ITEM_ID,
    DEMO_USER_ID,
    seed_demo_store,
)


def test_seed_populates_empty_store(store) -> None:
    assert seed_demo_store(store) is True

    assert len(store.get_users()) == 2
    assert len(store.get_items()) == 2
    assert len(store.get_redeem_codes()) == 1
    assert len(store.get_tickets()) == 1
    assert store.get_item(DEMO_SEQUENTIAL_ITEM_ID).stock_remaining == 3


def test_seed_leaves_existing_store_alone(store, storage) -> None:
    store.add_user(User(id="someone"))
    writes_before = len(storage.writes)

    assert seed_demo_store(store) is False
    assert len(storage.writes) == writes_before
    assert [u.id for u in store.get_users()] == ["someone"]


def test_seeded_store_supports_the_demo_flow(store) -> None:
    """Redeem the welcome code, then buy gift cards until the balance runs out."""

    seed_demo_store(store)

    assert store.redeem(DEMO_USER_ID, DEMO_REDEEM_CODE).success is True
    assert store.get_user(DEMO_USER_ID).credits == Decimal("110")

    results = [store.process_purchase(DEMO_USER_ID, DEMO_SEQUENTIAL_ITEM_ID) for _ in range(4)]

    assert [r.success for r in results] == [True, True, True, False]
    assert results[3].error == "Out of stock"
    assert store.get_user(DEMO_USER_ID).credits == Decimal("20")

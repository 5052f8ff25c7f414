"""
Tests for `services/state_store.py`.

Covers:
- Load/mutate/save per call, with no caching between calls.
- Which operations write and which leave storage untouched.
- Purchase fulfillment: all-or-nothing, INSTANT vs SEQUENTIAL delivery.
- Credit rules for transactions and redeem codes.
- Ticket messages and closing.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.item import Item, ItemType, SequentialItem
from domain.purchase import Purchase
from domain.redeem_code import RedeemCode
from domain.ticket import Ticket, TicketMessage, TicketStatus
from domain.transaction import Transaction, TransactionStatus
from domain.user import User
from repositories.document_repository import STORAGE_KEY
from services.state_store import StateStore

T0 = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def _instant(item_id: str = "i1", price: str = "30", content: str | None = "CODE123") -> Item:
    return Item(id=item_id, name="Gift card", price=Decimal(price), type=ItemType.INSTANT, content=content)


def _sequential(item_id: str = "s1", units: int = 3, price: str = "10") -> Item:
    return Item(
        id=item_id,
        name="Keys",
        price=Decimal(price),
        type=ItemType.SEQUENTIAL,
        sequential_items=[SequentialItem(content=f"KEY-{n}") for n in range(1, units + 1)],
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def test_empty_store_reads_without_writing(store, storage) -> None:
    assert store.get_users() == []
    assert store.get_items() == []
    assert store.get_tickets() == []
    assert storage.writes == []
    assert storage.get(STORAGE_KEY) is None


def test_add_user_appends_in_insertion_order(store) -> None:
    store.add_user(User(id="u1"))
    store.add_user(User(id="u2"))
    store.add_user(User(id="u1"))

    assert [u.id for u in store.get_users()] == ["u1", "u2", "u1"]


def test_store_instances_share_state_only_through_storage(storage) -> None:
    """Verify a second façade over the same backend sees the first one's writes."""

    StateStore(storage).add_user(User(id="u1", credits=Decimal("5")))

    assert StateStore(storage).get_user("u1").credits == Decimal("5")


def test_returned_records_are_detached_copies(store) -> None:
    store.add_user(User(id="u1", credits=Decimal("5")))

    store.get_users()[0].credits = Decimal("999")

    assert store.get_user("u1").credits == Decimal("5")


@pytest.mark.parametrize("token", ["abc", "x"])
def test_verify_user_accepts_any_non_empty_token(store, token) -> None:
    result = store.verify_user(token)

    assert result.success is True
    assert result.error is None


@pytest.mark.parametrize("token", ["", None])
def test_verify_user_rejects_empty_token(store, token) -> None:
    result = store.verify_user(token)

    assert result.success is False
    assert result.error == "Invalid or expired verification token"


def test_update_user_credits_adds_signed_amount(store) -> None:
    store.add_user(User(id="u1", credits=Decimal("10")))

    store.update_user_credits("u1", Decimal("15"))
    store.update_user_credits("u1", -5)

    assert store.get_user("u1").credits == Decimal("20")


def test_update_user_credits_for_unknown_user_still_writes(store, storage) -> None:
    store.add_user(User(id="u1", credits=Decimal("10")))
    writes_before = len(storage.writes)

    store.update_user_credits("nobody", 50)

    assert len(storage.writes) == writes_before + 1
    assert store.get_user("u1").credits == Decimal("10")


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def test_items_reflect_additions_minus_deletions_in_order(store) -> None:
    for item_id in ["a", "b", "c", "d"]:
        store.add_item(_instant(item_id))

    store.delete_item("b")
    store.add_item(_instant("e"))
    store.delete_item("d")
    store.delete_item("missing")

    assert [i.id for i in store.get_items()] == ["a", "c", "e"]


def test_delete_item_removes_every_match(store) -> None:
    store.add_item(_instant("a"))
    store.add_item(_instant("b"))
    store.add_item(_instant("a"))

    store.delete_item("a")

    assert [i.id for i in store.get_items()] == ["b"]


def test_update_item_replaces_in_place(store) -> None:
    store.add_item(_instant("a"))
    store.add_item(_instant("b"))
    store.add_item(_instant("c"))

    updated = _instant("b", price="99", content="NEW")
    assert store.update_item(updated) is True

    items = store.get_items()
    assert [i.id for i in items] == ["a", "b", "c"]
    assert items[1].price == Decimal("99")
    assert items[1].content == "NEW"


def test_update_item_not_found_does_not_write(store, storage) -> None:
    store.add_item(_instant("a"))
    writes_before = len(storage.writes)

    assert store.update_item(_instant("zzz")) is False
    assert len(storage.writes) == writes_before


# ---------------------------------------------------------------------------
# Purchases
# ---------------------------------------------------------------------------


def test_process_purchase_instant_example(store) -> None:
    """User with 100 credits buys an INSTANT item priced 30."""

    store.add_user(User(id="U", credits=Decimal("100")))
    store.add_item(_instant("I", price="30", content="CODE123"))

    result = store.process_purchase("U", "I")

    assert result.success is True
    assert result.content == "CODE123"
    assert result.error is None
    assert store.get_user("U").credits == Decimal("70")

    purchases = store.get_purchases()
    assert len(purchases) == 1
    assert purchases[0].price == Decimal("30")
    assert purchases[0].item_name == "Gift card"
    assert purchases[0].content_delivered == "CODE123"
    assert purchases[0].user_id == "U"
    assert purchases[0].item_id == "I"
    assert purchases[0].id
    assert purchases[0].timestamp.tzinfo is not None


def test_process_purchase_instant_without_content_delivers_empty_string(store) -> None:
    store.add_user(User(id="U", credits=Decimal("10")))
    store.add_item(_instant("I", price="1", content=None))

    result = store.process_purchase("U", "I")

    assert result.success is True
    assert result.content == ""


def test_process_purchase_allows_spending_exact_balance(store) -> None:
    store.add_user(User(id="U", credits=Decimal("30")))
    store.add_item(_instant("I", price="30"))

    assert store.process_purchase("U", "I").success is True
    assert store.get_user("U").credits == Decimal("0")


@pytest.mark.parametrize("user_id, item_id", [("ghost", "I"), ("U", "ghost"), ("ghost", "ghost")])
def test_process_purchase_missing_user_or_item(store, storage, user_id, item_id) -> None:
    store.add_user(User(id="U", credits=Decimal("100")))
    store.add_item(_instant("I"))
    writes_before = len(storage.writes)

    result = store.process_purchase(user_id, item_id)

    assert result.success is False
    assert result.error == "User or Item not found"
    assert len(storage.writes) == writes_before
    assert store.get_purchases() == []


def test_process_purchase_insufficient_credits_has_no_side_effects(store, storage) -> None:
    store.add_user(User(id="U", credits=Decimal("9.99")))
    store.add_item(_sequential("S", units=1, price="10"))
    writes_before = len(storage.writes)

    result = store.process_purchase("U", "S")

    assert result.success is False
    assert result.error == "Insufficient credits"
    assert len(storage.writes) == writes_before
    assert store.get_user("U").credits == Decimal("9.99")
    assert store.get_item("S").stock_remaining == 1
    assert store.get_item("S").delivered_count == 0
    assert store.get_purchases() == []


def test_sequential_item_sells_each_unit_once_then_runs_out(store, storage) -> None:
    """N units allow exactly N purchases, each delivering the next unit in order."""

    store.add_user(User(id="U", credits=Decimal("1000")))
    store.add_item(_sequential("S", units=3, price="10"))

    delivered = [store.process_purchase("U", "S").content for _ in range(3)]
    assert delivered == ["KEY-1", "KEY-2", "KEY-3"]

    writes_before = len(storage.writes)
    result = store.process_purchase("U", "S")

    assert result.success is False
    assert result.error == "Out of stock"
    assert len(storage.writes) == writes_before

    item = store.get_item("S")
    assert item.delivered_count == 3
    assert item.stock_remaining == 0
    assert all(unit.is_delivered for unit in item.sequential_items)
    assert store.get_user("U").credits == Decimal("970")
    assert len(store.get_purchases()) == 3


def test_out_of_stock_check_runs_before_debit(store) -> None:
    store.add_user(User(id="U", credits=Decimal("50")))
    store.add_item(_sequential("S", units=0, price="10"))

    result = store.process_purchase("U", "S")

    assert result.error == "Out of stock"
    assert store.get_user("U").credits == Decimal("50")


def test_purchase_snapshots_survive_item_changes(store) -> None:
    store.add_user(User(id="U", credits=Decimal("100")))
    store.add_item(_instant("I", price="30"))
    store.process_purchase("U", "I")

    store.update_item(Item(id="I", name="Renamed", price=Decimal("1"), content="other"))
    store.delete_item("I")

    purchase = store.get_purchases()[0]
    assert purchase.item_name == "Gift card"
    assert purchase.price == Decimal("30")


def test_add_purchase_appends_without_side_effects(store) -> None:
    store.add_user(User(id="U", credits=Decimal("100")))
    store.add_item(_sequential("S", units=1))

    store.add_purchase(
        Purchase(
            id="manual",
            user_id="U",
            item_id="S",
            item_name="Keys",
            content_delivered="given by hand",
            timestamp=T0,
            price=Decimal("10"),
        )
    )

    assert [p.id for p in store.get_purchases()] == ["manual"]
    assert store.get_user("U").credits == Decimal("100")
    assert store.get_item("S").stock_remaining == 1


def test_get_purchases_for_user(store) -> None:
    store.add_user(User(id="A", credits=Decimal("100")))
    store.add_user(User(id="B", credits=Decimal("100")))
    store.add_item(_instant("I", price="1"))

    store.process_purchase("A", "I")
    store.process_purchase("B", "I")
    store.process_purchase("A", "I")

    assert len(store.get_purchases_for_user("A")) == 2
    assert len(store.get_purchases_for_user("B")) == 1
    assert store.get_purchases_for_user("C") == []


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def test_approving_transaction_credits_owner_every_time(store) -> None:
    """Re-approving credits again: there is no idempotence guard."""

    store.add_user(User(id="U", credits=Decimal("0")))
    store.add_transaction(Transaction(id="t1", user_id="U", amount=Decimal("25")))

    store.update_transaction_status("t1", TransactionStatus.APPROVED)
    assert store.get_user("U").credits == Decimal("25")
    assert store.get_transactions()[0].status == TransactionStatus.APPROVED

    store.update_transaction_status("t1", "APPROVED")
    assert store.get_user("U").credits == Decimal("50")


@pytest.mark.parametrize("status", [TransactionStatus.REJECTED, TransactionStatus.PENDING])
def test_non_approval_status_does_not_touch_credits(store, status) -> None:
    store.add_user(User(id="U", credits=Decimal("5")))
    store.add_transaction(Transaction(id="t1", user_id="U", amount=Decimal("25")))

    store.update_transaction_status("t1", status)

    assert store.get_transactions()[0].status == status
    assert store.get_user("U").credits == Decimal("5")


def test_approving_transaction_for_unknown_owner_only_sets_status(store) -> None:
    store.add_transaction(Transaction(id="t1", user_id="ghost", amount=Decimal("25")))

    store.update_transaction_status("t1", TransactionStatus.APPROVED)

    assert store.get_transactions()[0].status == TransactionStatus.APPROVED


def test_update_unknown_transaction_still_writes(store, storage) -> None:
    store.add_transaction(Transaction(id="t1", user_id="U", amount=Decimal("25")))
    writes_before = len(storage.writes)

    store.update_transaction_status("nope", TransactionStatus.APPROVED)

    assert len(storage.writes) == writes_before + 1
    assert store.get_transactions()[0].status == TransactionStatus.PENDING


def test_unlisted_transaction_status_is_stored_without_touching_credits(store, storage) -> None:
    """Statuses outside PENDING/APPROVED/REJECTED are kept verbatim; only APPROVED credits."""

    store.add_user(User(id="U", credits=Decimal("5")))
    store.add_transaction(Transaction(id="t1", user_id="U", amount=Decimal("25")))

    store.update_transaction_status("t1", "CANCELLED")

    assert store.get_transactions()[0].status == "CANCELLED"
    assert store.get_user("U").credits == Decimal("5")
    payload = json.loads(storage.get(STORAGE_KEY))
    assert payload["transactions"][0]["status"] == "CANCELLED"

    store.update_transaction_status("t1", "APPROVED")
    assert store.get_transactions()[0].status == TransactionStatus.APPROVED
    assert store.get_user("U").credits == Decimal("30")


# ---------------------------------------------------------------------------
# Money values
# ---------------------------------------------------------------------------


def test_plain_int_money_is_accepted_everywhere(store) -> None:
    """User with credits=100 buys an item priced 30, all given as plain ints."""

    store.add_user(User(id="U", credits=100))
    store.add_item(Item(id="I", name="Gift card", price=30, content="CODE123"))
    store.add_redeem_code(RedeemCode(code="FIVE", amount=5))
    store.add_transaction(Transaction(id="t1", user_id="U", amount=20))

    result = store.process_purchase("U", "I")

    assert result.success is True
    assert result.content == "CODE123"
    assert store.get_user("U").credits == Decimal("70")
    assert store.get_purchases()[0].price == Decimal("30")

    assert store.redeem("U", "FIVE").amount == Decimal("5")
    store.update_transaction_status("t1", TransactionStatus.APPROVED)
    assert store.get_user("U").credits == Decimal("95")


def test_float_money_is_kept_exact(store) -> None:
    store.add_user(User(id="U", credits=0.1))

    store.update_user_credits("U", 0.2)

    assert store.get_user("U").credits == Decimal("0.3")


@pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", Decimal("NaN"), float("inf")])
def test_update_user_credits_rejects_non_finite_amounts(store, storage, amount) -> None:
    store.add_user(User(id="U", credits=Decimal("10")))
    writes_before = len(storage.writes)

    with pytest.raises(ValueError):
        store.update_user_credits("U", amount)

    assert len(storage.writes) == writes_before
    assert store.get_user("U").credits == Decimal("10")


def test_records_reject_non_finite_money() -> None:
    with pytest.raises(ValueError):
        User(id="U", credits=Decimal("NaN"))
    with pytest.raises(ValueError):
        Item(id="I", name="x", price=float("inf"))
    with pytest.raises(ValueError):
        RedeemCode(code="C", amount="not a number")


# ---------------------------------------------------------------------------
# Redeem codes
# ---------------------------------------------------------------------------


def test_redeem_welcome_code_once(store) -> None:
    store.add_user(User(id="U", credits=Decimal("0")))
    store.add_redeem_code(RedeemCode(code="WELCOME10", amount=Decimal("10")))

    first = store.redeem("U", "WELCOME10")
    assert first.success is True
    assert first.amount == Decimal("10")
    assert store.get_user("U").credits == Decimal("10")
    assert store.get_redeem_codes()[0].is_used is True

    second = store.redeem("U", "WELCOME10")
    assert second.success is False
    assert second.error == "Invalid or already used code"
    assert store.get_user("U").credits == Decimal("10")


def test_redeem_used_code_never_writes(store, storage) -> None:
    store.add_user(User(id="U", credits=Decimal("3")))
    store.add_redeem_code(RedeemCode(code="OLD", amount=Decimal("10"), is_used=True))
    writes_before = len(storage.writes)

    result = store.redeem("U", "OLD")

    assert result.error == "Invalid or already used code"
    assert len(storage.writes) == writes_before
    assert store.get_user("U").credits == Decimal("3")


def test_redeem_unknown_user(store, storage) -> None:
    store.add_redeem_code(RedeemCode(code="C", amount=Decimal("10")))
    writes_before = len(storage.writes)

    result = store.redeem("ghost", "C")

    assert result.success is False
    assert result.error == "User not found"
    assert len(storage.writes) == writes_before
    assert store.get_redeem_codes()[0].is_used is False


def test_redeem_picks_the_unused_duplicate(store) -> None:
    store.add_user(User(id="U"))
    store.add_redeem_code(RedeemCode(code="DUP", amount=Decimal("5"), is_used=True))
    store.add_redeem_code(RedeemCode(code="DUP", amount=Decimal("7")))

    result = store.redeem("U", "DUP")

    assert result.amount == Decimal("7")
    assert [c.is_used for c in store.get_redeem_codes()] == [True, True]


# ---------------------------------------------------------------------------
# Tickets
# ---------------------------------------------------------------------------


def test_ticket_messages_and_close(store) -> None:
    store.create_ticket(Ticket(id="k1", user_id="U", subject="Help", last_updated=T0))

    message = TicketMessage(sender="U", content="My code does not work", timestamp=T0)
    store.add_ticket_message("k1", message)

    ticket = store.get_tickets()[0]
    assert [m.content for m in ticket.messages] == ["My code does not work"]
    assert ticket.last_updated > T0
    assert ticket.last_updated >= ticket.messages[-1].timestamp

    store.close_ticket("k1")
    closed = store.get_tickets()[0]
    assert closed.status == TicketStatus.CLOSED
    assert closed.last_updated >= ticket.last_updated


def test_ticket_operations_on_unknown_ticket_still_write(store, storage) -> None:
    store.create_ticket(Ticket(id="k1", last_updated=T0))
    before = storage.get(STORAGE_KEY)
    writes_before = len(storage.writes)

    store.add_ticket_message("nope", TicketMessage(sender="U", content="?", timestamp=T0))
    store.close_ticket("nope")

    assert len(storage.writes) == writes_before + 2
    assert json.loads(storage.get(STORAGE_KEY)) == json.loads(before)


def test_get_tickets_for_user(store) -> None:
    store.create_ticket(Ticket(id="k1", user_id="A", last_updated=T0))
    store.create_ticket(Ticket(id="k2", user_id="B", last_updated=T0))

    assert [t.id for t in store.get_tickets_for_user("A")] == ["k1"]


def test_state_store_defaults_to_environment_backend(monkeypatch) -> None:
    monkeypatch.setenv("SHOP_STORE_BACKEND", "memory")

    store = StateStore()
    store.add_user(User(id="u1"))

    assert [u.id for u in store.get_users()] == ["u1"]

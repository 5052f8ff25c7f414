"""
Print a summary of the configured store: balances, stock and open tickets.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.values import raw_value
from services.state_store import StateStore


def show_store_summary():
    """Print counts, balances and remaining stock."""

    store = StateStore()

    users = store.get_users()
    items = store.get_items()
    purchases = store.get_purchases()
    transactions = store.get_transactions()
    codes = store.get_redeem_codes()
    tickets = store.get_tickets()

    print("=" * 50)
    print("STORE SUMMARY")
    print("=" * 50)
    print(f"Users:                 {len(users)}")
    print(f"Items:                 {len(items)}")
    print(f"Purchases:             {len(purchases)}")
    print(f"Pending transactions:  {sum(1 for t in transactions if t.is_pending())}")
    print(f"Unused redeem codes:   {sum(1 for c in codes if not c.is_used)}")
    print(f"Open tickets:          {sum(1 for t in tickets if t.is_open())}")
    print("=" * 50)

    print("\nBalances:")
    print("-" * 50)
    for user in users:
        print(f"  {user.id:<24} {raw_value(user.role):<6} {user.credits}")

    print("\nStock:")
    print("-" * 50)
    for item in items:
        remaining = item.stock_remaining
        stock = "unlimited" if remaining is None else str(remaining)
        print(f"  {item.id:<24} {item.type.value:<10} price={item.price} stock={stock} sold={item.delivered_count}")


if __name__ == "__main__":
    show_store_summary()

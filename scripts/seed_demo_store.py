"""
Seed the demo catalogue into the configured store.

Backend selection follows SHOP_STORE_BACKEND / SHOP_STORE_FILE (see .env.example).
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.demo_seed import seed_demo_store
from services.state_store import StateStore


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    store = StateStore()

    if seed_demo_store(store):
        print("[SUCCESS] Demo store seeded")
    else:
        print("Store already has users; nothing seeded")

    print(f"  Users: {len(store.get_users())}")
    print(f"  Items: {len(store.get_items())}")
    print(f"  Redeem codes: {len(store.get_redeem_codes())}")


if __name__ == "__main__":
    main()

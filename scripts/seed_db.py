"""
Seed script for users and worker locations.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured store: python scripts/seed_db.py --apply
  - Custom file: python scripts/seed_db.py --apply --file ./my_seed.json

Seed file shape:
  {
    "users": [{"id": "admin-1", "role": "ADMIN", "name": "Asha"}, ...],
    "worker_locations": [{"worker_id": "worker-1", "latitude": 12.97, "longitude": 77.59}, ...]
  }

NOTE: With USE_MOCK_DB=true the in-memory store is used and nothing survives
the process; seed real Firestore by setting FIREBASE_CREDENTIALS_PATH.
"""

import argparse
import json
import os

from app.models.user import UserRole
from app.stores.base import ReportStore
from app.stores.registry import get_report_store


def load_seed(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_to_store(store: ReportStore, seed: dict, apply: bool = False) -> int:
    """Write the seed through the store. Returns the number of records written."""
    written = 0

    for user in seed.get("users", []):
        role = UserRole(user["role"].upper())
        print(f"Preparing: users/{user['id']} ({role.value})")
        if apply:
            store.save_user(user["id"], role.value, user.get("name"))
            written += 1

    for location in seed.get("worker_locations", []):
        print(f"Preparing: worker_locations/{location['worker_id']}")
        if apply:
            store.upsert_worker_location(
                location["worker_id"], float(location["latitude"]), float(location["longitude"])
            )
            written += 1

    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the store instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed JSON file")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"Seed file not found: {args.file}")
        return

    seed = load_seed(args.file)
    written = write_to_store(get_report_store(), seed, apply=args.apply)

    if args.apply:
        print(f"Seeding completed ({written} records).")
    else:
        print("Dry run complete. Re-run with --apply to write to the store.")


if __name__ == "__main__":
    main()

"""
Seed script for staff accounts.

Usage:
  - Dry run (default): python scripts/seed_staff.py staff_seed.json
  - Apply to Firestore: python scripts/seed_staff.py staff_seed.json --apply

Behavior:
  - Loads a JSON list of staff accounts ({id, full_name, role, department_name?}).
  - Validates every entry before writing anything.
  - Writes each account to the "staff_accounts" collection.

NOTE: When applying to real Firestore, ensure FIREBASE_CREDENTIALS_PATH is set in .env.
For the in-memory store, set STAFF_SEED_PATH instead; the app loads it at startup.
"""

import argparse
import logging
import sys

from app.core.logging import configure_logging
from app.services.staff_service import FirestoreStaffDirectory, load_staff_seed

logger = logging.getLogger("seed_staff")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Provision staff accounts")
    parser.add_argument("path", help="JSON file with a list of staff accounts")
    parser.add_argument("--apply", action="store_true", help="Write to Firestore instead of dry-run")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        accounts = load_staff_seed(args.path)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load seed file {args.path}: {e}")
        return 1

    for account in accounts:
        logger.info(f"Preparing: staff_accounts/{account.id} ({account.role.value} {account.department_name or ''})")

    if not args.apply:
        logger.info("Dry run complete. Re-run with --apply to write to Firestore.")
        return 0

    directory = FirestoreStaffDirectory()
    for account in accounts:
        directory.add_staff(account)
        logger.info(f"Wrote: staff_accounts/{account.id}")

    logger.info(f"Seeding completed: {len(accounts)} account(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Copy customers, submissions and invoices from the JSON flat-file store into
the SQL store. Records already present in the database are skipped, so the
script can be re-run after an interruption.

Usage:
    python scripts/migrate_json_to_db.py --data-dir data --db sqlite:///data/contactlink.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from contactlink.errors import ContactLinkError
from contactlink.models import Customer, Invoice, Submission
from contactlink.repositories.json_store import load_store
from contactlink.repositories.sql_store import sql_stores

COLLECTIONS = (
    ("customers", Customer),
    ("submissions", Submission),
    ("invoices", Invoice),
)


def _json_records(data_dir: Path, collection: str):
    store = load_store(data_dir / f"{collection}.json", collection)
    for tenant_id, records in store[collection].items():
        for record in records.values():
            yield tenant_id, record


def migrate(data_dir: Path, database: str, dry_run: bool = False) -> bool:
    """
    Migrate every collection from JSON to the database.

    Args:
        data_dir: Directory holding customers.json, submissions.json, invoices.json
        database: SQLAlchemy URL or SQLite file path
        dry_run: If True, don't write to database

    Returns:
        True when every record was migrated or already present
    """
    stores = None if dry_run else sql_stores(database)
    ok = True

    for collection, record_type in COLLECTIONS:
        migrated = skipped = errors = 0
        print(f"Migrating {collection} from {data_dir / (collection + '.json')}...")
        for tenant_id, data in _json_records(data_dir, collection):
            try:
                record = record_type.from_dict({**data, "tenant_id": tenant_id})
            except (KeyError, TypeError, ValueError) as e:
                print(f"  Skipping malformed record in {tenant_id}: {e}")
                errors += 1
                continue

            if dry_run:
                print(f"  [dry run] {tenant_id}/{record.id}")
                migrated += 1
                continue

            target = getattr(stores, collection)
            try:
                if target.get_by_id(tenant_id, record.id) is not None:
                    skipped += 1
                    continue
                if collection == "customers":
                    target.put(record)
                else:
                    target.add(record)
                migrated += 1
            except ContactLinkError as e:
                print(f"  Error migrating {tenant_id}/{record.id}: {e.message}")
                errors += 1

        print(f"  Migrated: {migrated}  Skipped: {skipped}  Errors: {errors}")
        ok = ok and errors == 0

    return ok


def main():
    parser = argparse.ArgumentParser(description="Migrate contactlink JSON stores to a database")
    parser.add_argument("--data-dir", type=Path, default=Path("data"),
                        help="Directory with the JSON store files")
    parser.add_argument("--db", default="sqlite:///data/contactlink.db",
                        help="SQLAlchemy URL or SQLite file path")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be migrated without writing")

    args = parser.parse_args()

    if not args.data_dir.exists():
        print(f"Data directory not found: {args.data_dir}")
        sys.exit(1)

    sys.exit(0 if migrate(args.data_dir, args.db, dry_run=args.dry_run) else 1)


if __name__ == "__main__":
    main()

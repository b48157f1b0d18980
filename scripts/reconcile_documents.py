"""
Run the document department/category reconciliation from the command line.

    python scripts/reconcile_documents.py --dry-run --examples

Uses DATABASE_URL like the API does. Exit code 1 on failure.
"""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

# Ensure we can import sirtis modules when run from the repository root
sys.path.append(os.getcwd())

from sirtis.core.exceptions import ReconciliationError
from sirtis.core.logging import setup_logging
from sirtis.database import SessionLocal, init_db
from sirtis.services.reconciliation import DocumentReconciliationService

logger = logging.getLogger("scripts.reconcile_documents")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Normalize document departments/categories and rebuild folder aggregates.")
    parser.add_argument("--dry-run", action="store_true", help="Compute the result without saving anything")
    parser.add_argument("--examples", action="store_true", help="Print the first resolved documents as JSON")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging()
    init_db()

    db = SessionLocal()
    try:
        result = DocumentReconciliationService(db).reconcile(dry_run=args.dry_run)
    except ReconciliationError as e:
        logger.error(f"Failed to reconcile documents (phase: {e.phase})")
        return 1
    finally:
        db.close()

    print(f"Examined {result.total_documents} documents.")
    if result.dry_run:
        print(f"{result.updated_documents} documents would be updated (dry run, nothing saved).")
    else:
        print(f"Updated {result.updated_documents} documents with normalized department/category info.")
        print(f"Folder aggregates rebuilt: {result.folder_count}.")
    if args.examples:
        print(json.dumps([record.to_example() for record in result.examples], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

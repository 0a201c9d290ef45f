#!/usr/bin/env python3
"""
Create the local SQLite schema, optionally migrate legacy comma-joined
territories into set rows and define a quarter.
"""

import argparse
import logging
import sys

from ..config.settings import get_settings
from ..database.connection import DatabaseConnection
from ..database.schema import initialize_schema
from ..repositories.sqlite_store import SQLiteRecordStore
from ..services.account_service import AccountService
from ..services.activity_log_service import ActivityLogService
from ..services.errors import PromoTrackError
from ..services.quarter_service import QuarterService

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Initialize the promo tracking database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  promotrack-init-db
  promotrack-init-db --db-path data/database/promotrack.db --migrate-territories
  promotrack-init-db --quarter "Q1 2026" 2026-01-01 2026-03-31 --activate
        """
    )
    parser.add_argument("--db-path", help="Database path (default: from settings)")
    parser.add_argument("--migrate-territories", action="store_true",
                        help="Copy legacy accounts.territory strings into territory set rows")
    parser.add_argument("--quarter", nargs=3, metavar=("NAME", "START", "END"),
                        help="Create a quarter (dates as YYYY-MM-DD)")
    parser.add_argument("--activate", action="store_true",
                        help="Make the quarter created with --quarter the active one")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    db_path = args.db_path or get_settings().database.db_path
    db = DatabaseConnection(db_path)
    initialize_schema(db)
    print(f"✅ Schema ready at {db_path}")

    store = SQLiteRecordStore(db)
    try:
        if args.migrate_territories:
            migrated = AccountService(store, ActivityLogService(store)).migrate_legacy_territories()
            print(f"✅ Migrated territories for {migrated} account(s)")

        if args.quarter:
            name, start, end = args.quarter
            quarter = QuarterService(store).create_quarter(name, start, end, is_active=args.activate)
            state = "active" if quarter.is_active else "inactive"
            print(f"✅ Created quarter '{quarter.name}' ({quarter.start_date} -> {quarter.end_date}, {state})")
    except (PromoTrackError, ValueError) as e:
        print(f"❌ {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
End the active quarter: archive assignments and transactions, clear them, and
activate the next quarter.

Accounts are kept. The operator must type the confirmation phrase unless
--force is given.
"""

import argparse
import logging
import sys

from ..config.settings import get_settings
from ..models.entities import Actor
from ..services.errors import PartialRolloverError, PromoTrackError
from ..services.factory import initialize_services
from ..services.rollover_service import CONFIRMATION_PHRASE, RolloverStats

logger = logging.getLogger(__name__)


def display_stats(stats: RolloverStats, progress) -> None:
    print(f"\n📊 Quarter: {stats.quarter_name}")
    print(f"  Assignments to archive:  {stats.assignments:,}")
    print(f"  Transactions to archive: {stats.transactions:,}")
    print(f"  Accounts (kept):         {stats.accounts:,}")
    print(f"  Units sold / target:     {progress.total_sold:,} / {progress.total_target:,} ({progress.overall_pct}%)")
    print(f"  Met target: {progress.met_count}   Below 75%: {progress.behind_count}")


def get_rollover_confirmation(stats: RolloverStats) -> str:
    """Prompt until the phrase is typed or the operator cancels; returns what was typed."""
    print(f"\n🚨 CONFIRMATION REQUIRED")
    print(f"This will:")
    print(f"  • Archive {stats.assignments:,} assignments and {stats.transactions:,} transactions as '{stats.quarter_name}'")
    print(f"  • Delete them from the live tables")
    print(f"  • Activate the next quarter, if one is defined")

    while True:
        response = input(f"\nEnd {stats.quarter_name}? (type '{CONFIRMATION_PHRASE}' to confirm): ").strip()
        if response == CONFIRMATION_PHRASE:
            return response
        if response.lower() in ['no', 'n', 'cancel', '']:
            return ""
        print(f"Type '{CONFIRMATION_PHRASE}' to confirm or 'no' to cancel")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="End the active quarter and reset promo progress",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  promotrack-rollover --stats
  promotrack-rollover --operator "Dana"
  promotrack-rollover --operator "Dana" --force
        """
    )
    parser.add_argument("--stats", action="store_true",
                        help="Show what would be archived and exit")
    parser.add_argument("--operator", default="CLI operator",
                        help="Name recorded as the operator in logs")
    parser.add_argument("--rep-id", help="Rep id of the operator, if any")
    parser.add_argument("--force", action="store_true",
                        help="Skip confirmation prompt (use with extreme caution)")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable verbose logging")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    container = initialize_services(get_settings())
    rollover = container.get("rollover_service")
    quarters = container.get("quarter_service")
    actor = Actor(id=args.rep_id, name=args.operator)

    try:
        stats = rollover.fetch_stats()
        display_stats(stats, quarters.quarter_stats())
        if args.stats:
            return 0

        token = CONFIRMATION_PHRASE if args.force else get_rollover_confirmation(stats)
        if not token:
            print(f"❌ Rollover cancelled by user")
            return 0

        rollover.confirm(token)
        result = rollover.execute(actor)

        print(f"\n✅ {result.quarter_name} closed")
        print(f"  Archived assignments:  {result.archived_assignments:,}")
        print(f"  Archived transactions: {result.archived_transactions:,}")
        if result.activated_quarter:
            print(f"  Active quarter is now: {result.activated_quarter.name}")
        else:
            print(f"  ⚠️  No later quarter is defined; no quarter is active")
        return 0

    except PartialRolloverError as e:
        print(f"❌ {e}")
        print(f"  Completed steps: {', '.join(e.completed_steps) or 'none'}")
        return 2
    except KeyboardInterrupt:
        print(f"\n❌ Operation cancelled by user")
        return 1
    except PromoTrackError as e:
        print(f"❌ Rollover error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

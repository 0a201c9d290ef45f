#!/usr/bin/env python3
"""
Send the weekly progress summary email to every opted-in rep.

Meant to be run by an external scheduler (for example Mondays 16:00 UTC).
Overlapping runs are not guarded against and may double-send.
"""

import argparse
import logging
import sys

from ..config.settings import get_settings
from ..services.factory import initialize_services

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Send weekly promo summary emails")
    parser.add_argument("--env", help="Environment name (dev, prod, test)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    container = initialize_services(get_settings(args.env))
    try:
        result = container.get("notification_service").send_weekly_summaries()
    except Exception as e:
        logger.error(f"Weekly summary run failed: {e}", exc_info=args.verbose)
        print(f"❌ Failed to send weekly summaries: {e}")
        return 1

    print(f"✅ {result.get('message') or 'Done'} (count: {result['count']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

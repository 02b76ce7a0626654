#!/usr/bin/env python3
"""Deactivate subscriptions whose end date has passed. Meant for a daily cron."""

import argparse
import sys

from resumepro import create_app
from resumepro.services.subscriptions import expire_subscriptions


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Expire lapsed subscriptions")
    parser.add_argument("--batch-size", type=int, default=None, help="Rows updated per batch (default from config)")
    parser.add_argument("--dry-run", action="store_true", help="Count expired subscriptions without updating them")
    parser.add_argument("--env", default=None, help="Config environment (default from RESUMEPRO_ENV)")
    args = parser.parse_args(argv)

    app = create_app(args.env)
    with app.app_context():
        try:
            count = expire_subscriptions(batch_size=args.batch_size, dry_run=args.dry_run)
        except Exception as e:
            print(f"Error deactivating expired subscriptions: {e}", file=sys.stderr)
            return 1

    if args.dry_run:
        print(f"{count} subscriptions would be deactivated.")
    else:
        print(f"{count} subscriptions deactivated.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

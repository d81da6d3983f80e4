#!/usr/bin/env python3
"""
Delete live tracking points older than the retention window.
Meant for cron: python scripts/cleanup_tracking.py [--days 7]
"""
import argparse
import os
import sys
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import settings
from app.core.db_transaction import db_transaction
from app.core.time_utils import utcnow
from app.services import tracking_service


def main(argv=None):
    parser = argparse.ArgumentParser(description="Purge old tracking points")
    parser.add_argument("--days", type=int, default=settings.TRACKING_RETENTION_DAYS)
    args = parser.parse_args(argv)

    with db_transaction() as db:
        deleted = tracking_service.cleanup(db, utcnow() - timedelta(days=args.days))
    print(f"Deleted {deleted} tracking point(s) older than {args.days} day(s)")


if __name__ == "__main__":
    main()

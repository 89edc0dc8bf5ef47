"""
amendflow.cli
=============

Command-line helpers around the SQLite store.

Examples
--------
$ python -m amendflow.cli --create                 # first‑time table creation
$ python -m amendflow.cli --check                  # today's expiration alerts
$ python -m amendflow.cli --check --today 2025-03-01
$ python -m amendflow.cli --list                   # contracts with derived status
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from datetime import date
from typing import List, Optional

from amendflow.dates import format_date, parse_date
from amendflow.db import create_all
from amendflow.notifications import pending_notifications
from amendflow.portfolio_db import DBPortfolioManager
from amendflow.settings import settings


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m amendflow.cli",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            amendflow utilities
            -------------------
            --create   Create all SQLModel tables (safe if they already exist)
            --check    List documents whose expiration alert fires today
            --list     Print every contract with its effective end date and status
            """
        ),
    )
    parser.add_argument("--create", action="store_true", help="create tables")
    parser.add_argument("--check", action="store_true", help="list today's expiration alerts")
    parser.add_argument("--list", action="store_true", help="list contracts with derived status")
    parser.add_argument("--today", help="pretend today is this date (YYYY-MM-DD or DD/MM/YYYY)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    today: Optional[date] = parse_date(args.today, lenient=False) if args.today else None

    if args.create:
        create_all()
        print("✅ amendflow schema initialised")

    if args.check:
        with DBPortfolioManager() as pm:
            alerts = pending_notifications(
                pm, pm.all_amendments(), pm.notification_settings(),
                today=today, lenient=settings.lenient_dates,
            )
        for alert in alerts:
            print(f"{alert.kind.value:8} {alert.identifier:12} {alert.days_remaining:5}d  {alert.department}  {alert.object}")
        print(f"{len(alerts)} alert(s) due")

    if args.list:
        with DBPortfolioManager() as pm:
            for view in pm.views(today):
                end = view.effective_end_date
                end_text = format_date(end) if isinstance(end, date) else (end or "-")
                badge = view.active_amendment.value if view.active_amendment else ""
                print(f"{view.contract.identifier:12} {end_text:10} {view.status.value:9} {badge}")

    return 0


if __name__ == "__main__":
    sys.exit(main())

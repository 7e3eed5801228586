#!/usr/bin/env python3
# Event reminder (CLI) - email a reminder for manifest events due within a week.
# Meant to be run from cron / a timer; every run re-sends what is due.

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime

from dotenv import find_dotenv, load_dotenv

from manifest import ManifestError, load_manifest
from notifier import SmtpSettings, send_reminder
from scheduler import REMIND_WITHIN_DAYS, evaluate_events, is_due_soon, parse_reference_time

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    evaluated: int = 0
    expired: int = 0
    notified: int = 0
    sent: int = 0


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def run(events, now: datetime, settings: SmtpSettings,
        window: int = REMIND_WITHIN_DAYS, dry_run: bool = False) -> RunSummary:
    """Evaluate every event and send reminders for the due-soon ones."""
    summary = RunSummary()
    for ev in evaluate_events(events, now):
        summary.evaluated += 1
        if ev.expired:
            summary.expired += 1
            continue
        if not is_due_soon(ev, window):
            continue
        summary.notified += 1
        if send_reminder(ev.event, ev.day, settings, dry_run=dry_run):
            summary.sent += 1
    logger.debug("run summary: %s", summary)
    return summary


# ---------------------------- CLI ----------------------------
def build_parser():
    p = argparse.ArgumentParser(prog="event-reminder",
                                description="Send email reminders for events due within a week")
    p.add_argument("manifest", nargs="?", help='JSON file: {"events": [{"title": ..., "time": "YYYY-MM-DD"}]}')
    p.add_argument("--window", type=int, default=REMIND_WITHIN_DAYS,
                   help=f"remind when at most this many days remain (default: {REMIND_WITHIN_DAYS})")
    p.add_argument("--now", help='reference time instead of the clock, e.g. "2025-05-28" or "yesterday 9am"')
    p.add_argument("--dry-run", action="store_true", help="log the rendered emails instead of sending them")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    load_dotenv(find_dotenv(usecwd=True))  # real environment wins

    if not args.manifest:
        logger.error("no manifest")
        return 1

    try:
        now = parse_reference_time(args.now) if args.now else datetime.now()
    except ValueError as e:
        logger.error("%s", e)
        return 1

    try:
        events = load_manifest(args.manifest)
    except ManifestError as e:
        logger.error("load manifest failed: %s", e)
        return 1

    settings = SmtpSettings.from_env()
    run(events, now, settings, window=args.window, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    sys.exit(main())

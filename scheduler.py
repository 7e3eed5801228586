# scheduler.py - decide which manifest events are due for a reminder

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

import dateparser

from manifest import Event

logger = logging.getLogger(__name__)

# --- Settings ---
DATE_FORMAT = "%Y-%m-%d"      # manifest dates, no time of day
DATE_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
REMIND_WITHIN_DAYS = 7        # reminder window
# The stored date is the day before the deadline.
DEADLINE_OFFSET = timedelta(days=1)

DP_SETTINGS = {
    "PREFER_DATES_FROM": "past",
    "RETURN_AS_TIMEZONE_AWARE": False,
}
# -----------------


@dataclass(frozen=True)
class Evaluation:
    event: Event
    deadline: datetime
    expired: bool
    day: Optional[int] = None   # whole days left, None when expired


def parse_event_date(value: str) -> datetime:
    """Local midnight of a YYYY-MM-DD string. Raises ValueError."""
    if not DATE_SHAPE.fullmatch(value):
        raise ValueError(f"time data {value!r} does not match format 'YYYY-MM-DD'")
    return datetime.strptime(value, DATE_FORMAT)


def parse_reference_time(text: str) -> datetime:
    """Resolve a --now override like '2025-05-28' or 'yesterday 09:00'."""
    dt = dateparser.parse(text, settings=DP_SETTINGS)
    if dt is None:
        raise ValueError(f"cannot parse reference time: {text!r}")
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days of elapsed time, not wall-clock difference."""
    hours = (deadline.timestamp() - now.timestamp()) / 3600
    return int(hours // 24)


def evaluate_event(event: Event, now: datetime) -> Evaluation:
    deadline = parse_event_date(event.time) + DEADLINE_OFFSET
    if deadline.timestamp() < now.timestamp():
        return Evaluation(event, deadline, expired=True)
    return Evaluation(event, deadline, expired=False, day=days_until(deadline, now))


def evaluate_events(events: Iterable[Event], now: datetime) -> list[Evaluation]:
    """
    Classify every event against `now`, in manifest order.
    Events with an unparseable date are logged and left out.
    """
    out: list[Evaluation] = []
    for e in events:
        try:
            ev = evaluate_event(e, now)
        except ValueError as err:
            logger.warning("parse event time failed: title=%r time=%r err=%s", e.title, e.time, err)
            continue
        if ev.expired:
            logger.warning("event is expired: title=%r time=%r", e.title, e.time)
        else:
            logger.info("event: title=%r time=%r day=%d", e.title, e.time, ev.day)
        out.append(ev)
    return out


def is_due_soon(ev: Evaluation, window: int = REMIND_WITHIN_DAYS) -> bool:
    return not ev.expired and ev.day is not None and ev.day <= window

from __future__ import annotations
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Union


class DateTarget(str, Enum):
    ALL = "all"
    PAST = "past"
    FUTURE = "future"
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_WEEK = "last week"
    LAST_MONTH = "last month"
    NEXT_WEEK = "next week"
    NEXT_MONTH = "next month"


Target = Union[DateTarget, date]


def parse_date_target(text: Optional[str]) -> Target:
    """Parse a relative target ("today", "last week", ...) or a YYYY-MM-DD date."""
    value = (text or "").strip().lower()
    if value == "":
        return DateTarget.ALL
    try:
        return DateTarget(value)
    except ValueError:
        pass
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid date target: {text!r}") from e


def date_range(target: Target, today: Optional[date] = None) -> tuple[Optional[str], Optional[str]]:
    """Inclusive (from, to) bounds as ISO strings; None means unbounded."""
    if isinstance(target, date):
        return target.isoformat(), target.isoformat()

    today = today or date.today()
    yesterday = today - timedelta(days=1)
    tomorrow = today + timedelta(days=1)

    bounds: dict[DateTarget, tuple[Optional[date], Optional[date]]] = {
        DateTarget.ALL: (None, None),
        DateTarget.PAST: (None, yesterday),
        DateTarget.FUTURE: (tomorrow, None),
        DateTarget.TODAY: (today, today),
        DateTarget.YESTERDAY: (yesterday, yesterday),
        DateTarget.LAST_WEEK: (today - timedelta(days=7), yesterday),
        DateTarget.LAST_MONTH: (today - timedelta(days=30), yesterday),
        DateTarget.NEXT_WEEK: (tomorrow, today + timedelta(days=7)),
        DateTarget.NEXT_MONTH: (tomorrow, today + timedelta(days=30)),
    }
    start, end = bounds[target]
    return (
        start.isoformat() if start else None,
        end.isoformat() if end else None,
    )


def single_day(target: Target, today: Optional[date] = None) -> str:
    """Resolve a target that names exactly one day, e.g. for a note's date."""
    start, end = date_range(target, today)
    if start is None or start != end:
        raise ValueError(f"Date target '{getattr(target, 'value', target)}' does not name a single day")
    return start

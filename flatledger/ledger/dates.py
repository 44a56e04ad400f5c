"""
Week and Due-Date Arithmetic

Rent weeks run Monday to Sunday and are due on Thursday. All helpers
here are pure functions on calendar dates.
"""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

import structlog


logger = structlog.get_logger(__name__)

THURSDAY = 3


def get_due_date(day: date, due_weekday: int = THURSDAY) -> date:
    """
    Get the due date governing a given day.

    If the day falls on or before the due weekday in its Monday-based
    week, that week's due day is returned. Otherwise the following
    week's. Equivalently, the first due weekday on or after the day.
    """
    return day + timedelta(days=(due_weekday - day.weekday()) % 7)


def week_start_of(day: date) -> date:
    """Monday of the day's week."""
    return day - timedelta(days=day.weekday())


def week_end_of(day: date) -> date:
    """Sunday of the day's week."""
    return week_start_of(day) + timedelta(days=6)


def iter_week_starts(start: date, end: date) -> Iterator[date]:
    """
    Yield every Monday from the week containing start through the week
    containing end.
    """
    current = week_start_of(start)
    while current <= end:
        yield current
        current += timedelta(days=7)


def payment_window(
    due_date: date,
    days_before: int = 7,
    days_after: int = 3,
) -> tuple[date, date]:
    """Inclusive range of payment dates that count towards a due date."""
    return (
        due_date - timedelta(days=days_before),
        due_date + timedelta(days=days_after),
    )


def parse_start_date(raw: Optional[str]) -> Optional[date]:
    """
    Parse a stored analysis start date.

    Accepts a plain ISO date or an ISO timestamp. Anything else is
    treated as unset.
    """
    if raw is None or not raw.strip():
        return None

    value = raw.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        logger.warning("invalid_analysis_start_date", raw_value=value)
        return None


def resolve_analysis_start_date(
    today: date,
    explicit: Optional[date] = None,
    configured: Optional[date] = None,
    lookback_days: int = 180,
) -> date:
    """
    Pick the start of the analysis window.

    Order of precedence: explicit argument, configured setting, then
    lookback_days before today.
    """
    if explicit is not None:
        return explicit
    if configured is not None:
        return configured
    return today - timedelta(days=lookback_days)

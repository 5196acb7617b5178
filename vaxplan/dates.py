"""Calendar helpers shared by the catalog, evaluators and engine.

All dates are ``datetime.date``; nothing in the engine carries a time of day,
so comparisons are always at day granularity.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Optional

import pandas as pd
from babel.dates import format_date


def resolve_today(today: Optional[date] = None) -> date:
    """Return ``today`` unchanged, or the current calendar date when None."""
    if today is None:
        return date.today()
    if isinstance(today, datetime):
        return today.date()
    return today


def parse_date(value: Any) -> Optional[date]:
    """Parse a calendar date, returning None for blank or unparseable input.

    Parameters
    ----------
    value : Any
        ``date``, ``datetime``, ``pd.Timestamp`` or a string such as
        ``"2021-06-01"`` or ``"2021-06-01T00:00:00Z"``.

    Returns
    -------
    Optional[date]
        The calendar date, or None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        # Numbers would be read as epoch offsets
        return None

    value = value.strip()
    if not value:
        return None
    # Keep the calendar date as written; a trailing time/zone must not shift it.
    value = value[:10] if len(value) > 10 and value[10] in "T " else value

    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month.

    Examples
    --------
    >>> add_months(date(2021, 1, 31), 1)
    datetime.date(2021, 2, 28)
    """
    if months == 0:
        return start
    return (pd.Timestamp(start) + pd.DateOffset(months=months)).date()


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def age_in_months(date_of_birth: Optional[date], today: date) -> int:
    """Completed months of age on ``today``.

    A month counts once ``add_months(date_of_birth, months)`` is on or before
    ``today``, so ages follow the same month-end clamping as due dates: a
    child born on 29 February is 12 months old on 28 February of the next
    year. A missing or future date of birth gives 0.
    """
    if date_of_birth is None or date_of_birth > today:
        return 0

    months = (today.year - date_of_birth.year) * 12 + (today.month - date_of_birth.month)
    if add_months(date_of_birth, months) > today:
        months -= 1
    return max(0, months)


def format_display_date(value: date, locale: str = "en_CA") -> str:
    """Format a date in the long, locale-aware style used for reminders.

    Examples
    --------
    >>> format_display_date(date(2025, 8, 31), "en_CA")
    'August 31, 2025'
    """
    return format_date(value, format="long", locale=locale)

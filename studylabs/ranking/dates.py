"""
Completion Date Parsing

Roster exports carry completion dates either as ISO (YYYY-MM-DD) or
day-first (DD/MM/YYYY, DD-MM-YYYY) strings. Anything else is treated as
"no date" rather than an error, so a bad cell never blocks ranking.
"""

from datetime import date, datetime, timedelta

import pandas as pd

from studylabs.utils import DAY_FIRST_DATE_RE, ISO_DATE_RE


def parse_completion_date(value) -> date | None:
    """
    Parse a raw completion-date cell into a calendar date.

    Args:
        value: Raw cell value (str, date, or missing)

    Returns:
        The UTC calendar date, or None if the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None

    text = str(value).strip()
    if not text:
        return None

    m_iso = ISO_DATE_RE.match(text)
    if m_iso:
        try:
            return date(*(int(g) for g in m_iso.groups()))
        except ValueError:
            return None

    m_day_first = DAY_FIRST_DATE_RE.match(text)
    if not m_day_first:
        return None
    day, month, year = (int(g) for g in m_day_first.groups())

    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None

    # Day overflow rolls into the next month: 31/02/2024 is 2024-03-02
    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except ValueError:
        return None


def normalize_completion_date(value) -> str | None:
    """Parse a raw cell and return it as an ISO YYYY-MM-DD string, or None."""
    parsed = parse_completion_date(value)
    return parsed.isoformat() if parsed else None

"""
Date parsing utilities.

Task dates are date-only; they are carried as midnight-UTC datetimes so
they compare cleanly against each other and against "today".
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def midnight(day: date) -> datetime:
    """Midnight UTC of the given day."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def format_date(dt: datetime) -> str:
    return dt.strftime(DATE_FORMAT)


def parse_iso_date(date_str: str) -> Optional[datetime]:
    """Parse a strict YYYY-MM-DD string; None if it is anything else."""
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", date_str):
        return None
    try:
        return midnight(datetime.strptime(date_str, DATE_FORMAT).date())
    except ValueError:
        return None


def parse_date(date_str: str, today: Optional[date] = None) -> Optional[datetime]:
    """
    Parse various date formats into a midnight-UTC datetime.

    Supports:
    - ISO 8601: "2026-02-15"
    - Natural language: "today", "tomorrow", "Friday", "next Monday"
    - Relative: "in 3 days", "in 2 weeks"
    - Periods: "this weekend" (Saturday, or today on a weekend), "next week" (Monday)
    - Prose prefixes: "before March 15", "by Friday", "due Friday"

    Returns:
        datetime or None if unparseable
    """
    if not date_str:
        return None

    date_str = date_str.strip()
    today = today or utc_now().date()
    lowered = date_str.lower()

    if lowered in ("today", "now"):
        return midnight(today)
    if lowered == "tomorrow":
        return midnight(today + timedelta(days=1))
    if lowered == "this weekend":
        if today.weekday() >= 5:
            return midnight(today)
        return midnight(today + timedelta(days=5 - today.weekday()))
    if lowered == "next week":
        return midnight(today + timedelta(days=7 - today.weekday()))

    for prefix in ("before ", "by ", "due ", "on "):
        if lowered.startswith(prefix):
            date_str = date_str[len(prefix):].strip()
            lowered = date_str.lower()

    iso = parse_iso_date(date_str)
    if iso:
        return iso

    for fmt in ("%B %d", "%b %d", "%m/%d", "%B %d, %Y", "%b %d, %Y"):
        try:
            parsed = datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
        if parsed.year == 1900:
            parsed = parsed.replace(year=today.year)
            if parsed < today:
                parsed = parsed.replace(year=today.year + 1)
        return midnight(parsed)

    day_names = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    is_next = lowered.startswith("next ")
    if is_next:
        lowered = lowered[5:].strip()

    for i, day_name in enumerate(day_names):
        if lowered == day_name:
            days_ahead = i - today.weekday()
            if days_ahead <= 0 or is_next:
                days_ahead += 7
            return midnight(today + timedelta(days=days_ahead))

    relative_match = re.match(r"in (\d+) (days?|weeks?)$", lowered)
    if relative_match:
        amount = int(relative_match.group(1))
        unit = relative_match.group(2)
        delta = timedelta(weeks=amount) if unit.startswith("week") else timedelta(days=amount)
        return midnight(today + delta)

    return None

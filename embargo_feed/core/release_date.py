"""Extraction of the date an embargoed article becomes freely available."""

from __future__ import annotations

from datetime import datetime, timezone
import re


# Matches "freely available on March 3, 2024" with loose whitespace
RELEASE_DATE_RE = re.compile(
    r"freely\s*available\s*on\s*(\w+)\s*(\d{1,2}),\s*(\d{4})",
    re.IGNORECASE,
)

_MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

# English names regardless of LC_TIME; full names and three-letter abbreviations
MONTHS: dict[str, int] = {}
for _number, _name in enumerate(_MONTH_NAMES, start=1):
    MONTHS[_name] = _number
    MONTHS[_name[:3]] = _number


def extract_release_date(text: str) -> datetime | None:
    """Find the release date announced in an article body.

    Args:
        text: Article body text (plain text or HTML)

    Returns:
        Midnight UTC of the announced date, or None if the phrase is absent
        or does not name a valid calendar date.

    Example:
        >>> extract_release_date("freely available on March 3, 2024")
        datetime.datetime(2024, 3, 3, 0, 0, tzinfo=datetime.timezone.utc)
    """
    match = RELEASE_DATE_RE.search(text)
    if not match:
        return None

    month_name, day, year = match.groups()
    month = MONTHS.get(month_name.lower())
    if month is None:
        return None
    try:
        return datetime(int(year), month, int(day), tzinfo=timezone.utc)
    except ValueError:
        return None

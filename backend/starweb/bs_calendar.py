# Overview: Bikram Sambat (BS) calendar helpers backed by nepali-datetime.

"""
Bikram Sambat calendar helpers.

Payroll, bonus and attendance periods are BS months. Every boundary is
computed through nepali_datetime; no month-length tables live here.

Months are 1-based throughout (1 = Baishakh, 4 = Shrawan, 12 = Chaitra).
"""

from __future__ import annotations

from datetime import date, timedelta

import nepali_datetime


BS_MONTH_NAMES = [
    "Baishakh", "Jestha", "Asar", "Shrawan", "Bhadra", "Ashwin",
    "Kartik", "Mangsir", "Poush", "Magh", "Falgun", "Chaitra",
]


class BSCalendarError(ValueError):
    """Raised when a BS year/month is outside the supported range."""
    pass


def _validate_month(bs_month: int) -> None:
    if not 1 <= int(bs_month) <= 12:
        raise BSCalendarError(f"BS month must be 1-12, got {bs_month}")


def to_bs(ad_date: date) -> nepali_datetime.date:
    """Convert an AD date to a nepali_datetime.date."""
    try:
        return nepali_datetime.date.from_datetime_date(ad_date)
    except (ValueError, OverflowError) as exc:
        raise BSCalendarError(f"Date out of BS range: {ad_date}") from exc


def to_bs_string(ad_date: date | None) -> str:
    """YYYY-MM-DD in BS, or "" when the date is missing or unconvertible."""
    if ad_date is None:
        return ""
    try:
        bs = to_bs(ad_date)
    except BSCalendarError:
        return ""
    return f"{bs.year:04d}-{bs.month:02d}-{bs.day:02d}"


def bs_to_ad(bs_year: int, bs_month: int, bs_day: int) -> date:
    _validate_month(bs_month)
    try:
        return nepali_datetime.date(int(bs_year), int(bs_month), int(bs_day)).to_datetime_date()
    except (ValueError, OverflowError) as exc:
        raise BSCalendarError(f"Invalid BS date: {bs_year}-{bs_month}-{bs_day}") from exc


def parse_bs_string(value: str) -> date:
    """Parse "YYYY-MM-DD" (BS) into the matching AD date."""
    try:
        y, m, d = (int(part) for part in value.strip().split("-"))
    except (AttributeError, ValueError) as exc:
        raise BSCalendarError(f"Invalid BS date string: {value!r}") from exc
    return bs_to_ad(y, m, d)


def month_bounds(bs_year: int, bs_month: int) -> tuple[date, date]:
    """
    AD dates of the first and last day of a BS month (inclusive).

    The last day is the day before the first day of the following BS month.
    """
    _validate_month(bs_month)
    first = bs_to_ad(bs_year, bs_month, 1)
    if bs_month == 12:
        next_first = bs_to_ad(bs_year + 1, 1, 1)
    else:
        next_first = bs_to_ad(bs_year, bs_month + 1, 1)
    return first, next_first - timedelta(days=1)


def days_in_month(bs_year: int, bs_month: int) -> int:
    first, last = month_bounds(bs_year, bs_month)
    return (last - first).days + 1


def is_on_or_after(ad_date: date, bs_year: int, bs_month: int) -> bool:
    """True when ad_date falls in or after the given BS month."""
    bs = to_bs(ad_date)
    return (bs.year, bs.month) >= (int(bs_year), int(bs_month))


def current_bs_period(today: date | None = None) -> tuple[int, int]:
    bs = to_bs(today or date.today())
    return bs.year, bs.month

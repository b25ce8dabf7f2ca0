# Overview: Service-layer operations for the annual bonus; tenure and qualifying-day eligibility.

import logging

from ..bs_calendar import month_bounds
from ..extensions import db
from ..models import AttendanceRecord, Employee
from ..time_utils import parse_iso_date, whole_years_between
from ..validation import ValidationError
from .settings_service import BONUS_MIN_PRESENT_DAYS_KEY, get_setting


logger = logging.getLogger(__name__)

DEFAULT_MIN_PRESENT_DAYS = 26
MIN_TENURE_YEARS = 1
QUALIFYING_STATUSES = ("Present", "Public Holiday", "Saturday", "EXTRAOK")


def _get(record, key):
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def evaluate_bonus(employee, attendance, *, month_end, min_present_days: int) -> dict:
    """
    Eligibility for one employee.

    attendance must already be restricted to the bonus month. Tenure is
    counted in whole years up to month_end (the AD date of the month's last day).
    """
    joining = _get(employee, "joining_date")
    joining = parse_iso_date(joining) if joining else None
    tenure_years = whole_years_between(joining, month_end) if joining else 0
    present_days = sum(1 for r in attendance if _get(r, "status") in QUALIFYING_STATUSES)
    eligible = tenure_years >= MIN_TENURE_YEARS and present_days >= min_present_days

    return {
        "employee_id": _get(employee, "id"),
        "employee_name": _get(employee, "name"),
        "joining_date": joining.isoformat() if joining else None,
        "tenure_years": tenure_years,
        "present_days": present_days,
        "eligible": eligible,
        "bonus_amount": float(_get(employee, "wage_amount") or 0) if eligible else 0.0,
    }


def resolve_min_present_days(value=None) -> int:
    if value is None or value == "":
        value = get_setting(BONUS_MIN_PRESENT_DAYS_KEY, DEFAULT_MIN_PRESENT_DAYS)
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError("min_present_days must be an integer")
    if days < 0:
        raise ValidationError("min_present_days must be >= 0")
    return days


def calculate_bonus(bs_year: int, bs_month: int, min_present_days=None) -> dict:
    """Bonus eligibility for every Working employee in a BS month."""
    threshold = resolve_min_present_days(min_present_days)
    first, last = month_bounds(bs_year, bs_month)

    records = (
        db.session.query(AttendanceRecord)
        .filter(AttendanceRecord.date >= first, AttendanceRecord.date <= last)
        .all()
    )
    by_name: dict[str, list] = {}
    for record in records:
        by_name.setdefault(record.employee_name, []).append(record)

    employees = db.session.query(Employee).filter(Employee.status == "Working").order_by(Employee.name).all()
    rows = [
        evaluate_bonus(e, by_name.get(e.name, []), month_end=last, min_present_days=threshold)
        for e in employees
    ]
    total = sum(r["bonus_amount"] for r in rows)
    logger.info(
        "Bonus for %s-%02d: %s of %s employees eligible",
        bs_year, bs_month, sum(1 for r in rows if r["eligible"]), len(rows),
    )
    return {
        "bs_year": bs_year,
        "bs_month": bs_month,
        "min_present_days": threshold,
        "month_end": last.isoformat(),
        "rows": rows,
        "total_bonus": total,
    }

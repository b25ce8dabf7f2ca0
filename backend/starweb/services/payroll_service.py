# Overview: Service-layer operations for payroll; monthly pay lines, punctuality and saved payroll runs.

from __future__ import annotations

import logging
from datetime import datetime

from ..bs_calendar import days_in_month, month_bounds
from ..extensions import db
from ..models import AttendanceRecord, Employee, PayrollRun
from ..validation import NotFoundError, ValidationError, to_number
from . import snapshot_service


logger = logging.getLogger(__name__)

PR_MONTH_DAYS = 30
BASE_DAY_HOURS = 8
OT_MULTIPLIER = 2
SALARY_TDS_RATE = 0.01
GRACE_MINUTES = 5

PRESENT_STATUSES = ("Present", "Saturday", "Public Holiday")
MISSED_PUNCH_STATUSES = ("C/I Miss", "C/O Miss")
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class PayrollNotFoundError(NotFoundError):
    pass


class PayrollValidationError(ValidationError):
    pass


def _get(record, key, default=None):
    if isinstance(record, dict):
        return record.get(key, default)
    return getattr(record, key, default)


def finalize_line(line: dict) -> dict:
    """
    Apply allowance, deduction, salary TDS and advance to a line that
    already carries total_pay. Mutates and returns line.
    """
    allowance = to_number(line.get("allowance"))
    advance = to_number(line.get("advance"))
    salary_total = to_number(line.get("total_pay")) + allowance - to_number(line.get("deduction"))
    tds = salary_total * SALARY_TDS_RATE
    gross = salary_total - tds
    line.update(
        allowance=allowance,
        advance=advance,
        salary_total=salary_total,
        tds=tds,
        gross=gross,
        net_payment=gross - advance,
    )
    return line


def calculate_payroll_line(employee, attendance) -> dict:
    """
    Pay figures for one employee over a month of attendance records.

    Monthly wages pay the full wage less absent days (wage / 30 each);
    hourly wages pay regular hours. Overtime is paid at double the hourly rate.
    """
    wage_basis = _get(employee, "wage_basis") or "Monthly"
    wage = to_number(_get(employee, "wage_amount"))

    total_hours = sum(to_number(_get(r, "gross_hours")) for r in attendance)
    regular_hours = sum(to_number(_get(r, "regular_hours")) for r in attendance)
    ot_hours = sum(to_number(_get(r, "overtime_hours")) for r in attendance)
    absent_days = sum(1 for r in attendance if _get(r, "status") == "Absent")

    if wage_basis == "Monthly":
        rate = wage / PR_MONTH_DAYS / BASE_DAY_HOURS
        regular_pay = wage
        deduction = wage / PR_MONTH_DAYS * absent_days
    else:
        rate = wage
        regular_pay = regular_hours * rate
        deduction = 0.0
    ot_pay = rate * ot_hours * OT_MULTIPLIER

    line = {
        "employee_id": _get(employee, "id"),
        "employee_name": _get(employee, "name"),
        "wage_basis": wage_basis,
        "total_hours": total_hours,
        "regular_hours": regular_hours,
        "ot_hours": ot_hours,
        "rate": rate,
        "regular_pay": regular_pay,
        "ot_pay": ot_pay,
        "total_pay": regular_pay + ot_pay,
        "absent_days": absent_days,
        "deduction": deduction,
        "allowance": 0.0,
        "advance": 0.0,
        "remark": "",
    }
    return finalize_line(line)


def _minutes_between(start: str | None, end: str | None) -> int | None:
    if not start or not end:
        return None
    try:
        a = datetime.strptime(start, "%H:%M")
        b = datetime.strptime(end, "%H:%M")
    except ValueError:
        return None
    return int((b - a).total_seconds() / 60)


def is_late(record) -> bool:
    diff = _minutes_between(_get(record, "on_duty"), _get(record, "clock_in"))
    return diff is not None and diff > GRACE_MINUTES


def left_early(record) -> bool:
    diff = _minutes_between(_get(record, "clock_out"), _get(record, "off_duty"))
    return diff is not None and diff > GRACE_MINUTES


def calculate_punctuality(employee, attendance, scheduled_days: int) -> dict:
    present_days = sum(
        1 for r in attendance
        if _get(r, "status") in PRESENT_STATUSES and to_number(_get(r, "gross_hours")) > 0
    ) + sum(1 for r in attendance if _get(r, "status") in MISSED_PUNCH_STATUSES)
    absent_days = sum(1 for r in attendance if _get(r, "status") == "Absent")
    late_arrivals = sum(1 for r in attendance if is_late(r))
    early_departures = sum(1 for r in attendance if left_early(r))
    on_time_days = present_days - late_arrivals - early_departures

    return {
        "employee_id": _get(employee, "id"),
        "employee_name": _get(employee, "name"),
        "scheduled_days": scheduled_days,
        "present_days": present_days,
        "absent_days": absent_days,
        "attendance_rate": present_days / scheduled_days * 100 if scheduled_days > 0 else 0.0,
        "late_arrivals": late_arrivals,
        "early_departures": early_departures,
        "on_time_days": on_time_days,
        "punctuality_score": on_time_days / present_days * 100 if present_days > 0 else 0.0,
    }


def day_of_week_summary(attendance) -> list[dict]:
    """Late arrivals and absences per AD weekday."""
    rows = []
    for index, name in enumerate(WEEKDAYS):
        day_records = [r for r in attendance if _get(r, "date") is not None and _get(r, "date").weekday() == index]
        late = sum(1 for r in day_records if is_late(r))
        absent = sum(1 for r in day_records if _get(r, "status") == "Absent")
        rows.append({"day": name, "late_arrivals": late, "absenteeism": absent, "incidents": late + absent})
    return rows


def _month_attendance(bs_year: int, bs_month: int) -> list[AttendanceRecord]:
    first, last = month_bounds(bs_year, bs_month)
    return (
        db.session.query(AttendanceRecord)
        .filter(AttendanceRecord.date >= first, AttendanceRecord.date <= last)
        .order_by(AttendanceRecord.date)
        .all()
    )


def _payroll_employees(attendance) -> list[Employee]:
    names = {r.employee_name for r in attendance}
    employees = db.session.query(Employee).order_by(Employee.name).all()
    return [e for e in employees if e.status == "Working" or e.name in names]


def generate_payroll(bs_year: int, bs_month: int) -> dict:
    """
    Build payroll lines, punctuality and weekday figures for a BS month
    from stored attendance. Nothing is persisted.
    """
    if not 1 <= int(bs_month) <= 12:
        raise PayrollValidationError("bs_month must be between 1 and 12")

    attendance = _month_attendance(bs_year, bs_month)
    scheduled_days = days_in_month(bs_year, bs_month)

    by_name: dict[str, list[AttendanceRecord]] = {}
    for record in attendance:
        by_name.setdefault(record.employee_name, []).append(record)

    payroll = []
    punctuality = []
    for employee in _payroll_employees(attendance):
        records = by_name.get(employee.name, [])
        payroll.append(calculate_payroll_line(employee, records))
        punctuality.append(calculate_punctuality(employee, records, scheduled_days))

    return {
        "bs_year": bs_year,
        "bs_month": bs_month,
        "scheduled_days": scheduled_days,
        "payroll": payroll,
        "punctuality": punctuality,
        "day_of_week": day_of_week_summary(attendance),
    }


def get_payroll_run(bs_year: int, bs_month: int) -> PayrollRun:
    run = db.session.query(PayrollRun).filter_by(bs_year=bs_year, bs_month=bs_month).one_or_none()
    if run is None:
        raise PayrollNotFoundError(f"No saved payroll for {bs_year}-{bs_month:02d}")
    return run


def list_payroll_runs() -> list[PayrollRun]:
    return db.session.query(PayrollRun).order_by(PayrollRun.bs_year.desc(), PayrollRun.bs_month.desc()).all()


def save_payroll_run(bs_year: int, bs_month: int, *, username: str | None = None) -> PayrollRun:
    """
    Generate and store the payroll for a month, replacing any saved run.

    Allowance, advance and remark already entered on a saved line are carried
    over by employee name.
    """
    generated = generate_payroll(bs_year, bs_month)["payroll"]

    run = db.session.query(PayrollRun).filter_by(bs_year=bs_year, bs_month=bs_month).one_or_none()
    if run is None:
        run = PayrollRun(bs_year=bs_year, bs_month=bs_month, lines=[], created_by=username)
        db.session.add(run)
    else:
        previous = {line.get("employee_name"): line for line in run.lines or []}
        for line in generated:
            old = previous.get(line["employee_name"])
            if old:
                line["allowance"] = old.get("allowance", 0.0)
                line["advance"] = old.get("advance", 0.0)
                line["remark"] = old.get("remark", "")
                finalize_line(line)
        run.touch(username)

    run.lines = generated
    snapshot_service.commit_and_publish("payroll_runs")
    logger.info("Saved payroll for %s-%02d (%s lines)", bs_year, bs_month, len(generated))
    return run


def update_payroll_line(
    bs_year: int,
    bs_month: int,
    *,
    employee_name: str,
    allowance=None,
    advance=None,
    remark: str | None = None,
    username: str | None = None,
) -> dict:
    run = get_payroll_run(bs_year, bs_month)
    lines = [dict(line) for line in run.lines or []]
    for line in lines:
        if line.get("employee_name") == employee_name:
            break
    else:
        raise PayrollNotFoundError(f"No payroll line for {employee_name}")

    if allowance is not None:
        line["allowance"] = allowance
    if advance is not None:
        line["advance"] = advance
    if remark is not None:
        line["remark"] = remark
    finalize_line(line)

    run.lines = lines
    run.touch(username)
    snapshot_service.commit_and_publish("payroll_runs")
    return line

# Overview: Service-layer operations for attendance; hour calculation, import upserts and month deletes.

"""
Attendance Service

Rows arrive already parsed (one dict per employee-day); reading the
spreadsheet itself happens elsewhere.

CALCULATION RULES:
- Status ABSENT or TRUE -> Absent; PUBLIC* -> Public Holiday; an AD Saturday
  -> Saturday. None of these accrue hours.
- Missing punches -> C/I Miss, C/O Miss, or Absent when both are missing
- Imported normal/OT hours are taken as-is
- From BS 2082 Shrawan onward, paid hours run from the scheduled start to
  the scheduled end, trimmed by lateness/early leave beyond a 5 minute grace
  in 30 minute blocks, minus the 12:00-13:00 break when the shift overlaps it
  and is longer than 4 hours. Regular = paid hours, OT = 0.
- Before that, regular = gross punched hours.
"""

import logging
import math
from datetime import date, datetime, timedelta

from ..bs_calendar import BSCalendarError, is_on_or_after, month_bounds, parse_bs_string, to_bs_string
from ..extensions import db
from ..models import AttendanceRecord, Employee
from ..time_utils import parse_iso_date
from ..validation import NotFoundError, ValidationError, to_number
from .batch_service import BatchWriter


logger = logging.getLogger(__name__)

GRACE_MINUTES = 5
PENALTY_BLOCK_MINUTES = 30
BREAK_START_HOUR = 12
BREAK_END_HOUR = 13
BREAK_MIN_SHIFT_HOURS = 4
NEW_RULE_FROM = (2082, 4)  # BS year, month (Shrawan)

ATTENDANCE_STATUSES = ("Present", "Absent", "Public Holiday", "Saturday", "C/I Miss", "C/O Miss", "EXTRAOK")

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%m/%d/%y")
_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p", "%I:%M%p")


class AttendanceNotFoundError(NotFoundError):
    pass


class AttendanceValidationError(ValidationError):
    pass


def clean_employee_name(name) -> str:
    if not isinstance(name, str):
        return ""
    return " ".join(name.split()).lower()


def parse_ad_date(value) -> date | None:
    """Loose AD date parse: ISO first, then common spreadsheet formats."""
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return parse_iso_date(value)
    text = str(value).strip()
    try:
        return parse_iso_date(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_time(value) -> str | None:
    """Normalize a punch/schedule time to "HH:MM"; blanks and "-" are None."""
    if value is None:
        return None
    text = str(value).strip()
    if text in ("", "-"):
        return None
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text.upper(), fmt).strftime("%H:%M")
        except ValueError:
            continue
    return None


def _at(day: date, hhmm: str) -> datetime:
    hours, minutes = (int(p) for p in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes)


def _minutes(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def _penalty(minutes_off: int) -> int:
    if minutes_off <= GRACE_MINUTES:
        return 0
    return math.ceil((minutes_off - GRACE_MINUTES) / PENALTY_BLOCK_MINUTES) * PENALTY_BLOCK_MINUTES


def _hours_after_break(start: datetime, end: datetime) -> float:
    total_h = _minutes(start, end) / 60.0
    if total_h <= 0:
        return 0.0
    break_start = start.replace(hour=BREAK_START_HOUR, minute=0)
    break_end = start.replace(hour=BREAK_END_HOUR, minute=0)
    overlap_start = max(start, break_start)
    overlap_end = min(end, break_end)
    overlap_h = _minutes(overlap_start, overlap_end) / 60.0 if overlap_end > overlap_start else 0.0
    if overlap_h > 0 and total_h > BREAK_MIN_SHIFT_HOURS:
        return total_h - overlap_h
    return total_h


def _uses_new_rule(ad: date) -> bool:
    try:
        return is_on_or_after(ad, *NEW_RULE_FROM)
    except BSCalendarError:
        return False


def calculate_row(row: dict) -> dict:
    """Calculate status and hours for one parsed attendance row."""
    ad = parse_ad_date(row.get("date"))
    if ad is None and row.get("bs_date"):
        try:
            ad = parse_bs_string(str(row["bs_date"]))
        except BSCalendarError:
            logger.warning("Could not parse BS date %r", row.get("bs_date"))

    raw_status = str(row.get("status") or "").strip().upper()
    is_absent = raw_status in ("ABSENT", "TRUE")
    is_public = raw_status.startswith("PUBLIC")
    is_saturday = ad is not None and ad.weekday() == 5

    on_duty = parse_time(row.get("on_duty"))
    off_duty = parse_time(row.get("off_duty"))
    clock_in = parse_time(row.get("clock_in"))
    clock_out = parse_time(row.get("clock_out"))

    gross = regular = ot = 0.0
    remarks = ""

    if ad is None:
        remarks = "Missing or invalid date"
    elif row.get("normal_hours") not in (None, "") and row.get("ot_hours") not in (None, ""):
        regular = to_number(row.get("normal_hours"))
        ot = to_number(row.get("ot_hours"))
        gross = regular + ot
        remarks = "Used imported hours"
    elif is_absent or is_public or is_saturday:
        pass
    elif not clock_in or not clock_out:
        if not clock_in and not clock_out:
            remarks = "Missing punches"
        else:
            remarks = "C/I Miss" if not clock_in else "C/O Miss"
    else:
        act_in = _at(ad, clock_in)
        act_out = _at(ad, clock_out)
        if act_in > act_out:
            act_out += timedelta(days=1)
        gross = max(0.0, _minutes(act_in, act_out) / 60.0)

        if _uses_new_rule(ad):
            if not on_duty or not off_duty:
                remarks = "Missing schedule"
            else:
                sched_in = _at(ad, on_duty)
                sched_out = _at(ad, off_duty)
                late = max(0, _minutes(sched_in, act_in))
                early = max(0, _minutes(act_out, sched_out))
                effective_in = sched_in + timedelta(minutes=_penalty(late))
                effective_out = sched_out - timedelta(minutes=_penalty(early))
                paid = _hours_after_break(effective_in, effective_out) if effective_out > effective_in else 0.0
                regular = max(0.0, paid)
                notes = []
                if late > 0:
                    notes.append(f"Late by {late}m")
                if early > 0:
                    notes.append(f"Left early by {early}m")
                remarks = "; ".join(notes)
        else:
            regular = gross

    if is_absent:
        status = "Absent"
    elif is_public:
        status = "Public Holiday"
    elif is_saturday:
        status = "Saturday"
    elif not clock_in and clock_out:
        status = "C/I Miss"
    elif clock_in and not clock_out:
        status = "C/O Miss"
    elif not clock_in and not clock_out:
        status = "Absent"
    else:
        status = "Present"

    return {
        "employee_name": str(row.get("employee_name") or "").strip(),
        "date": ad.isoformat() if ad else None,
        "bs_date": to_bs_string(ad) if ad else (row.get("bs_date") or ""),
        "is_saturday": is_saturday,
        "on_duty": on_duty,
        "off_duty": off_duty,
        "clock_in": clock_in,
        "clock_out": clock_out,
        "status": status,
        "gross_hours": round(gross, 2),
        "regular_hours": round(regular, 2),
        "overtime_hours": round(ot, 2),
        "remarks": remarks,
        "source_sheet": row.get("source_sheet"),
    }


def calculate_attendance(rows) -> list[dict]:
    return [calculate_row(row or {}) for row in rows or ()]


# -- Persistence --------------------------------------------------------------

def _apply(record: AttendanceRecord, calc: dict) -> None:
    record.bs_date = calc["bs_date"]
    record.on_duty = calc["on_duty"]
    record.off_duty = calc["off_duty"]
    record.clock_in = calc["clock_in"]
    record.clock_out = calc["clock_out"]
    record.status = calc["status"]
    record.gross_hours = calc["gross_hours"]
    record.regular_hours = calc["regular_hours"]
    record.overtime_hours = calc["overtime_hours"]
    record.remarks = calc["remarks"] or None
    record.source_sheet = calc["source_sheet"]


def import_attendance(rows, *, username: str | None = None) -> dict:
    """
    Upsert calculated rows by (employee name, date).

    Names are matched case/space-insensitively against existing employees;
    unknown names become new Monthly employees with wage 0.
    """
    calculated = calculate_attendance(rows)

    employees = {clean_employee_name(e.name): e.name for e in db.session.query(Employee).all()}
    dates = {parse_iso_date(c["date"]) for c in calculated if c["date"]}
    existing = {}
    if dates:
        for rec in db.session.query(AttendanceRecord).filter(AttendanceRecord.date.in_(dates)).all():
            existing[(rec.employee_name, rec.date)] = rec

    created_employees: list[str] = []
    inserted = updated = skipped = 0

    with BatchWriter() as batch:
        for calc in calculated:
            name = calc["employee_name"]
            if not name or not calc["date"]:
                skipped += 1
                continue

            key_name = clean_employee_name(name)
            canonical = employees.get(key_name)
            if canonical is None:
                canonical = name
                employees[key_name] = name
                created_employees.append(name)
                batch.add(Employee(
                    name=name,
                    wage_basis="Monthly",
                    wage_amount=0.0,
                    status="Working",
                    created_by=username,
                ))

            day = parse_iso_date(calc["date"])
            record = existing.get((canonical, day))
            if record is None:
                record = AttendanceRecord(employee_name=canonical, date=day, created_by=username)
                existing[(canonical, day)] = record
                inserted += 1
                _apply(record, calc)
                record.imported_by = username
                batch.add(record)
            else:
                updated += 1
                _apply(record, calc)
                record.imported_by = username
                record.touch(username)
                batch.update(record)

    logger.info(
        "Attendance import: %s inserted, %s updated, %s skipped, %s new employees",
        inserted, updated, skipped, len(created_employees),
    )
    return {
        "inserted": inserted,
        "updated": updated,
        "skipped": skipped,
        "created_employees": created_employees,
    }


def records_for_month(bs_year: int, bs_month: int, employee_name: str | None = None) -> list[AttendanceRecord]:
    first, last = month_bounds(bs_year, bs_month)
    query = db.session.query(AttendanceRecord).filter(
        AttendanceRecord.date >= first,
        AttendanceRecord.date <= last,
    )
    if employee_name:
        query = query.filter(AttendanceRecord.employee_name == employee_name)
    return query.order_by(AttendanceRecord.date, AttendanceRecord.employee_name).all()


def delete_month(bs_year: int, bs_month: int) -> int:
    """Remove every attendance record in a BS month through the batch writer."""
    records = records_for_month(bs_year, bs_month)
    with BatchWriter() as batch:
        for record in records:
            batch.delete(record)
    logger.info("Deleted %s attendance records for %s-%02d", len(records), bs_year, bs_month)
    return len(records)


def get_record(record_id: str) -> AttendanceRecord:
    record = db.session.get(AttendanceRecord, record_id)
    if record is None:
        raise AttendanceNotFoundError("Attendance record not found")
    return record


def update_record(record_id: str, *, payload: dict, username: str | None = None) -> AttendanceRecord:
    """
    Edit punches/status of one record and recalculate its hours.

    An explicit status in the payload wins over the calculated one.
    """
    record = get_record(record_id)
    allowed = {"on_duty", "off_duty", "clock_in", "clock_out", "status", "remarks"}
    unknown = set(payload or {}) - allowed
    if unknown:
        raise AttendanceValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    row = {
        "employee_name": record.employee_name,
        "date": record.date,
        "on_duty": payload.get("on_duty", record.on_duty),
        "off_duty": payload.get("off_duty", record.off_duty),
        "clock_in": payload.get("clock_in", record.clock_in),
        "clock_out": payload.get("clock_out", record.clock_out),
        "source_sheet": record.source_sheet,
    }
    explicit_status = payload.get("status")
    if explicit_status and explicit_status not in ATTENDANCE_STATUSES:
        raise AttendanceValidationError(f"status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
    if explicit_status in ("Absent", "Public Holiday"):
        row["status"] = "ABSENT" if explicit_status == "Absent" else "PUBLIC"

    calc = calculate_row(row)
    _apply(record, calc)
    if explicit_status:
        record.status = explicit_status
    if "remarks" in payload:
        record.remarks = payload.get("remarks")
    record.touch(username)

    with BatchWriter() as batch:
        batch.update(record)
    return record

"""
Attendance calculation and import tests.

Dates are chosen on either side of the BS 2082 Shrawan rule change:
- 2024-09-02 (Monday, BS 2081) uses punched hours
- 2025-09-01 (Monday, BS 2082 Bhadra) uses scheduled hours with penalties
"""

from datetime import date

import pytest

from starweb.bs_calendar import to_bs
from starweb.extensions import db
from starweb.models import AttendanceRecord, Employee
from starweb.services import attendance_service, reference_service
from starweb.services.attendance_service import AttendanceNotFoundError, AttendanceValidationError


OLD_RULE_DAY = "2024-09-02"
NEW_RULE_DAY = "2025-09-01"
SATURDAY = "2025-09-06"


def _row(**overrides):
    data = {
        "employee_name": "Ram Bahadur",
        "date": NEW_RULE_DAY,
        "on_duty": "09:00",
        "off_duty": "17:00",
        "clock_in": "09:00",
        "clock_out": "17:00",
    }
    data.update(overrides)
    return data


def _period(day: str):
    bs = to_bs(date.fromisoformat(day))
    return bs.year, bs.month


# =============================================================================
# PARSING
# =============================================================================


class TestParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("09:05", "09:05"),
        ("9:05 AM", "09:05"),
        ("5:30 pm", "17:30"),
        ("17:30:00", "17:30"),
        ("-", None),
        ("", None),
        (None, None),
        ("later", None),
    ])
    def test_parse_time(self, raw, expected):
        assert attendance_service.parse_time(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("2025-09-01", date(2025, 9, 1)),
        ("09/01/2025", date(2025, 9, 1)),
        (date(2025, 9, 1), date(2025, 9, 1)),
        ("not a date", None),
        ("", None),
    ])
    def test_parse_ad_date(self, raw, expected):
        assert attendance_service.parse_ad_date(raw) == expected

    def test_clean_employee_name(self):
        assert attendance_service.clean_employee_name("  Ram   BAHADUR ") == "ram bahadur"
        assert attendance_service.clean_employee_name(None) == ""


# =============================================================================
# CALCULATION
# =============================================================================


class TestCalculateRow:

    def test_before_rule_change_uses_punched_hours(self):
        calc = attendance_service.calculate_row(_row(date=OLD_RULE_DAY, clock_in="09:00", clock_out="17:30"))

        assert calc["status"] == "Present"
        assert calc["gross_hours"] == 8.5
        assert calc["regular_hours"] == 8.5
        assert calc["overtime_hours"] == 0
        assert calc["bs_date"].startswith("2081-")

    def test_on_time_shift_loses_the_break(self):
        calc = attendance_service.calculate_row(_row())

        assert calc["gross_hours"] == 8.0
        assert calc["regular_hours"] == 7.0
        assert calc["remarks"] == ""

    def test_lateness_within_grace_is_not_penalised(self):
        calc = attendance_service.calculate_row(_row(clock_in="09:03"))

        assert calc["gross_hours"] == 7.95
        assert calc["regular_hours"] == 7.0
        assert calc["remarks"] == "Late by 3m"

    def test_lateness_beyond_grace_costs_a_half_hour_block(self):
        calc = attendance_service.calculate_row(_row(clock_in="09:20"))

        assert calc["regular_hours"] == 6.5
        assert calc["remarks"] == "Late by 20m"

    def test_early_leave_rounds_up_to_blocks(self):
        calc = attendance_service.calculate_row(_row(clock_out="16:20"))

        assert calc["regular_hours"] == 6.0
        assert calc["remarks"] == "Left early by 40m"

    def test_short_shift_keeps_the_break(self):
        calc = attendance_service.calculate_row(_row(
            on_duty="10:00", off_duty="13:30", clock_in="10:00", clock_out="13:30",
        ))

        assert calc["regular_hours"] == 3.5

    def test_missing_schedule_pays_nothing(self):
        calc = attendance_service.calculate_row(_row(on_duty="", off_duty=""))

        assert calc["status"] == "Present"
        assert calc["gross_hours"] == 8.0
        assert calc["regular_hours"] == 0
        assert calc["remarks"] == "Missing schedule"

    def test_overnight_shift(self):
        calc = attendance_service.calculate_row(_row(date=OLD_RULE_DAY, clock_in="22:00", clock_out="06:00"))

        assert calc["gross_hours"] == 8.0

    @pytest.mark.parametrize("raw_status,expected", [
        ("ABSENT", "Absent"),
        ("true", "Absent"),
        ("Public Holiday", "Public Holiday"),
        ("PUBLIC", "Public Holiday"),
    ])
    def test_status_markers_accrue_no_hours(self, raw_status, expected):
        calc = attendance_service.calculate_row(_row(status=raw_status))

        assert calc["status"] == expected
        assert calc["gross_hours"] == 0
        assert calc["regular_hours"] == 0

    def test_saturday(self):
        calc = attendance_service.calculate_row(_row(date=SATURDAY))

        assert calc["is_saturday"] is True
        assert calc["status"] == "Saturday"
        assert calc["regular_hours"] == 0

    def test_missing_clock_in(self):
        calc = attendance_service.calculate_row(_row(clock_in="-"))

        assert calc["status"] == "C/I Miss"
        assert calc["remarks"] == "C/I Miss"
        assert calc["regular_hours"] == 0

    def test_missing_clock_out(self):
        calc = attendance_service.calculate_row(_row(clock_out=None))

        assert calc["status"] == "C/O Miss"
        assert calc["remarks"] == "C/O Miss"

    def test_missing_both_punches(self):
        calc = attendance_service.calculate_row(_row(clock_in="", clock_out=""))

        assert calc["status"] == "Absent"
        assert calc["remarks"] == "Missing punches"

    def test_imported_hours_are_used_as_is(self):
        calc = attendance_service.calculate_row(_row(normal_hours="8", ot_hours=2))

        assert calc["regular_hours"] == 8
        assert calc["overtime_hours"] == 2
        assert calc["gross_hours"] == 10
        assert calc["remarks"] == "Used imported hours"

    def test_invalid_date(self):
        calc = attendance_service.calculate_row(_row(date="someday"))

        assert calc["date"] is None
        assert calc["remarks"] == "Missing or invalid date"

    def test_calculate_attendance_maps_rows(self):
        results = attendance_service.calculate_attendance([_row(), _row(clock_in="09:20")])
        assert [r["regular_hours"] for r in results] == [7.0, 6.5]


# =============================================================================
# IMPORT AND EDITS
# =============================================================================


class TestImport:

    def test_matches_existing_employee_and_creates_unknown(self, db_session):
        reference_service.create_item("employees", payload={"name": "Ram Bahadur", "wage_basis": "Monthly"})

        result = attendance_service.import_attendance([
            _row(employee_name="ram   bahadur"),
            _row(employee_name="Sita Kumari"),
            _row(employee_name=""),
        ], username="hr")

        assert result == {
            "inserted": 2,
            "updated": 0,
            "skipped": 1,
            "created_employees": ["Sita Kumari"],
        }
        sita = db_session.query(Employee).filter_by(name="Sita Kumari").one()
        assert (sita.wage_basis, sita.wage_amount, sita.status) == ("Monthly", 0.0, "Working")

        names = sorted(r.employee_name for r in db_session.query(AttendanceRecord).all())
        assert names == ["Ram Bahadur", "Sita Kumari"]

    def test_reimport_updates_in_place(self, db_session):
        attendance_service.import_attendance([_row()])

        result = attendance_service.import_attendance([_row(clock_in="09:20")], username="hr")

        assert result["inserted"] == 0
        assert result["updated"] == 1
        record = db_session.query(AttendanceRecord).one()
        assert record.regular_hours == 6.5
        assert record.imported_by == "hr"

    def test_records_for_month_and_delete(self, db_session):
        attendance_service.import_attendance([
            _row(),
            _row(employee_name="Sita Kumari"),
            _row(date=OLD_RULE_DAY),
        ])
        year, month = _period(NEW_RULE_DAY)

        records = attendance_service.records_for_month(year, month)
        assert len(records) == 2
        assert len(attendance_service.records_for_month(year, month, "Sita Kumari")) == 1

        assert attendance_service.delete_month(year, month) == 2
        assert db_session.query(AttendanceRecord).count() == 1


class TestRecordEdits:

    def _record(self):
        attendance_service.import_attendance([_row(clock_in="-")])
        return db.session.query(AttendanceRecord).one()

    def test_fixing_a_missed_punch_recalculates(self, db_session):
        record = self._record()
        assert record.status == "C/I Miss"

        record = attendance_service.update_record(record.id, payload={"clock_in": "09:00"}, username="hr")

        assert record.status == "Present"
        assert record.regular_hours == 7.0
        assert record.last_modified_by == "hr"

    def test_explicit_status_wins(self, db_session):
        record = self._record()

        record = attendance_service.update_record(record.id, payload={"status": "EXTRAOK"})

        assert record.status == "EXTRAOK"

    def test_marking_absent_clears_hours(self, db_session):
        record = self._record()
        record = attendance_service.update_record(record.id, payload={"clock_in": "09:00", "status": "Absent"})

        assert record.status == "Absent"
        assert record.regular_hours == 0

    def test_rejects_unknown_fields_and_statuses(self, db_session):
        record = self._record()
        with pytest.raises(AttendanceValidationError):
            attendance_service.update_record(record.id, payload={"regular_hours": 12})
        with pytest.raises(AttendanceValidationError):
            attendance_service.update_record(record.id, payload={"status": "Sick"})

    def test_missing_record(self, db_session):
        with pytest.raises(AttendanceNotFoundError):
            attendance_service.get_record("missing")

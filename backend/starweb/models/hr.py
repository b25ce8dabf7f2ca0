from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from .base import AuditMixin


class Employee(AuditMixin, db.Model):
    __tablename__ = "employees"

    name = db.Column(db.String(255), nullable=False, index=True)
    wage_basis = db.Column(db.String(16), nullable=False, default="Monthly")  # Monthly | Hourly
    wage_amount = db.Column(db.Float, nullable=False, default=0.0)
    joining_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Working")  # Working | Left

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "name": self.name,
            "wage_basis": self.wage_basis,
            "wage_amount": self.wage_amount,
            "joining_date": to_iso_date(self.joining_date),
            "status": self.status,
        }


class AttendanceRecord(AuditMixin, db.Model):
    """
    One employee-day of attendance. Keyed by (employee_name, date) on import.
    """
    __tablename__ = "attendance_records"
    __table_args__ = (
        db.UniqueConstraint("employee_name", "date", name="uq_attendance_employee_date"),
        db.Index("ix_attendance_bs_date", "bs_date"),
    )

    date = db.Column(db.Date, nullable=False, index=True)
    bs_date = db.Column(db.String(10), nullable=True)
    employee_name = db.Column(db.String(255), nullable=False)

    on_duty = db.Column(db.String(8), nullable=True)
    off_duty = db.Column(db.String(8), nullable=True)
    clock_in = db.Column(db.String(8), nullable=True)
    clock_out = db.Column(db.String(8), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="Present")
    gross_hours = db.Column(db.Float, nullable=False, default=0.0)
    regular_hours = db.Column(db.Float, nullable=False, default=0.0)
    overtime_hours = db.Column(db.Float, nullable=False, default=0.0)
    remarks = db.Column(db.Text, nullable=True)
    source_sheet = db.Column(db.String(128), nullable=True)
    imported_by = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "date": to_iso_date(self.date),
            "bs_date": self.bs_date,
            "employee_name": self.employee_name,
            "on_duty": self.on_duty,
            "off_duty": self.off_duty,
            "clock_in": self.clock_in,
            "clock_out": self.clock_out,
            "status": self.status,
            "gross_hours": self.gross_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "remarks": self.remarks,
            "source_sheet": self.source_sheet,
            "imported_by": self.imported_by,
        }


class PayrollRun(AuditMixin, db.Model):
    """Saved payroll for one BS month; lines are per-employee computed rows."""
    __tablename__ = "payroll_runs"
    __table_args__ = (
        db.UniqueConstraint("bs_year", "bs_month", name="uq_payroll_runs_period"),
    )

    bs_year = db.Column(db.Integer, nullable=False)
    bs_month = db.Column(db.Integer, nullable=False)  # 1-12
    lines = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "bs_year": self.bs_year,
            "bs_month": self.bs_month,
            "lines": self.lines or [],
        }

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from .base import AuditMixin


class Product(AuditMixin, db.Model):
    """Packaging product with its test specification (dimension, ply, gsm, ...)."""
    __tablename__ = "products"

    name = db.Column(db.String(255), nullable=False)
    material_code = db.Column(db.String(64), nullable=True, index=True)
    company_name = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    specification = db.Column(db.JSON, nullable=False, default=dict)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "name": self.name,
            "material_code": self.material_code,
            "company_name": self.company_name,
            "address": self.address,
            "specification": self.specification or {},
        }


class Report(AuditMixin, db.Model):
    """
    Test report. product holds a snapshot of the product at report time so
    later product edits never rewrite issued reports.
    """
    __tablename__ = "reports"

    serial_number = db.Column(db.String(64), nullable=False, index=True)
    tax_invoice_number = db.Column(db.String(64), nullable=True)
    challan_number = db.Column(db.String(64), nullable=True)
    quantity = db.Column(db.String(64), nullable=True)
    product = db.Column(db.JSON, nullable=False, default=dict)
    date = db.Column(db.Date, nullable=False)
    test_data = db.Column(db.JSON, nullable=False, default=dict)  # {field: {value, remark}}
    print_log = db.Column(db.JSON, nullable=False, default=list)  # [{date, printed_by}]
    chart_type = db.Column(db.String(32), nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "serial_number": self.serial_number,
            "tax_invoice_number": self.tax_invoice_number,
            "challan_number": self.challan_number,
            "quantity": self.quantity,
            "product": self.product or {},
            "date": to_iso_date(self.date),
            "test_data": self.test_data or {},
            "print_log": self.print_log or [],
            "chart_type": self.chart_type,
        }


class CostReport(AuditMixin, db.Model):
    """
    Saved box costing. items keep the inputs and computed figures of each box
    as they were when the report was made.
    """
    __tablename__ = "cost_reports"

    report_number = db.Column(db.String(64), nullable=False, index=True)
    report_date = db.Column(db.Date, nullable=False)
    party_id = db.Column(db.String(32), nullable=True, index=True)
    party_name = db.Column(db.String(255), nullable=True)
    kraft_paper_cost = db.Column(db.Float, nullable=False, default=0.0)  # per kg
    virgin_paper_cost = db.Column(db.Float, nullable=False, default=0.0)  # per kg
    conversion_cost = db.Column(db.Float, nullable=False, default=0.0)
    items = db.Column(db.JSON, nullable=False, default=list)
    total_cost = db.Column(db.Float, nullable=False, default=0.0)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "report_number": self.report_number,
            "report_date": to_iso_date(self.report_date),
            "party_id": self.party_id,
            "party_name": self.party_name,
            "kraft_paper_cost": self.kraft_paper_cost,
            "virgin_paper_cost": self.virgin_paper_cost,
            "conversion_cost": self.conversion_cost,
            "items": self.items or [],
            "total_cost": self.total_cost,
        }

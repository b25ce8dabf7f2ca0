from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from .base import AuditMixin


class RawMaterial(AuditMixin, db.Model):
    __tablename__ = "raw_materials"

    type = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    size = db.Column(db.String(64), nullable=True)
    gsm = db.Column(db.String(32), nullable=True)
    bf = db.Column(db.String(32), nullable=True)
    units = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "type": self.type,
            "name": self.name,
            "size": self.size,
            "gsm": self.gsm,
            "bf": self.bf,
            "units": self.units or [],
        }


class UnitOfMeasure(AuditMixin, db.Model):
    __tablename__ = "units_of_measure"

    name = db.Column(db.String(64), nullable=False)
    abbreviation = db.Column(db.String(16), nullable=False)

    def to_dict(self) -> dict:
        return {**self.audit_dict(), "name": self.name, "abbreviation": self.abbreviation}


class PurchaseOrder(AuditMixin, db.Model):
    """
    Purchase order with amendment and version history.

    APPEND-ONLY: versions holds the pre-update snapshot of every edit and is
    never trimmed. amendments holds the human-readable change notes.
    """
    __tablename__ = "purchase_orders"

    po_number = db.Column(db.String(64), nullable=False, index=True)
    po_date = db.Column(db.Date, nullable=False)
    company_name = db.Column(db.String(255), nullable=False)
    company_address = db.Column(db.Text, nullable=True)
    pan_number = db.Column(db.String(32), nullable=True)

    items = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(16), nullable=False, default="Ordered")  # Ordered | Amended | Delivered | Canceled
    delivery_date = db.Column(db.Date, nullable=True)

    amendments = db.Column(db.JSON, nullable=False, default=list)  # [{date, remarks, amended_by}]
    versions = db.Column(db.JSON, nullable=False, default=list)    # [{id, timestamp, edited_by, snapshot}]

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "po_number": self.po_number,
            "po_date": to_iso_date(self.po_date),
            "company_name": self.company_name,
            "company_address": self.company_address,
            "pan_number": self.pan_number,
            "items": self.items or [],
            "status": self.status,
            "delivery_date": to_iso_date(self.delivery_date),
            "amendments": self.amendments or [],
            "versions": self.versions or [],
        }

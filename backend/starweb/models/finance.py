from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from .base import AuditMixin


class TdsCalculation(AuditMixin, db.Model):
    __tablename__ = "tds_calculations"

    voucher_no = db.Column(db.String(64), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    party_name = db.Column(db.String(255), nullable=True)
    taxable_amount = db.Column(db.Float, nullable=False, default=0.0)
    tds_rate = db.Column(db.Float, nullable=False, default=1.5)  # percent
    tds_amount = db.Column(db.Float, nullable=False, default=0.0)
    vat_amount = db.Column(db.Float, nullable=False, default=0.0)
    net_payable = db.Column(db.Float, nullable=False, default=0.0)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "voucher_no": self.voucher_no,
            "date": to_iso_date(self.date),
            "party_name": self.party_name,
            "taxable_amount": self.taxable_amount,
            "tds_rate": self.tds_rate,
            "tds_amount": self.tds_amount,
            "vat_amount": self.vat_amount,
            "net_payable": self.net_payable,
        }


class Cheque(AuditMixin, db.Model):
    __tablename__ = "cheques"

    voucher_no = db.Column(db.String(64), nullable=True)
    payment_date = db.Column(db.Date, nullable=True)
    invoice_date = db.Column(db.Date, nullable=True)
    invoice_number = db.Column(db.String(64), nullable=True)
    party_name = db.Column(db.String(255), nullable=True)
    payee_name = db.Column(db.String(255), nullable=True)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    amount_in_words = db.Column(db.Text, nullable=True)
    splits = db.Column(db.JSON, nullable=False, default=list)  # [{cheque_date, amount, cheque_number, remarks}]

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "voucher_no": self.voucher_no,
            "payment_date": to_iso_date(self.payment_date),
            "invoice_date": to_iso_date(self.invoice_date),
            "invoice_number": self.invoice_number,
            "party_name": self.party_name,
            "payee_name": self.payee_name,
            "amount": self.amount,
            "amount_in_words": self.amount_in_words,
            "splits": self.splits or [],
        }


class EstimateInvoice(AuditMixin, db.Model):
    __tablename__ = "estimate_invoices"

    invoice_number = db.Column(db.String(64), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    party_name = db.Column(db.String(255), nullable=True)
    items = db.Column(db.JSON, nullable=False, default=list)  # [{product_name, quantity, rate, amount}]
    gross_total = db.Column(db.Float, nullable=False, default=0.0)
    vat_total = db.Column(db.Float, nullable=False, default=0.0)
    net_total = db.Column(db.Float, nullable=False, default=0.0)
    amount_in_words = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "invoice_number": self.invoice_number,
            "date": to_iso_date(self.date),
            "party_name": self.party_name,
            "items": self.items or [],
            "gross_total": self.gross_total,
            "vat_total": self.vat_total,
            "net_total": self.net_total,
            "amount_in_words": self.amount_in_words,
        }

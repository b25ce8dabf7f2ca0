from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from .base import AuditMixin


class Party(AuditMixin, db.Model):
    """Vendors and clients of the trucking business."""
    __tablename__ = "parties"

    name = db.Column(db.String(255), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False, default="Vendor")  # Vendor | Client | Both
    address = db.Column(db.Text, nullable=True)
    pan_number = db.Column(db.String(32), nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "name": self.name,
            "type": self.type,
            "address": self.address,
            "pan_number": self.pan_number,
        }


class Account(AuditMixin, db.Model):
    __tablename__ = "accounts"

    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="Cash")  # Cash | Bank
    bank_name = db.Column(db.String(255), nullable=True)
    account_number = db.Column(db.String(64), nullable=True)
    branch = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "name": self.name,
            "type": self.type,
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "branch": self.branch,
        }


class Vehicle(AuditMixin, db.Model):
    __tablename__ = "vehicles"

    name = db.Column(db.String(255), nullable=False)
    make = db.Column(db.String(128), nullable=True)
    model = db.Column(db.String(128), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    vin = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="Active")  # Active | In Maintenance | Decommissioned
    driver_id = db.Column(db.String(32), nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "name": self.name,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "vin": self.vin,
            "status": self.status,
            "driver_id": self.driver_id,
        }


class Driver(AuditMixin, db.Model):
    __tablename__ = "drivers"

    name = db.Column(db.String(255), nullable=False)
    nickname = db.Column(db.String(128), nullable=True)
    license_number = db.Column(db.String(64), nullable=True)
    contact_number = db.Column(db.String(32), nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "name": self.name,
            "nickname": self.nickname,
            "license_number": self.license_number,
            "contact_number": self.contact_number,
            "date_of_birth": to_iso_date(self.date_of_birth),
            "photo_url": self.photo_url,
        }


class Destination(AuditMixin, db.Model):
    __tablename__ = "destinations"

    name = db.Column(db.String(255), nullable=False)

    def to_dict(self) -> dict:
        return {**self.audit_dict(), "name": self.name}


class PolicyOrMembership(AuditMixin, db.Model):
    """Insurance policies and association memberships for vehicles or drivers."""
    __tablename__ = "policies"

    type = db.Column(db.String(64), nullable=False)  # e.g. Insurance, Membership
    provider = db.Column(db.String(255), nullable=False)
    policy_number = db.Column(db.String(128), nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    cost = db.Column(db.Float, nullable=False, default=0.0)
    member_id = db.Column(db.String(32), nullable=True)
    member_type = db.Column(db.String(16), nullable=True)  # Vehicle | Driver

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "type": self.type,
            "provider": self.provider,
            "policy_number": self.policy_number,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "cost": self.cost,
            "member_id": self.member_id,
            "member_type": self.member_type,
        }


class Transaction(AuditMixin, db.Model):
    """
    A single Purchase, Sales, Payment or Receipt posting against a party.

    Trip-derived rows carry trip_id/trip_number; voucher rows share voucher_id.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_party_date", "party_id", "date"),
        db.Index("ix_transactions_voucher", "voucher_id"),
        db.Index("ix_transactions_trip", "trip_id"),
    )

    type = db.Column(db.String(16), nullable=False)  # Purchase | Sales | Payment | Receipt
    date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    description = db.Column(db.Text, nullable=True)

    vehicle_id = db.Column(db.String(32), nullable=True)
    party_id = db.Column(db.String(32), nullable=True)
    account_id = db.Column(db.String(32), nullable=True)
    voucher_id = db.Column(db.String(32), nullable=True)
    voucher_no = db.Column(db.String(64), nullable=True)
    trip_id = db.Column(db.String(32), nullable=True)
    trip_number = db.Column(db.String(64), nullable=True)
    purchase_number = db.Column(db.String(64), nullable=True)

    invoice_number = db.Column(db.String(64), nullable=True)
    invoice_date = db.Column(db.Date, nullable=True)
    invoice_type = db.Column(db.String(16), nullable=True)  # Taxable | Normal
    billing_type = db.Column(db.String(16), nullable=True)  # Cash | Bank | Credit
    cheque_number = db.Column(db.String(64), nullable=True)
    cheque_date = db.Column(db.Date, nullable=True)

    items = db.Column(db.JSON, nullable=False, default=list)
    remarks = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "type": self.type,
            "date": to_iso_date(self.date),
            "amount": self.amount,
            "description": self.description,
            "vehicle_id": self.vehicle_id,
            "party_id": self.party_id,
            "account_id": self.account_id,
            "voucher_id": self.voucher_id,
            "voucher_no": self.voucher_no,
            "trip_id": self.trip_id,
            "trip_number": self.trip_number,
            "purchase_number": self.purchase_number,
            "invoice_number": self.invoice_number,
            "invoice_date": to_iso_date(self.invoice_date),
            "invoice_type": self.invoice_type,
            "billing_type": self.billing_type,
            "cheque_number": self.cheque_number,
            "cheque_date": to_iso_date(self.cheque_date),
            "items": self.items or [],
            "remarks": self.remarks,
        }


class Trip(AuditMixin, db.Model):
    """
    A trip sheet: legs, fuel, expenses and the computed freight figures.

    DENORMALIZED: The figures below are recomputed and stored on every
    create/update. Reads return the stored values.
    """
    __tablename__ = "trips"
    __table_args__ = (
        db.Index("ix_trips_party_date", "party_id", "date"),
    )

    trip_number = db.Column(db.String(64), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False)
    vehicle_id = db.Column(db.String(32), nullable=True)
    party_id = db.Column(db.String(32), nullable=True)

    odometer_start = db.Column(db.Float, nullable=True)
    odometer_end = db.Column(db.Float, nullable=True)

    destinations = db.Column(db.JSON, nullable=False, default=list)     # [{name, freight}]
    fuel_entries = db.Column(db.JSON, nullable=False, default=list)     # [{party_id, amount, liters}]
    extra_expenses = db.Column(db.JSON, nullable=False, default=list)   # [{description, amount, party_id}]
    return_trips = db.Column(db.JSON, nullable=False, default=list)     # [{date, from, to, freight, expenses}]

    truck_advance = db.Column(db.Float, nullable=False, default=0.0)
    transport = db.Column(db.Float, nullable=False, default=0.0)

    detention_start_date = db.Column(db.Date, nullable=True)
    detention_end_date = db.Column(db.Date, nullable=True)
    number_of_parties = db.Column(db.Integer, nullable=False, default=0)
    drop_off_charge_rate = db.Column(db.Float, nullable=True)
    detention_charge_rate = db.Column(db.Float, nullable=True)

    # Stored figures
    total_freight = db.Column(db.Float, nullable=False, default=0.0)
    drop_off_charge = db.Column(db.Float, nullable=False, default=0.0)
    detention_days = db.Column(db.Integer, nullable=False, default=0)
    detention_charge = db.Column(db.Float, nullable=False, default=0.0)
    total_taxable_amount = db.Column(db.Float, nullable=False, default=0.0)
    vat_amount = db.Column(db.Float, nullable=False, default=0.0)
    gross_amount = db.Column(db.Float, nullable=False, default=0.0)
    tds_amount = db.Column(db.Float, nullable=False, default=0.0)
    net_pay = db.Column(db.Float, nullable=False, default=0.0)
    total_expenses = db.Column(db.Float, nullable=False, default=0.0)
    total_return_load_income = db.Column(db.Float, nullable=False, default=0.0)
    net_amount = db.Column(db.Float, nullable=False, default=0.0)
    total_distance = db.Column(db.Float, nullable=False, default=0.0)
    total_fuel_liters = db.Column(db.Float, nullable=False, default=0.0)
    fuel_efficiency = db.Column(db.String(16), nullable=False, default="N/A")

    remarks = db.Column(db.Text, nullable=True)

    FIGURE_FIELDS = (
        "total_freight", "drop_off_charge", "detention_days", "detention_charge",
        "total_taxable_amount", "vat_amount", "gross_amount", "tds_amount", "net_pay",
        "total_expenses", "total_return_load_income", "net_amount",
        "total_distance", "total_fuel_liters", "fuel_efficiency",
    )

    def input_dict(self) -> dict:
        return {
            "trip_number": self.trip_number,
            "date": to_iso_date(self.date),
            "vehicle_id": self.vehicle_id,
            "party_id": self.party_id,
            "odometer_start": self.odometer_start,
            "odometer_end": self.odometer_end,
            "destinations": self.destinations or [],
            "fuel_entries": self.fuel_entries or [],
            "extra_expenses": self.extra_expenses or [],
            "return_trips": self.return_trips or [],
            "truck_advance": self.truck_advance,
            "transport": self.transport,
            "detention_start_date": to_iso_date(self.detention_start_date),
            "detention_end_date": to_iso_date(self.detention_end_date),
            "number_of_parties": self.number_of_parties,
            "drop_off_charge_rate": self.drop_off_charge_rate,
            "detention_charge_rate": self.detention_charge_rate,
            "remarks": self.remarks,
        }

    def figures_dict(self) -> dict:
        return {field: getattr(self, field) for field in self.FIGURE_FIELDS}

    def to_dict(self) -> dict:
        return {**self.audit_dict(), **self.input_dict(), **self.figures_dict()}

# Overview: Service-layer operations for trip sheets; freight figures and derived transactions.

"""
Trip Sheet Service

WHY: A trip sheet is the source document for a freight sale. Its net pay
is billed to the client party and every fuel fill is owed to a fuel vendor,
so saving a trip also writes those postings as Transactions.

DENORMALIZED: calculate_trip_figures() runs on every create/update and the
result is stored on the trip. Reads return stored figures; a recompute
check (recompute_check) reports whether they are stale.

DESIGN:
- Rates default when unset or zero: drop-off 800 per extra party above 3,
  detention 3000 per day
- VAT 13% on taxable; TDS 1.5% on gross
- No rounding; display formatting rounds to 2 dp
- Derived transactions are rewritten through the BatchWriter
"""

import logging
import math

from ..extensions import db
from ..models import Transaction, Trip, new_id
from ..time_utils import parse_iso_date
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    format_amount,
    to_number,
    validate_payload,
)
from . import settings_service
from .batch_service import BatchWriter


logger = logging.getLogger(__name__)

VAT_RATE = 0.13
TRIP_TDS_RATE = 0.015
DEFAULT_DROP_OFF_RATE = 800
DEFAULT_DETENTION_RATE = 3000
FREE_DROP_OFF_PARTIES = 3

MONEY_FIGURES = (
    "total_freight", "drop_off_charge", "detention_charge", "total_taxable_amount",
    "vat_amount", "gross_amount", "tds_amount", "net_pay",
    "total_expenses", "total_return_load_income", "net_amount",
)


class TripNotFoundError(NotFoundError):
    """Raised when a trip is not found."""
    pass


class TripValidationError(ValidationError):
    """Raised when trip data fails validation."""
    pass


TRIP_POLICY = ModelValidationPolicy(
    writable_fields={
        "trip_number", "date", "vehicle_id", "party_id", "odometer_start", "odometer_end",
        "destinations", "fuel_entries", "extra_expenses", "return_trips",
        "truck_advance", "transport", "detention_start_date", "detention_end_date",
        "number_of_parties", "drop_off_charge_rate", "detention_charge_rate", "remarks",
    },
    required_on_create={"date", "vehicle_id", "party_id"},
)


def _get(data, key):
    if isinstance(data, dict):
        return data.get(key)
    return getattr(data, key, None)


def _lines(trip, key) -> list[dict]:
    """List-valued trip field; entries that are not objects are ignored."""
    value = _get(trip, key)
    if not isinstance(value, list):
        return []
    return [line for line in value if isinstance(line, dict)]


def _as_date(value):
    try:
        return parse_iso_date(value)
    except ValueError:
        return None


def calculate_trip_figures(trip) -> dict:
    """
    Compute every freight figure for a trip (dict or Trip).

    All intermediate values are returned so they can be shown for audit.
    Missing or non-numeric inputs count as 0.
    """
    destinations = _lines(trip, "destinations")
    fuel_entries = _lines(trip, "fuel_entries")
    extra_expenses = _lines(trip, "extra_expenses")
    return_trips = _lines(trip, "return_trips")

    start = _as_date(_get(trip, "detention_start_date"))
    end = _as_date(_get(trip, "detention_end_date"))
    detention_days = (end - start).days + 1 if start and end else 0

    total_freight = sum(
        to_number(leg.get("freight"))
        for leg in destinations
        if leg and str(leg.get("name") or "").strip() and to_number(leg.get("freight")) > 0
    )

    parties = to_number(_get(trip, "number_of_parties"))
    drop_off_rate = to_number(_get(trip, "drop_off_charge_rate")) or DEFAULT_DROP_OFF_RATE
    drop_off_charge = (parties - FREE_DROP_OFF_PARTIES) * drop_off_rate if parties > FREE_DROP_OFF_PARTIES else 0

    detention_rate = to_number(_get(trip, "detention_charge_rate")) or DEFAULT_DETENTION_RATE
    detention_charge = detention_days * detention_rate

    taxable = total_freight + drop_off_charge + detention_charge
    vat = taxable * VAT_RATE
    gross = taxable + vat
    tds = gross * TRIP_TDS_RATE
    net_pay = gross - tds

    total_fuel_amount = sum(to_number(f.get("amount")) for f in fuel_entries)
    total_extra = sum(to_number(e.get("amount")) for e in extra_expenses)
    total_expenses = (
        to_number(_get(trip, "truck_advance"))
        + to_number(_get(trip, "transport"))
        + total_fuel_amount
        + total_extra
    )
    total_return_income = sum(
        to_number(rt.get("freight")) - to_number(rt.get("expenses")) for rt in return_trips
    )
    net_amount = net_pay - total_expenses + total_return_income

    odo_start = to_number(_get(trip, "odometer_start"))
    odo_end = to_number(_get(trip, "odometer_end"))
    total_distance = odo_end - odo_start if odo_end > odo_start else 0
    total_liters = sum(to_number(f.get("liters")) for f in fuel_entries)
    if total_liters > 0 and total_distance > 0:
        fuel_efficiency = f"{total_distance / total_liters:.2f}"
    else:
        fuel_efficiency = "N/A"

    return {
        "total_freight": total_freight,
        "drop_off_charge": drop_off_charge,
        "detention_days": detention_days,
        "detention_charge": detention_charge,
        "total_taxable_amount": taxable,
        "vat_amount": vat,
        "gross_amount": gross,
        "tds_amount": tds,
        "net_pay": net_pay,
        "total_expenses": total_expenses,
        "total_return_load_income": total_return_income,
        "net_amount": net_amount,
        "total_distance": total_distance,
        "total_fuel_liters": total_liters,
        "fuel_efficiency": fuel_efficiency,
    }


def display_figures(figures: dict) -> dict:
    """Money figures rounded to 2 dp for display (e.g. "12,911.38")."""
    return {key: format_amount(figures.get(key)) for key in MONEY_FIGURES}


def _clean_lines(patch: dict) -> None:
    """Drop empty legs/entries the way the trip sheet form does before saving."""
    if "destinations" in patch:
        patch["destinations"] = [
            {"name": str(d.get("name")).strip(), "freight": to_number(d.get("freight"))}
            for d in patch["destinations"] or []
            if isinstance(d, dict) and str(d.get("name") or "").strip() and to_number(d.get("freight")) > 0
        ]
    if "fuel_entries" in patch:
        entries = []
        for f in patch["fuel_entries"] or []:
            if not isinstance(f, dict) or not f.get("party_id") or to_number(f.get("amount")) <= 0:
                continue
            entry = {"party_id": f["party_id"], "amount": to_number(f.get("amount"))}
            if f.get("liters") is not None:
                entry["liters"] = to_number(f.get("liters"))
            entries.append(entry)
        patch["fuel_entries"] = entries
    if "extra_expenses" in patch:
        expenses = []
        for e in patch["extra_expenses"] or []:
            if not isinstance(e, dict) or not str(e.get("description") or "").strip() or to_number(e.get("amount")) <= 0:
                continue
            expense = {"description": str(e["description"]).strip(), "amount": to_number(e.get("amount"))}
            if e.get("party_id"):
                expense["party_id"] = e["party_id"]
            expenses.append(expense)
        patch["extra_expenses"] = expenses
    if "return_trips" in patch:
        patch["return_trips"] = [
            {k: v for k, v in rt.items() if k in ("date", "from", "to", "freight", "expenses", "party_id") and v not in (None, "")}
            for rt in patch["return_trips"] or []
            if isinstance(rt, dict) and to_number(rt.get("freight")) > 0
        ]


def _apply_figures(trip: Trip) -> dict:
    figures = calculate_trip_figures(trip)
    for key, value in figures.items():
        setattr(trip, key, value)
    return figures


def _derived_transactions(trip: Trip, username: str | None) -> list[Transaction]:
    """Sales posting for the client plus one Purchase posting per fuel entry."""
    rows = [
        Transaction(
            type="Sales",
            date=trip.date,
            amount=trip.net_pay,
            vehicle_id=trip.vehicle_id,
            party_id=trip.party_id,
            trip_id=trip.id,
            trip_number=trip.trip_number,
            billing_type="Credit",
            description=f"Trip {trip.trip_number}",
            created_by=username,
        )
    ]
    for entry in trip.fuel_entries or []:
        rows.append(
            Transaction(
                type="Purchase",
                date=trip.date,
                amount=to_number(entry.get("amount")),
                vehicle_id=trip.vehicle_id,
                party_id=entry.get("party_id"),
                trip_id=trip.id,
                trip_number=trip.trip_number,
                billing_type="Credit",
                description=f"Fuel for trip {trip.trip_number}",
                created_by=username,
            )
        )
    return rows


def _trip_transactions(trip_id: str) -> list[Transaction]:
    return db.session.query(Transaction).filter_by(trip_id=trip_id).all()


def list_trips(*, party_id: str | None = None, vehicle_id: str | None = None) -> list[Trip]:
    query = db.session.query(Trip)
    if party_id:
        query = query.filter(Trip.party_id == party_id)
    if vehicle_id:
        query = query.filter(Trip.vehicle_id == vehicle_id)
    return query.order_by(Trip.date.desc(), Trip.created_at.desc()).all()


def get_trip(trip_id: str) -> Trip:
    trip = db.session.get(Trip, trip_id)
    if trip is None:
        raise TripNotFoundError("Trip not found")
    return trip


def create_trip(*, payload: dict, username: str | None = None) -> Trip:
    """
    Create a trip, store its figures and write its derived transactions.

    The trip and its postings go through one BatchWriter.
    """
    patch = validate_payload(model=Trip, payload=payload, policy=TRIP_POLICY, partial=False)
    _clean_lines(patch)
    if not patch.get("trip_number"):
        patch["trip_number"] = settings_service.allocate_number("sales")

    trip = Trip(id=new_id(), **patch)
    trip.created_by = username
    _apply_figures(trip)

    with BatchWriter() as batch:
        batch.add(trip)
        for row in _derived_transactions(trip, username):
            batch.add(row)

    logger.info("Trip %s created with net pay %.2f", trip.trip_number, trip.net_pay)
    return trip


def update_trip(trip_id: str, *, payload: dict, username: str | None = None) -> Trip:
    trip = get_trip(trip_id)
    patch = validate_payload(model=Trip, payload=payload, policy=TRIP_POLICY, partial=True)
    _clean_lines(patch)

    with BatchWriter() as batch:
        for row in _trip_transactions(trip.id):
            batch.delete(row)
        for key, value in patch.items():
            setattr(trip, key, value)
        _apply_figures(trip)
        trip.touch(username)
        batch.update(trip)
        for row in _derived_transactions(trip, username):
            batch.add(row)

    return trip


def delete_trip(trip_id: str) -> None:
    trip = get_trip(trip_id)
    with BatchWriter() as batch:
        for row in _trip_transactions(trip.id):
            batch.delete(row)
        batch.delete(trip)


def recompute_check(trip: Trip) -> dict:
    """
    Compare stored figures with a fresh calculation.

    Stored figures are what was shown and billed; this only reports drift.
    """
    fresh = calculate_trip_figures(trip)
    stored = trip.figures_dict()
    stale_fields = []
    for key, value in fresh.items():
        current = stored.get(key)
        if isinstance(value, str) or isinstance(current, str):
            if str(value) != str(current):
                stale_fields.append(key)
        elif not math.isclose(to_number(current), value, rel_tol=1e-9, abs_tol=1e-6):
            stale_fields.append(key)
    return {
        "stored": stored,
        "recomputed": fresh,
        "stale": bool(stale_fields),
        "stale_fields": stale_fields,
    }

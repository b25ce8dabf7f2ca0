# Overview: Flask API routes for fleet operations; trip sheets, transactions, purchases, vouchers and party ledgers.

"""
Fleet Routes

SECURITY: All routes require authentication and a `fleet` permission:
view for reads, create/edit/delete for the matching writes.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import ledger_service, transaction_service, trip_service
from ..validation import NotFoundError, ValidationError


fleet_bp = Blueprint("fleet", __name__, url_prefix="/api/fleet")

FLEET = PermissionModule.FLEET


def _error(e: Exception):
    status = 404 if isinstance(e, NotFoundError) else 400
    return jsonify({"error": str(e)}), status


# -- Trip sheets --------------------------------------------------------------

@fleet_bp.get("/trips")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def list_trips_route():
    trips = trip_service.list_trips(
        party_id=request.args.get("party_id"),
        vehicle_id=request.args.get("vehicle_id"),
    )
    return jsonify({"items": [t.to_dict() for t in trips], "count": len(trips)})


@fleet_bp.get("/trips/<trip_id>")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def get_trip_route(trip_id: str):
    """
    Returns the stored trip. With ?recompute=1 the response also carries
    {recompute: {stored, recomputed, stale, stale_fields}}.
    """
    try:
        trip = trip_service.get_trip(trip_id)
    except NotFoundError as e:
        return _error(e)
    body = trip.to_dict()
    body["display"] = trip_service.display_figures(body)
    if request.args.get("recompute") in ("1", "true"):
        body["recompute"] = trip_service.recompute_check(trip)
    return jsonify(body)


@fleet_bp.post("/trips/calculate")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def calculate_trip_route():
    """Figures for an unsaved trip sheet; nothing is written."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    figures = trip_service.calculate_trip_figures(data)
    figures["display"] = trip_service.display_figures(figures)
    return jsonify(figures)


@fleet_bp.post("/trips")
@require_auth
@require_permission(FLEET, PermissionAction.CREATE)
def create_trip_route():
    try:
        trip = trip_service.create_trip(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(trip.to_dict()), 201


@fleet_bp.patch("/trips/<trip_id>")
@require_auth
@require_permission(FLEET, PermissionAction.EDIT)
def update_trip_route(trip_id: str):
    try:
        trip = trip_service.update_trip(trip_id, payload=request.get_json(silent=True), username=current_username())
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(trip.to_dict())


@fleet_bp.delete("/trips/<trip_id>")
@require_auth
@require_permission(FLEET, PermissionAction.DELETE)
def delete_trip_route(trip_id: str):
    try:
        trip_service.delete_trip(trip_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Trip deleted"})


# -- Transactions -------------------------------------------------------------

@fleet_bp.get("/transactions")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def list_transactions_route():
    rows = transaction_service.list_transactions(
        party_id=request.args.get("party_id"),
        vehicle_id=request.args.get("vehicle_id"),
        type=request.args.get("type"),
        voucher_id=request.args.get("voucher_id"),
    )
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)})


@fleet_bp.get("/transactions/<transaction_id>")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def get_transaction_route(transaction_id: str):
    try:
        return jsonify(transaction_service.get_transaction(transaction_id).to_dict())
    except NotFoundError as e:
        return _error(e)


@fleet_bp.post("/transactions")
@require_auth
@require_permission(FLEET, PermissionAction.CREATE)
def create_transaction_route():
    try:
        row = transaction_service.create_transaction(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(row.to_dict()), 201


@fleet_bp.patch("/transactions/<transaction_id>")
@require_auth
@require_permission(FLEET, PermissionAction.EDIT)
def update_transaction_route(transaction_id: str):
    try:
        row = transaction_service.update_transaction(
            transaction_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(row.to_dict())


@fleet_bp.delete("/transactions/<transaction_id>")
@require_auth
@require_permission(FLEET, PermissionAction.DELETE)
def delete_transaction_route(transaction_id: str):
    try:
        transaction_service.delete_transaction(transaction_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Transaction deleted"})


# -- Purchases ----------------------------------------------------------------

@fleet_bp.post("/purchases")
@require_auth
@require_permission(FLEET, PermissionAction.CREATE)
def create_purchase_route():
    """
    Request body:
    {
        "date": "2025-08-01",
        "party_id": "...",
        "invoice_type": "Taxable",
        "billing_type": "Credit",
        "items": [{"particular": "Diesel", "quantity": 100, "uom": "Ltr", "rate": 150}]
    }
    """
    try:
        row = transaction_service.create_purchase(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    body = row.to_dict()
    body["totals"] = transaction_service.calculate_purchase_totals(row.items, row.invoice_type)
    return jsonify(body), 201


@fleet_bp.patch("/purchases/<transaction_id>")
@require_auth
@require_permission(FLEET, PermissionAction.EDIT)
def update_purchase_route(transaction_id: str):
    try:
        row = transaction_service.update_purchase(
            transaction_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    body = row.to_dict()
    body["totals"] = transaction_service.calculate_purchase_totals(row.items, row.invoice_type)
    return jsonify(body)


# -- Payment / receipt vouchers -----------------------------------------------

@fleet_bp.get("/vouchers")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def list_vouchers_route():
    vouchers = transaction_service.list_vouchers()
    return jsonify({"items": vouchers, "count": len(vouchers)})


@fleet_bp.get("/vouchers/<voucher_id>")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def get_voucher_route(voucher_id: str):
    try:
        return jsonify(transaction_service.get_voucher(voucher_id))
    except NotFoundError as e:
        return _error(e)


@fleet_bp.post("/vouchers")
@require_auth
@require_permission(FLEET, PermissionAction.CREATE)
def create_voucher_route():
    try:
        voucher = transaction_service.create_voucher(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(voucher), 201


@fleet_bp.put("/vouchers/<voucher_id>")
@require_auth
@require_permission(FLEET, PermissionAction.EDIT)
def update_voucher_route(voucher_id: str):
    try:
        voucher = transaction_service.update_voucher(
            voucher_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(voucher)


@fleet_bp.delete("/vouchers/<voucher_id>")
@require_auth
@require_permission(FLEET, PermissionAction.DELETE)
def delete_voucher_route(voucher_id: str):
    try:
        removed = transaction_service.delete_voucher(voucher_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Voucher deleted", "transactions_removed": removed})


# -- Ledgers ------------------------------------------------------------------

@fleet_bp.get("/ledger")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def party_balances_route():
    balances = ledger_service.party_balances()
    return jsonify({"items": balances, "count": len(balances)})


@fleet_bp.get("/ledger/<party_id>")
@require_auth
@require_permission(FLEET, PermissionAction.VIEW)
def party_ledger_route(party_id: str):
    try:
        return jsonify(ledger_service.get_party_ledger(party_id))
    except NotFoundError as e:
        return _error(e)

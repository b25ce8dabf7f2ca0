# Overview: Flask API routes for finance utilities; TDS, estimate invoices and cheques.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import finance_service
from ..validation import NotFoundError, ValidationError


finance_bp = Blueprint("finance", __name__, url_prefix="/api/finance")

FINANCE = PermissionModule.FINANCE


def _error(e: Exception):
    status = 404 if isinstance(e, NotFoundError) else 400
    return jsonify({"error": str(e)}), status


# -- Calculators --------------------------------------------------------------

@finance_bp.post("/tds/calculate")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def calculate_tds_route():
    """Request body: {"amount": 10000, "rate": 0.015}"""
    data = request.get_json(silent=True) or {}
    return jsonify(finance_service.calculate_tds(data.get("amount"), data.get("rate", finance_service.DEFAULT_TDS_RATE)))


@finance_bp.post("/amount-in-words")
@require_auth
def amount_in_words_route():
    data = request.get_json(silent=True) or {}
    return jsonify({"words": finance_service.amount_to_words(data.get("amount"))})


@finance_bp.post("/cheques/split")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def split_cheques_route():
    """Request body: {"amount", "number_of_splits", "base_date"?, "intervals"?: [days, ...]}"""
    data = request.get_json(silent=True) or {}
    try:
        splits = finance_service.split_cheques(
            data.get("amount"),
            data.get("number_of_splits", 1),
            base_date=data.get("base_date"),
            intervals=data.get("intervals"),
        )
    except ValidationError as e:
        return _error(e)
    return jsonify({"items": splits, "amount_in_words": finance_service.amount_to_words(data.get("amount"))})


@finance_bp.post("/estimates/calculate")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def calculate_estimate_route():
    data = request.get_json(silent=True) or {}
    return jsonify(finance_service.calculate_estimate(data.get("items")))


# -- Saved TDS calculations ---------------------------------------------------

@finance_bp.get("/tds")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def list_tds_route():
    items = finance_service.list_tds_calculations()
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)})


@finance_bp.post("/tds")
@require_auth
@require_permission(FINANCE, PermissionAction.CREATE)
def create_tds_route():
    try:
        calc = finance_service.create_tds_calculation(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(calc.to_dict()), 201


@finance_bp.patch("/tds/<calc_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.EDIT)
def update_tds_route(calc_id: str):
    try:
        calc = finance_service.update_tds_calculation(
            calc_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(calc.to_dict())


@finance_bp.delete("/tds/<calc_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.DELETE)
def delete_tds_route(calc_id: str):
    try:
        finance_service.delete_tds_calculation(calc_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "TDS calculation deleted"})


# -- Estimate invoices --------------------------------------------------------

@finance_bp.get("/estimates")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def list_estimates_route():
    items = finance_service.list_estimates()
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)})


@finance_bp.get("/estimates/<invoice_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def get_estimate_route(invoice_id: str):
    try:
        return jsonify(finance_service.get_estimate(invoice_id).to_dict())
    except NotFoundError as e:
        return _error(e)


@finance_bp.post("/estimates")
@require_auth
@require_permission(FINANCE, PermissionAction.CREATE)
def create_estimate_route():
    try:
        invoice = finance_service.create_estimate(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(invoice.to_dict()), 201


@finance_bp.patch("/estimates/<invoice_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.EDIT)
def update_estimate_route(invoice_id: str):
    try:
        invoice = finance_service.update_estimate(
            invoice_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(invoice.to_dict())


@finance_bp.delete("/estimates/<invoice_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.DELETE)
def delete_estimate_route(invoice_id: str):
    try:
        finance_service.delete_estimate(invoice_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Estimate invoice deleted"})


# -- Cheques ------------------------------------------------------------------

@finance_bp.get("/cheques")
@require_auth
@require_permission(FINANCE, PermissionAction.VIEW)
def list_cheques_route():
    items = finance_service.list_cheques()
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)})


@finance_bp.post("/cheques")
@require_auth
@require_permission(FINANCE, PermissionAction.CREATE)
def create_cheque_route():
    try:
        cheque = finance_service.create_cheque(payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return _error(e)
    return jsonify(cheque.to_dict()), 201


@finance_bp.patch("/cheques/<cheque_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.EDIT)
def update_cheque_route(cheque_id: str):
    try:
        cheque = finance_service.update_cheque(
            cheque_id, payload=request.get_json(silent=True), username=current_username()
        )
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    return jsonify(cheque.to_dict())


@finance_bp.delete("/cheques/<cheque_id>")
@require_auth
@require_permission(FINANCE, PermissionAction.DELETE)
def delete_cheque_route(cheque_id: str):
    try:
        finance_service.delete_cheque(cheque_id)
    except NotFoundError as e:
        return _error(e)
    return jsonify({"message": "Cheque deleted"})

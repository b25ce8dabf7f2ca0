# Overview: Flask API routes for purchase orders; versioned edits, change summaries and lead-time analytics.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import purchase_order_service
from ..validation import NotFoundError, ValidationError


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

PURCHASE_ORDERS = PermissionModule.PURCHASE_ORDERS


@purchase_orders_bp.get("")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.VIEW)
def list_purchase_orders_route():
    pos = purchase_order_service.list_purchase_orders(status=request.args.get("status"))
    return jsonify({"items": [po.to_dict() for po in pos], "count": len(pos)})


@purchase_orders_bp.get("/analytics")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.VIEW)
def analytics_route():
    pos = purchase_order_service.list_purchase_orders()
    return jsonify(purchase_order_service.calculate_lead_time_analytics(pos))


@purchase_orders_bp.post("/summarize")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.VIEW)
def summarize_route():
    """
    Request body: {"original": {...}, "updated": {...}}
    Returns: {"summary": "..."}
    """
    data = request.get_json(silent=True) or {}
    original = data.get("original")
    updated = data.get("updated")
    if not isinstance(original, dict) or not isinstance(updated, dict):
        return jsonify({"error": "original and updated must be objects"}), 400
    return jsonify({"summary": purchase_order_service.summarize_changes(original, updated)})


@purchase_orders_bp.get("/<po_id>")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.VIEW)
def get_purchase_order_route(po_id: str):
    try:
        return jsonify(purchase_order_service.get_purchase_order(po_id).to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@purchase_orders_bp.post("")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.CREATE)
def create_purchase_order_route():
    try:
        po = purchase_order_service.create_purchase_order(
            payload=request.get_json(silent=True), username=current_username()
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(po.to_dict()), 201


@purchase_orders_bp.patch("/<po_id>")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.EDIT)
def update_purchase_order_route(po_id: str):
    """
    Body is a partial PO. An optional "remarks" key replaces the generated
    amendment note.
    """
    data = dict(request.get_json(silent=True) or {})
    remarks = data.pop("remarks", None)
    try:
        po = purchase_order_service.update_purchase_order(
            po_id, payload=data, username=current_username(), remarks=remarks
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(po.to_dict())


@purchase_orders_bp.post("/<po_id>/deliver")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.EDIT)
def deliver_route(po_id: str):
    data = request.get_json(silent=True) or {}
    try:
        po = purchase_order_service.mark_delivered(
            po_id, delivery_date=data.get("delivery_date"), username=current_username()
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(po.to_dict())


@purchase_orders_bp.delete("/<po_id>")
@require_auth
@require_permission(PURCHASE_ORDERS, PermissionAction.DELETE)
def delete_purchase_order_route(po_id: str):
    try:
        purchase_order_service.delete_purchase_order(po_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Purchase order deleted"})

# Overview: Flask API routes for reference data; parties, accounts, vehicles, drivers, destinations, raw materials, units, policies, employees, notes.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import permission_service, reference_service
from ..services.permission_service import PermissionDeniedError
from ..validation import NotFoundError, ValidationError


reference_bp = Blueprint("reference", __name__, url_prefix="/api/reference")

KIND_MODULES = {
    "parties": PermissionModule.FLEET,
    "accounts": PermissionModule.FLEET,
    "vehicles": PermissionModule.FLEET,
    "drivers": PermissionModule.FLEET,
    "destinations": PermissionModule.FLEET,
    "policies": PermissionModule.FLEET,
    "raw-materials": PermissionModule.RAW_MATERIALS,
    "uom": PermissionModule.RAW_MATERIALS,
    "employees": PermissionModule.HR,
    # any signed-in user
    "notes": None,
}


def _authorize(kind: str, action: str):
    """Returns an error response tuple, or None when allowed."""
    if kind not in KIND_MODULES:
        return jsonify({"error": f"Unknown reference type: {kind}"}), 404
    module = KIND_MODULES[kind]
    if module is None:
        return None
    try:
        permission_service.require_permission(
            g.current_user,
            module,
            action,
            resource=request.path,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    return None


@reference_bp.get("/<kind>")
@require_auth
def list_route(kind: str):
    denied = _authorize(kind, PermissionAction.VIEW)
    if denied:
        return denied
    items = reference_service.list_items(kind)
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)})


@reference_bp.get("/<kind>/<item_id>")
@require_auth
def get_route(kind: str, item_id: str):
    denied = _authorize(kind, PermissionAction.VIEW)
    if denied:
        return denied
    try:
        return jsonify(reference_service.get_item(kind, item_id).to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@reference_bp.post("/<kind>")
@require_auth
def create_route(kind: str):
    denied = _authorize(kind, PermissionAction.CREATE)
    if denied:
        return denied
    try:
        item = reference_service.create_item(kind, payload=request.get_json(silent=True), username=current_username())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(item.to_dict()), 201


@reference_bp.patch("/<kind>/<item_id>")
@require_auth
def update_route(kind: str, item_id: str):
    denied = _authorize(kind, PermissionAction.EDIT)
    if denied:
        return denied
    try:
        item = reference_service.update_item(
            kind, item_id, payload=request.get_json(silent=True), username=current_username()
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(item.to_dict())


@reference_bp.delete("/<kind>/<item_id>")
@require_auth
def delete_route(kind: str, item_id: str):
    denied = _authorize(kind, PermissionAction.DELETE)
    if denied:
        return denied
    try:
        reference_service.delete_item(kind, item_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Deleted"})

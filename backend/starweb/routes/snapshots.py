# Overview: Flask API routes for full-collection snapshots.

"""
Snapshot Routes

Each response is the complete current result set of one collection plus its
revision counter. Clients replace their state wholesale; a repeated revision
means nothing changed since the last read.
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..permissions import PermissionAction, PermissionModule
from ..services import permission_service, snapshot_service
from ..services.snapshot_service import UnknownCollectionError


snapshots_bp = Blueprint("snapshots", __name__, url_prefix="/api/snapshots")

# Module whose view permission guards each collection; None = any signed-in user
COLLECTION_MODULES = {
    "parties": PermissionModule.FLEET,
    "accounts": PermissionModule.FLEET,
    "vehicles": PermissionModule.FLEET,
    "drivers": PermissionModule.FLEET,
    "destinations": PermissionModule.FLEET,
    "policies": PermissionModule.FLEET,
    "transactions": PermissionModule.FLEET,
    "trips": PermissionModule.FLEET,
    "raw_materials": PermissionModule.RAW_MATERIALS,
    "units_of_measure": PermissionModule.RAW_MATERIALS,
    "purchase_orders": PermissionModule.PURCHASE_ORDERS,
    "products": PermissionModule.PRODUCTS,
    "cost_reports": PermissionModule.PRODUCTS,
    "reports": PermissionModule.REPORTS,
    "employees": PermissionModule.HR,
    "attendance_records": PermissionModule.HR,
    "payroll_runs": PermissionModule.HR,
    "tds_calculations": PermissionModule.FINANCE,
    "cheques": PermissionModule.FINANCE,
    "estimate_invoices": PermissionModule.FINANCE,
    "notes": None,
}


def _visible(collection: str) -> bool:
    if collection not in COLLECTION_MODULES:
        return False
    module = COLLECTION_MODULES[collection]
    return module is None or permission_service.has_permission(g.current_user, module, PermissionAction.VIEW)


@snapshots_bp.get("")
@require_auth
def list_collections_route():
    return jsonify({"items": [c for c in snapshot_service.collections() if _visible(c)]})


@snapshots_bp.get("/<collection>")
@require_auth
def snapshot_route(collection: str):
    if collection in COLLECTION_MODULES and not _visible(collection):
        return jsonify({"error": "Permission denied"}), 403
    try:
        return jsonify(snapshot_service.get_snapshot(collection))
    except UnknownCollectionError as e:
        return jsonify({"error": str(e)}), 404

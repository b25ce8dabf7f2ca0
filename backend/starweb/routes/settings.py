# Overview: Flask API routes for application settings and document numbering.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission, current_username
from ..permissions import PermissionAction, PermissionModule
from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
@require_permission(PermissionModule.SETTINGS, PermissionAction.VIEW)
def list_settings_route():
    return jsonify({"items": [s.to_dict() for s in settings_service.list_settings()]})


@settings_bp.get("/document-prefixes")
@require_auth
def get_prefixes_route():
    return jsonify(settings_service.get_document_prefixes())


@settings_bp.put("/document-prefixes")
@require_auth
@require_permission(PermissionModule.SETTINGS, PermissionAction.EDIT)
def update_prefixes_route():
    data = request.get_json(silent=True)
    try:
        prefixes = settings_service.update_document_prefixes(data, current_username())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(prefixes)


@settings_bp.get("/next-number/<kind>")
@require_auth
def next_number_route(kind: str):
    """Preview the next serial for a document kind; nothing is reserved."""
    try:
        number = settings_service.allocate_number(kind)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"kind": kind, "number": number})


@settings_bp.put("/<key>")
@require_auth
@require_permission(PermissionModule.SETTINGS, PermissionAction.EDIT)
def put_setting_route(key: str):
    """Body: {"value": <any JSON>}"""
    data = request.get_json(silent=True) or {}
    if "value" not in data:
        return jsonify({"error": "value is required"}), 400
    if key == settings_service.DOCUMENT_PREFIXES_KEY:
        return jsonify({"error": "Use /api/settings/document-prefixes"}), 400
    try:
        row = settings_service.set_setting(key, data["value"], current_username())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(row.to_dict())

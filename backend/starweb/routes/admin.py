# Overview: Flask API routes for user administration; users, permission maps and security events.

"""
Admin Routes

SECURITY: Every route requires an authenticated administrator.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_admin
from ..permissions import MODULE_DEFINITIONS, get_module_definition
from ..services import auth_service, permission_service, session_service
from ..services.auth_service import PasswordValidationError, UserValidationError


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_admin
def list_users_route():
    users = auth_service.list_users()
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})


@admin_bp.post("/users")
@require_auth
@require_admin
def create_user_route():
    """
    Request body:
    {
        "username": "clerk",
        "password": "clerk1234",
        "is_admin": false,
        "permissions": {"fleet": ["view", "create"]}
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.create_user(
            username=data.get("username"),
            password=data.get("password") or "",
            is_admin=bool(data.get("is_admin", False)),
            permissions=data.get("permissions"),
        )
    except (UserValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(user.to_dict()), 201


@admin_bp.patch("/users/<int:user_id>")
@require_auth
@require_admin
def update_user_route(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.update_user(
            user_id=user_id,
            permissions=data.get("permissions"),
            is_admin=data.get("is_admin"),
            is_active=data.get("is_active"),
            password=data.get("password"),
        )
    except UserValidationError as e:
        status = 404 if str(e) == "User not found" else 400
        return jsonify({"error": str(e)}), status
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    if user.is_active is False:
        session_service.revoke_all_user_sessions(user.id, "User deactivated")
    return jsonify(user.to_dict())


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_admin
def delete_user_route(user_id: int):
    try:
        auth_service.delete_user(user_id)
    except UserValidationError as e:
        return jsonify({"error": str(e)}), 404
    session_service.revoke_all_user_sessions(user_id, "User deactivated")
    return jsonify({"message": "User deactivated"})


@admin_bp.get("/permissions")
@require_auth
@require_admin
def list_modules_route():
    return jsonify({"items": [get_module_definition(m[0]) for m in MODULE_DEFINITIONS]})


@admin_bp.get("/security-events")
@require_auth
@require_admin
def security_events_route():
    limit = request.args.get("limit", 100, type=int)
    limit = max(1, min(limit, 500))
    events = permission_service.list_security_events(limit)
    return jsonify({"items": [e.to_dict() for e in events], "count": len(events)})

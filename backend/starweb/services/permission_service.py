# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Checking and Security Event Logging

DESIGN PRINCIPLES:
- Fail closed: unknown modules or actions are denied
- Admins pass every check
- Log denials only: grants are not logged
"""

from ..extensions import db
from ..models import SecurityEvent, User
from ..permissions import ACTIONS, MODULES, normalize_permissions
from ..time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def has_permission(user, module: str, action: str) -> bool:
    """
    Permission predicate.

    True for admins. Otherwise the action must be listed under the module in
    the user's permission map. Unknown modules/actions are always False.
    """
    if user is None:
        return False
    if module not in MODULES or action not in ACTIONS:
        return False
    if getattr(user, "is_admin", False):
        return True
    perms = getattr(user, "permissions", None) or {}
    return action in (perms.get(module) or [])


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - LOGOUT
    - PERMISSION_GRANTED / PERMISSION_REVOKED (admin changes)
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def require_permission(
    user: User,
    module: str,
    action: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Raise PermissionDeniedError (and log the denial) if the check fails."""
    if has_permission(user, module, action):
        return

    log_security_event(
        user_id=user.id if user else None,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=f"{module}:{action}",
        reason=f"Missing permission: {module}.{action}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise PermissionDeniedError(f"Missing permission: {module}.{action}")


def grant(user: User, module: str, action: str) -> User:
    """Add one action to a user's permission map."""
    if module not in MODULES:
        raise ValueError(f"Unknown module: {module}")
    if action not in ACTIONS:
        raise ValueError(f"Unknown action: {action}")
    perms = {k: list(v) for k, v in (user.permissions or {}).items()}
    perms.setdefault(module, [])
    if action not in perms[module]:
        perms[module].append(action)
    user.permissions = normalize_permissions(perms)
    db.session.commit()
    log_security_event(user.id, "PERMISSION_GRANTED", True, action=f"{module}:{action}")
    return user


def revoke(user: User, module: str, action: str) -> User:
    perms = {k: [a for a in v if not (k == module and a == action)] for k, v in (user.permissions or {}).items()}
    user.permissions = normalize_permissions(perms)
    db.session.commit()
    log_security_event(user.id, "PERMISSION_REVOKED", True, action=f"{module}:{action}")
    return user


def list_security_events(limit: int = 100) -> list[SecurityEvent]:
    return (
        db.session.query(SecurityEvent)
        .order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc())
        .limit(limit)
        .all()
    )

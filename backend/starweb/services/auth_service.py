# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, with a letter and a digit
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..permissions import normalize_permissions
from ..time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserValidationError(Exception):
    """Raised when user data fails validation (duplicate username, etc.)."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash verifies as False rather than raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    *,
    username: str,
    password: str,
    is_admin: bool = False,
    permissions: dict | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        UserValidationError: username missing or already taken
        PasswordValidationError: password doesn't meet requirements
    """
    username = (username or "").strip()
    if not username:
        raise UserValidationError("username is required")

    existing = db.session.query(User).filter_by(username=username).first()
    if existing:
        raise UserValidationError("Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        is_admin=bool(is_admin),
        permissions=normalize_permissions(permissions or {}),
        password_last_updated=utcnow(),
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.username == username,
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def get_user(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def get_user_by_username(username: str) -> User | None:
    return db.session.query(User).filter_by(username=username).first()


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username).all()


def update_user(
    *,
    user_id: int,
    permissions: dict | None = None,
    is_admin: bool | None = None,
    is_active: bool | None = None,
    password: str | None = None,
) -> User:
    user = get_user(user_id)
    if not user:
        raise UserValidationError("User not found")

    if permissions is not None:
        user.permissions = normalize_permissions(permissions)
    if is_admin is not None:
        user.is_admin = bool(is_admin)
    if is_active is not None:
        user.is_active = bool(is_active)
    if password:
        user.password_hash = hash_password(password)
        user.password_last_updated = utcnow()

    db.session.commit()
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    if not user:
        raise UserValidationError("User not found")
    # Keep the row for attribution; deactivate instead of deleting.
    user.is_active = False
    db.session.commit()

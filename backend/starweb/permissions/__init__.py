# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .categories import PermissionAction, PermissionModule
from .definitions import ACTIONS, MODULE_DEFINITIONS, MODULES
from .helpers import (
    get_module_definition,
    normalize_permissions,
    validate_action,
    validate_module,
)

__all__ = [
    "PermissionAction",
    "PermissionModule",
    "ACTIONS",
    "MODULE_DEFINITIONS",
    "MODULES",
    "get_module_definition",
    "normalize_permissions",
    "validate_action",
    "validate_module",
]

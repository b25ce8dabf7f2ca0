# Overview: Utility functions for permission lookups and validation.

from .definitions import ACTIONS, MODULE_DEFINITIONS, MODULES


def get_module_definition(code):
    """Get full definition for a module code."""
    for module in MODULE_DEFINITIONS:
        if module[0] == code:
            return {
                "code": module[0],
                "name": module[1],
                "description": module[2],
                "actions": list(ACTIONS),
            }
    return None


def validate_module(code):
    return code in MODULES


def validate_action(action):
    return action in ACTIONS


def normalize_permissions(raw):
    """
    Clean a {module: [action, ...]} map.

    Unknown modules and actions are dropped; duplicates collapse while
    keeping the canonical action order.
    """
    if not isinstance(raw, dict):
        return {}
    cleaned = {}
    for module, actions in raw.items():
        if not validate_module(module) or not isinstance(actions, (list, tuple, set)):
            continue
        kept = [a for a in ACTIONS if a in set(actions)]
        if kept:
            cleaned[module] = kept
    return cleaned

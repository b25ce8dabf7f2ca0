# Overview: Permission module and action constants.


class PermissionModule:
    """Application modules a user can be granted actions on."""
    DASHBOARD = "dashboard"
    REPORTS = "reports"
    PRODUCTS = "products"
    PURCHASE_ORDERS = "purchaseOrders"
    RAW_MATERIALS = "rawMaterials"
    SETTINGS = "settings"
    HR = "hr"
    FLEET = "fleet"
    FINANCE = "finance"


class PermissionAction:
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"

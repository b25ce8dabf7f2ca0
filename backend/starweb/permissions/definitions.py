# Overview: All module definitions and the actions they accept.
# Each module is defined as: (code, name, description)

from .categories import PermissionAction, PermissionModule


MODULE_DEFINITIONS = [
    (PermissionModule.DASHBOARD, "Dashboard", "Summary dashboard and recent activity"),
    (PermissionModule.REPORTS, "Test Reports", "Create, print and manage product test reports"),
    (PermissionModule.PRODUCTS, "Products", "Product catalogue and test specifications"),
    (PermissionModule.PURCHASE_ORDERS, "Purchase Orders", "Purchase orders, amendments and lead-time analytics"),
    (PermissionModule.RAW_MATERIALS, "Raw Materials", "Raw material master data"),
    (PermissionModule.SETTINGS, "Settings", "Users, permissions and document prefixes"),
    (PermissionModule.HR, "HR", "Employees, attendance, payroll and bonus"),
    (PermissionModule.FLEET, "Fleet", "Vehicles, trip sheets, transactions and ledgers"),
    (PermissionModule.FINANCE, "Finance", "TDS, cheques and estimate invoices"),
]

MODULES = tuple(m[0] for m in MODULE_DEFINITIONS)

ACTIONS = (
    PermissionAction.VIEW,
    PermissionAction.CREATE,
    PermissionAction.EDIT,
    PermissionAction.DELETE,
)

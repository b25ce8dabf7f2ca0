# Overview: Service-layer operations for reference data; lookup CRUD and id-to-name resolution.

"""
Reference Data Service

Parties, accounts, vehicles, drivers, destinations, raw materials, units of
measure, policies/memberships, employees and notes share one shape:
validate, write, publish.

Relationships are plain string ids. Nothing here checks that a referenced
id exists; unresolved ids display as "N/A" via resolve_name().
"""

from dataclasses import dataclass

from ..extensions import db
from ..models import (
    Account,
    Destination,
    Driver,
    Employee,
    Note,
    Party,
    PolicyOrMembership,
    RawMaterial,
    UnitOfMeasure,
    Vehicle,
)
from ..validation import ModelValidationPolicy, NotFoundError, validate_payload
from . import snapshot_service


NOT_AVAILABLE = "N/A"


class ReferenceNotFoundError(NotFoundError):
    pass


@dataclass(frozen=True)
class ReferenceKind:
    model: type
    policy: ModelValidationPolicy
    # column names; a leading "-" sorts descending
    order_by: tuple = ("name",)


REFERENCE_KINDS = {
    "parties": ReferenceKind(
        Party,
        ModelValidationPolicy(
            writable_fields={"name", "type", "address", "pan_number"},
            required_on_create={"name", "type"},
            choices={"type": ("Vendor", "Client", "Both")},
        ),
    ),
    "accounts": ReferenceKind(
        Account,
        ModelValidationPolicy(
            writable_fields={"name", "type", "bank_name", "account_number", "branch"},
            required_on_create={"name", "type"},
            choices={"type": ("Cash", "Bank")},
        ),
    ),
    "vehicles": ReferenceKind(
        Vehicle,
        ModelValidationPolicy(
            writable_fields={"name", "make", "model", "year", "vin", "status", "driver_id"},
            required_on_create={"name"},
            choices={"status": ("Active", "In Maintenance", "Decommissioned")},
        ),
    ),
    "drivers": ReferenceKind(
        Driver,
        ModelValidationPolicy(
            writable_fields={"name", "nickname", "license_number", "contact_number", "date_of_birth", "photo_url"},
            required_on_create={"name"},
        ),
    ),
    "destinations": ReferenceKind(
        Destination,
        ModelValidationPolicy(writable_fields={"name"}, required_on_create={"name"}),
    ),
    "raw-materials": ReferenceKind(
        RawMaterial,
        ModelValidationPolicy(
            writable_fields={"type", "name", "size", "gsm", "bf", "units"},
            required_on_create={"type", "name"},
        ),
    ),
    "policies": ReferenceKind(
        PolicyOrMembership,
        ModelValidationPolicy(
            writable_fields={
                "type", "provider", "policy_number", "start_date", "end_date",
                "cost", "member_id", "member_type",
            },
            required_on_create={"type", "provider"},
            choices={"member_type": ("Vehicle", "Driver")},
        ),
        order_by=("end_date",),
    ),
    "employees": ReferenceKind(
        Employee,
        ModelValidationPolicy(
            writable_fields={"name", "wage_basis", "wage_amount", "joining_date", "status"},
            required_on_create={"name", "wage_basis"},
            choices={"wage_basis": ("Monthly", "Hourly"), "status": ("Working", "Left")},
        ),
    ),
    "uom": ReferenceKind(
        UnitOfMeasure,
        ModelValidationPolicy(writable_fields={"name", "abbreviation"}, required_on_create={"name", "abbreviation"}),
    ),
    "notes": ReferenceKind(
        Note,
        ModelValidationPolicy(
            writable_fields={"type", "title", "content", "is_completed", "due_date"},
            required_on_create={"content"},
            choices={"type": ("Note", "Todo")},
        ),
        order_by=("is_completed", "-created_at"),
    ),
}


def _kind(kind: str) -> ReferenceKind:
    entry = REFERENCE_KINDS.get(kind)
    if entry is None:
        raise ReferenceNotFoundError(f"Unknown reference type: {kind}")
    return entry


def resolve_name(items, item_id, attr: str = "name") -> str:
    """
    Linear lookup of an id in an already-loaded list of records or dicts.

    Returns the record's name, or "N/A" when the id is missing or unknown.
    """
    if not item_id:
        return NOT_AVAILABLE
    for item in items or ():
        current_id = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
        if current_id == item_id:
            value = item.get(attr) if isinstance(item, dict) else getattr(item, attr, None)
            return value or NOT_AVAILABLE
    return NOT_AVAILABLE


def list_items(kind: str) -> list:
    entry = _kind(kind)
    columns = [
        getattr(entry.model, name[1:]).desc() if name.startswith("-") else getattr(entry.model, name)
        for name in entry.order_by
    ]
    return db.session.query(entry.model).order_by(*columns, entry.model.id).all()


def get_item(kind: str, item_id: str):
    entry = _kind(kind)
    item = db.session.get(entry.model, item_id)
    if item is None:
        raise ReferenceNotFoundError(f"{entry.model.__name__} not found")
    return item


def create_item(kind: str, *, payload: dict, username: str | None = None):
    entry = _kind(kind)
    patch = validate_payload(model=entry.model, payload=payload, policy=entry.policy, partial=False)
    item = entry.model(**patch)
    item.created_by = username
    db.session.add(item)
    snapshot_service.commit_and_publish(entry.model.__tablename__)
    return item


def update_item(kind: str, item_id: str, *, payload: dict, username: str | None = None):
    entry = _kind(kind)
    item = get_item(kind, item_id)
    patch = validate_payload(model=entry.model, payload=payload, policy=entry.policy, partial=True)
    for key, value in patch.items():
        setattr(item, key, value)
    item.touch(username)
    snapshot_service.commit_and_publish(entry.model.__tablename__)
    return item


def delete_item(kind: str, item_id: str) -> None:
    entry = _kind(kind)
    item = get_item(kind, item_id)
    db.session.delete(item)
    snapshot_service.commit_and_publish(entry.model.__tablename__)


def name_lookup(model) -> dict[str, str]:
    """{id: name} for a whole reference table."""
    return {row.id: row.name for row in db.session.query(model.id, model.name).all()}

# Overview: Service-layer operations for purchase orders; versioned edits, amendments and lead-time analytics.

"""
Purchase Order Service

WHY: A PO is a commitment to a supplier. Every edit must leave a trail of
what the document said before, who changed it, and why.

VERSIONING:
- Before any update is applied, the current mutable fields (po_date, items,
  company_name, company_address, pan_number, status) are copied into an
  immutable version {id, timestamp, edited_by, snapshot}
- The version id is derived from the edit timestamp (epoch milliseconds)
- versions only grows; there is no delete path
- A content edit (anything but status/delivery date) also records an
  amendment note and moves the PO to Amended

STATUSES: Ordered -> Amended -> Delivered | Canceled
"""

import copy
import logging
import math
from collections import Counter, defaultdict
from datetime import timezone

from ..extensions import db
from ..models import PurchaseOrder
from ..time_utils import parse_iso_date, to_iso_date, utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from . import settings_service, snapshot_service


logger = logging.getLogger(__name__)

PO_STATUSES = ("Ordered", "Amended", "Delivered", "Canceled")
VERSIONED_FIELDS = ("po_date", "items", "company_name", "company_address", "pan_number", "status")
CONTENT_FIELDS = ("po_date", "items", "company_name", "company_address", "pan_number")
ITEM_FIELDS = ("raw_material_id", "raw_material_name", "raw_material_type", "size", "gsm", "bf", "quantity", "unit")


class PurchaseOrderNotFoundError(NotFoundError):
    """Raised when a purchase order is not found."""
    pass


class PurchaseOrderValidationError(ValidationError):
    """Raised when purchase order data fails validation."""
    pass


PO_POLICY = ModelValidationPolicy(
    writable_fields={
        "po_number", "po_date", "company_name", "company_address", "pan_number",
        "items", "status", "delivery_date",
    },
    required_on_create={"po_date", "company_name", "items"},
    choices={"status": PO_STATUSES},
)


def _clean_items(items) -> list[dict]:
    if not isinstance(items, list):
        raise PurchaseOrderValidationError("items must be an array")
    cleaned = []
    for item in items:
        if not isinstance(item, dict):
            raise PurchaseOrderValidationError("Each item must be an object")
        row = {k: item.get(k) for k in ITEM_FIELDS if item.get(k) is not None}
        if not row.get("raw_material_name") and not row.get("raw_material_id"):
            raise PurchaseOrderValidationError("Each item needs a raw material")
        if row.get("quantity") is not None:
            row["quantity"] = str(row["quantity"])
        cleaned.append(row)
    if not cleaned:
        raise PurchaseOrderValidationError("At least one item is required")
    return cleaned


def _snapshot(po: PurchaseOrder) -> dict:
    return {
        "po_date": to_iso_date(po.po_date),
        "items": copy.deepcopy(po.items or []),
        "company_name": po.company_name,
        "company_address": po.company_address,
        "pan_number": po.pan_number,
        "status": po.status,
    }


def _version_id(now, existing: list) -> str:
    base = str(int(now.replace(tzinfo=timezone.utc).timestamp() * 1000))
    taken = {v.get("id") for v in existing}
    version_id, n = base, 1
    while version_id in taken:
        version_id = f"{base}-{n}"
        n += 1
    return version_id


# -- Change summary -----------------------------------------------------------

_HEADER_LABELS = (
    ("po_number", "PO number"),
    ("po_date", "Date"),
    ("company_name", "Company"),
    ("company_address", "Address"),
    ("pan_number", "PAN"),
)


def _item_key(item: dict) -> str:
    return item.get("raw_material_name") or item.get("raw_material_id") or "item"


def _item_qty(item: dict) -> str:
    qty = str(item.get("quantity") or "").strip()
    unit = str(item.get("unit") or "").strip()
    return f"{qty} {unit}".strip() or "no quantity"


def _norm_date(value):
    try:
        d = parse_iso_date(value)
    except ValueError:
        return value
    return d.isoformat() if d else None


def summarize_changes(original: dict, updated: dict) -> str:
    """
    Concise, deterministic description of what changed between two POs.

    Header fields and items (matched by raw material name) are compared;
    identical parts are not mentioned.
    """
    original = original or {}
    updated = updated or {}
    parts = []

    for field, label in _HEADER_LABELS:
        if field not in updated:
            continue
        before, after = original.get(field), updated.get(field)
        if field == "po_date":
            before, after = _norm_date(before), _norm_date(after)
        if (before or "") != (after or ""):
            parts.append(f"{label} changed from {before or 'blank'} to {after or 'blank'}")

    if "items" in updated:
        before_items = {_item_key(i): i for i in original.get("items") or [] if isinstance(i, dict)}
        after_items = {_item_key(i): i for i in updated.get("items") or [] if isinstance(i, dict)}
        for key, item in after_items.items():
            if key not in before_items:
                parts.append(f"Added {key} ({_item_qty(item)})")
            elif _item_qty(before_items[key]) != _item_qty(item):
                parts.append(f"Changed {key} from {_item_qty(before_items[key])} to {_item_qty(item)}")
            else:
                diffs = [
                    f for f in ("raw_material_type", "size", "gsm", "bf")
                    if str(before_items[key].get(f) or "") != str(item.get(f) or "")
                ]
                if diffs:
                    parts.append(f"Updated {key} ({', '.join(diffs)})")
        for key, item in before_items.items():
            if key not in after_items:
                parts.append(f"Removed {key} ({_item_qty(item)})")

    if not parts:
        return "No changes detected."
    return "; ".join(parts) + "."


# -- CRUD ---------------------------------------------------------------------

def list_purchase_orders(*, status: str | None = None) -> list[PurchaseOrder]:
    query = db.session.query(PurchaseOrder)
    if status:
        query = query.filter(PurchaseOrder.status == status)
    return query.order_by(PurchaseOrder.po_date.desc(), PurchaseOrder.created_at.desc()).all()


def get_purchase_order(po_id: str) -> PurchaseOrder:
    po = db.session.get(PurchaseOrder, po_id)
    if po is None:
        raise PurchaseOrderNotFoundError("Purchase order not found")
    return po


def create_purchase_order(*, payload: dict, username: str | None = None) -> PurchaseOrder:
    patch = validate_payload(model=PurchaseOrder, payload=payload, policy=PO_POLICY, partial=False)
    patch["items"] = _clean_items(patch["items"])
    patch.pop("status", None)
    if not patch.get("po_number"):
        patch["po_number"] = settings_service.allocate_number("purchaseOrder")

    po = PurchaseOrder(status="Ordered", amendments=[], versions=[], **patch)
    po.created_by = username
    db.session.add(po)
    snapshot_service.commit_and_publish("purchase_orders")
    logger.info("Purchase order %s created", po.po_number)
    return po


def update_purchase_order(
    po_id: str,
    *,
    payload: dict,
    username: str | None = None,
    remarks: str | None = None,
) -> PurchaseOrder:
    """
    Apply an edit, recording the pre-edit state as a new version first.

    remarks overrides the generated amendment note for content edits.
    """
    po = get_purchase_order(po_id)
    patch = validate_payload(model=PurchaseOrder, payload=payload, policy=PO_POLICY, partial=True)
    if "items" in patch:
        patch["items"] = _clean_items(patch["items"])

    before = po.to_dict()
    now = utcnow()
    versions = list(po.versions or [])
    versions.append({
        "id": _version_id(now, versions),
        "timestamp": now.isoformat(timespec="milliseconds") + "Z",
        "edited_by": username,
        "snapshot": _snapshot(po),
    })
    po.versions = versions

    content_changed = any(
        field in patch and _snapshot_value(field, patch[field]) != _snapshot(po)[field]
        for field in CONTENT_FIELDS
    )

    for key, value in patch.items():
        setattr(po, key, value)

    if content_changed:
        po.status = "Amended"
        amendments = list(po.amendments or [])
        amendments.append({
            "date": now.isoformat(timespec="milliseconds") + "Z",
            "remarks": remarks or summarize_changes(before, po.to_dict()),
            "amended_by": username,
        })
        po.amendments = amendments

    po.touch(username)
    snapshot_service.commit_and_publish("purchase_orders")
    return po


def _snapshot_value(field: str, value):
    if field == "po_date":
        return to_iso_date(value)
    return value


def mark_delivered(po_id: str, *, delivery_date, username: str | None = None) -> PurchaseOrder:
    if not delivery_date:
        raise PurchaseOrderValidationError("delivery_date is required")
    return update_purchase_order(
        po_id,
        payload={"status": "Delivered", "delivery_date": delivery_date},
        username=username,
    )


def delete_purchase_order(po_id: str) -> None:
    po = get_purchase_order(po_id)
    db.session.delete(po)
    snapshot_service.commit_and_publish("purchase_orders")


# -- Analytics ----------------------------------------------------------------

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_lead_time_analytics(purchase_orders) -> dict:
    """
    Lead time = whole days from PO date to delivery date, for Delivered POs
    that have a delivery date.
    """
    status_counts = Counter()
    total = 0
    delivered = 0
    by_company: dict[str, list[int]] = defaultdict(list)

    for po in purchase_orders or ():
        get = po.get if isinstance(po, dict) else lambda k, _po=po: getattr(_po, k, None)
        status_counts[get("status")] += 1
        if get("status") != "Delivered" or not get("delivery_date"):
            continue
        po_date = parse_iso_date(get("po_date"))
        delivery = parse_iso_date(get("delivery_date"))
        if po_date is None or delivery is None:
            continue
        lead = (delivery - po_date).days
        total += lead
        delivered += 1
        by_company[get("company_name") or "N/A"].append(lead)

    return {
        "total_orders": sum(status_counts.values()),
        "delivered_orders": delivered,
        "average_lead_time": _round_half_up(total / delivered) if delivered else 0,
        "company_lead_times": [
            {"company_name": name, "average_lead_time": _round_half_up(sum(v) / len(v)), "orders": len(v)}
            for name, v in sorted(by_company.items())
        ],
        "status_counts": {status: status_counts.get(status, 0) for status in PO_STATUSES},
    }

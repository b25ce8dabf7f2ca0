# Overview: Service-layer operations for transactions; purchases, payment/receipt vouchers and plain postings.

"""
Transaction Service

Transactions are the postings the party ledger is built from. Three ways
create them:
- Purchase invoices: amount is the VAT-inclusive grand total at write time
- Payment/Receipt vouchers: one voucher fans out into many rows sharing a
  voucher_id; editing a voucher deletes and recreates all of them
- Trip sheets (see trip_service): Sales plus fuel Purchase rows

Multi-row rewrites go through the BatchWriter.
"""

import logging

from ..extensions import db
from ..models import Transaction, new_id
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    parse_date_field,
    require_choice,
    to_number,
    validate_payload,
)
from . import settings_service, snapshot_service
from .batch_service import BatchWriter


logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("Purchase", "Sales", "Payment", "Receipt")
INVOICE_TYPES = ("Taxable", "Normal")
BILLING_TYPES = ("Cash", "Bank", "Credit")
VAT_RATE = 0.13


class TransactionNotFoundError(NotFoundError):
    pass


class TransactionValidationError(ValidationError):
    pass


class VoucherNotFoundError(NotFoundError):
    pass


TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "type", "date", "amount", "description", "vehicle_id", "party_id", "account_id",
        "invoice_number", "invoice_date", "invoice_type", "billing_type",
        "cheque_number", "cheque_date", "items", "remarks",
    },
    required_on_create={"type", "date", "amount"},
    choices={
        "type": TRANSACTION_TYPES,
        "invoice_type": INVOICE_TYPES,
        "billing_type": BILLING_TYPES,
    },
)

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={
        "date", "vehicle_id", "party_id", "account_id", "purchase_number",
        "invoice_number", "invoice_date", "invoice_type", "billing_type",
        "cheque_number", "cheque_date", "items", "remarks",
    },
    required_on_create={"date", "party_id", "invoice_type", "items"},
    choices={"invoice_type": INVOICE_TYPES, "billing_type": BILLING_TYPES},
)


def calculate_purchase_totals(items, invoice_type: str | None) -> dict:
    """
    subtotal = sum(quantity * rate); VAT 13% only when invoice_type is "Taxable".
    """
    subtotal = sum(
        to_number(item.get("quantity")) * to_number(item.get("rate"))
        for item in items or ()
        if isinstance(item, dict)
    )
    vat = subtotal * VAT_RATE if invoice_type == "Taxable" else 0
    return {"subtotal": subtotal, "vat_amount": vat, "grand_total": subtotal + vat}


# -- Plain transactions -------------------------------------------------------

def list_transactions(
    *,
    party_id: str | None = None,
    vehicle_id: str | None = None,
    type: str | None = None,
    voucher_id: str | None = None,
) -> list[Transaction]:
    query = db.session.query(Transaction)
    if party_id:
        query = query.filter(Transaction.party_id == party_id)
    if vehicle_id:
        query = query.filter(Transaction.vehicle_id == vehicle_id)
    if type:
        query = query.filter(Transaction.type == type)
    if voucher_id:
        query = query.filter(Transaction.voucher_id == voucher_id)
    return query.order_by(Transaction.date.desc(), Transaction.created_at.desc()).all()


def get_transaction(transaction_id: str) -> Transaction:
    row = db.session.get(Transaction, transaction_id)
    if row is None:
        raise TransactionNotFoundError("Transaction not found")
    return row


def create_transaction(*, payload: dict, username: str | None = None) -> Transaction:
    patch = validate_payload(model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=False)
    row = Transaction(**patch)
    row.created_by = username
    db.session.add(row)
    snapshot_service.commit_and_publish("transactions")
    return row


def update_transaction(transaction_id: str, *, payload: dict, username: str | None = None) -> Transaction:
    row = get_transaction(transaction_id)
    if row.purchase_number:
        # Purchase invoices keep their amount tied to their items.
        return update_purchase(transaction_id, payload=payload, username=username)
    if row.trip_id or row.voucher_id:
        raise TransactionValidationError("Edit the source trip or voucher instead")
    patch = validate_payload(model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=True)
    for key, value in patch.items():
        setattr(row, key, value)
    row.touch(username)
    snapshot_service.commit_and_publish("transactions")
    return row


def delete_transaction(transaction_id: str) -> None:
    row = get_transaction(transaction_id)
    db.session.delete(row)
    snapshot_service.commit_and_publish("transactions")


# -- Purchases ----------------------------------------------------------------

def _apply_purchase_totals(row: Transaction) -> dict:
    totals = calculate_purchase_totals(row.items, row.invoice_type)
    row.amount = totals["grand_total"]
    return totals


def create_purchase(*, payload: dict, username: str | None = None) -> Transaction:
    """
    Record a purchase invoice. amount is stored as the grand total.
    """
    patch = validate_payload(model=Transaction, payload=payload, policy=PURCHASE_POLICY, partial=False)
    if not patch.get("items"):
        raise TransactionValidationError("At least one item is required")
    if not patch.get("purchase_number"):
        patch["purchase_number"] = settings_service.allocate_number("purchase")

    row = Transaction(type="Purchase", **patch)
    row.created_by = username
    _apply_purchase_totals(row)
    db.session.add(row)
    snapshot_service.commit_and_publish("transactions")
    logger.info("Purchase %s recorded for %.2f", row.purchase_number, row.amount)
    return row


def update_purchase(transaction_id: str, *, payload: dict, username: str | None = None) -> Transaction:
    row = get_transaction(transaction_id)
    if row.type != "Purchase":
        raise TransactionValidationError("Transaction is not a purchase")
    patch = validate_payload(model=Transaction, payload=payload, policy=PURCHASE_POLICY, partial=True)
    for key, value in patch.items():
        setattr(row, key, value)
    _apply_purchase_totals(row)
    row.touch(username)
    snapshot_service.commit_and_publish("transactions")
    return row


# -- Vouchers -----------------------------------------------------------------

def _voucher_rows(voucher: dict, voucher_id: str, username: str | None) -> list[Transaction]:
    """
    Fan a voucher out into Receipt/Payment rows.

    Each item may carry both a receipt and a payment amount; each positive
    amount becomes its own row.
    """
    voucher_date = parse_date_field(voucher.get("date"), "date", TransactionValidationError)
    if voucher_date is None:
        raise TransactionValidationError("date is required")
    billing_type = voucher.get("billing_type") or "Cash"
    require_choice(billing_type, ("Cash", "Bank"), "billing_type")

    items = voucher.get("items") or []
    if not isinstance(items, list) or not items:
        raise TransactionValidationError("At least one item is required")

    cheque_date = parse_date_field(voucher.get("cheque_date"), "cheque_date", TransactionValidationError)
    rows = []
    for item in items:
        if not isinstance(item, dict):
            raise TransactionValidationError("Voucher items must be objects")
        if not item.get("party_id"):
            raise TransactionValidationError("Each voucher item needs a party_id")
        for txn_type, key in (("Receipt", "rec_amount"), ("Payment", "pay_amount")):
            amount = to_number(item.get(key))
            if amount <= 0:
                continue
            rows.append(
                Transaction(
                    type=txn_type,
                    date=voucher_date,
                    amount=amount,
                    party_id=item.get("party_id"),
                    vehicle_id=item.get("vehicle_id") or None,
                    account_id=voucher.get("account_id"),
                    voucher_id=voucher_id,
                    voucher_no=voucher.get("voucher_no"),
                    billing_type=billing_type,
                    cheque_number=voucher.get("cheque_number"),
                    cheque_date=cheque_date,
                    description=item.get("narration") or None,
                    remarks=voucher.get("remarks"),
                    items=[item],
                    created_by=username,
                )
            )
    if not rows:
        raise TransactionValidationError("Voucher has no positive receipt or payment amounts")
    return rows


def _rows_for_voucher(voucher_id: str) -> list[Transaction]:
    return (
        db.session.query(Transaction)
        .filter_by(voucher_id=voucher_id)
        .order_by(Transaction.created_at, Transaction.id)
        .all()
    )


def _voucher_payload(payload) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise TransactionValidationError("Invalid JSON payload")
    return dict(payload)


def create_voucher(*, payload: dict, username: str | None = None) -> dict:
    payload = _voucher_payload(payload)
    if not payload.get("voucher_no"):
        payload["voucher_no"] = settings_service.allocate_number("paymentReceipt")
    voucher_id = new_id()
    rows = _voucher_rows(payload, voucher_id, username)

    with BatchWriter() as batch:
        for row in rows:
            batch.add(row)

    return get_voucher(voucher_id)


def update_voucher(voucher_id: str, *, payload: dict, username: str | None = None) -> dict:
    """
    Replace every transaction of a voucher.

    Old rows are deleted and new ones added in the same bounded batch; the
    voucher keeps its id and number.
    """
    existing = _rows_for_voucher(voucher_id)
    if not existing:
        raise VoucherNotFoundError("Voucher not found")
    payload = _voucher_payload(payload)
    payload.setdefault("voucher_no", existing[0].voucher_no)
    rows = _voucher_rows(payload, voucher_id, existing[0].created_by)
    for row in rows:
        row.touch(username)

    with BatchWriter() as batch:
        for row in existing:
            batch.delete(row)
        for row in rows:
            batch.add(row)

    return get_voucher(voucher_id)


def delete_voucher(voucher_id: str) -> int:
    existing = _rows_for_voucher(voucher_id)
    if not existing:
        raise VoucherNotFoundError("Voucher not found")
    with BatchWriter() as batch:
        for row in existing:
            batch.delete(row)
    return len(existing)


def get_voucher(voucher_id: str) -> dict:
    rows = _rows_for_voucher(voucher_id)
    if not rows:
        raise VoucherNotFoundError("Voucher not found")
    first = rows[0]
    return {
        "voucher_id": voucher_id,
        "voucher_no": first.voucher_no,
        "date": first.date.isoformat() if first.date else None,
        "billing_type": first.billing_type,
        "account_id": first.account_id,
        "total_receipt": sum(r.amount for r in rows if r.type == "Receipt"),
        "total_payment": sum(r.amount for r in rows if r.type == "Payment"),
        "transactions": [r.to_dict() for r in rows],
    }


def list_vouchers() -> list[dict]:
    voucher_ids = [
        row[0]
        for row in db.session.query(Transaction.voucher_id)
        .filter(Transaction.voucher_id.isnot(None))
        .distinct()
        .all()
    ]
    vouchers = [get_voucher(v) for v in voucher_ids]
    return sorted(vouchers, key=lambda v: (v["date"] or "", v["voucher_no"] or ""), reverse=True)

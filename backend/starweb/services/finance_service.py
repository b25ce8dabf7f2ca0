# Overview: Service-layer operations for finance utilities; TDS, estimate invoices, cheque splits and amount in words.

"""
Finance Utilities

- TDS: tds = amount * rate, net = amount - tds. Saved calculations also carry
  13% VAT when requested and net_payable = taxable + vat - tds.
- Estimate invoice: gross = sum(qty * rate), VAT 13%, net = gross + VAT.
- Cheques: an invoice amount split into n cheques, floor(total / n) each with
  the remainder spread one unit at a time over the first splits.
- amount_to_words: Nepali/Indian grouping (crore, lakh, thousand) plus paisa.
"""

import logging
import math
from datetime import timedelta

from ..extensions import db
from ..models import Cheque, EstimateInvoice, TdsCalculation
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    parse_date_field,
    to_number,
    validate_payload,
)
from . import settings_service, snapshot_service


logger = logging.getLogger(__name__)

DEFAULT_TDS_RATE = 0.015
VAT_RATE = 0.13
AMOUNT_TOLERANCE = 0.005

_ONES = (
    "", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
    "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen",
    "eighteen", "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety")
_GROUPS = ((10_000_000, "crore"), (100_000, "lakh"), (1_000, "thousand"), (100, "hundred"))


class FinanceValidationError(ValidationError):
    pass


class FinanceNotFoundError(NotFoundError):
    pass


# -- Pure calculations --------------------------------------------------------

def calculate_tds(amount, rate=DEFAULT_TDS_RATE) -> dict:
    value = to_number(amount)
    tds = value * to_number(rate)
    return {"amount": value, "rate": to_number(rate), "tds": tds, "net": value - tds}


def calculate_tds_voucher(taxable_amount, *, tds_rate_percent=DEFAULT_TDS_RATE * 100, include_vat: bool = False) -> dict:
    taxable = to_number(taxable_amount)
    tds = taxable * to_number(tds_rate_percent) / 100
    vat = taxable * VAT_RATE if include_vat else 0.0
    return {
        "taxable_amount": taxable,
        "tds_rate": to_number(tds_rate_percent),
        "tds_amount": tds,
        "vat_amount": vat,
        "net_payable": taxable + vat - tds,
    }


def _two_digits(n: int) -> str:
    if n < 20:
        return _ONES[n]
    return f"{_TENS[n // 10]} {_ONES[n % 10]}".strip()


def _integer_words(n: int) -> str:
    """Words for a non-negative integer; crore may repeat for very large values."""
    if n == 0:
        return "zero"
    parts = []
    if n >= 1_000_000_000:
        parts.append(f"{_integer_words(n // 10_000_000)} crore")
        n %= 10_000_000
    for size, name in _GROUPS:
        if n >= size:
            parts.append(f"{_two_digits(n // size)} {name}")
            n %= size
    if n:
        parts.append(_two_digits(n))
    return " ".join(parts)


def amount_to_words(amount) -> str:
    """
    "1,25,050.75" -> "One Lakh Twenty Five Thousand Fifty Rupees And Seventy Five Paisa Only."
    """
    value = abs(to_number(amount))
    rupees = math.floor(value)
    paisa = int(math.floor((value - rupees) * 100 + 0.5))
    if paisa == 100:
        rupees, paisa = rupees + 1, 0

    text = f"{_integer_words(rupees)} rupees"
    if paisa:
        text += f" and {_two_digits(paisa)} paisa"
    return " ".join(word.capitalize() for word in text.split()) + " Only."


def calculate_estimate(items) -> dict:
    """Line gross = quantity * rate; totals with 13% VAT and the net in words."""
    lines = []
    for item in items or ():
        if not isinstance(item, dict):
            continue
        quantity = to_number(item.get("quantity"))
        rate = to_number(item.get("rate"))
        lines.append({**item, "quantity": quantity, "rate": rate, "gross": quantity * rate})

    gross_total = sum(line["gross"] for line in lines)
    vat_total = gross_total * VAT_RATE
    net_total = gross_total + vat_total
    return {
        "items": lines,
        "total_quantity": sum(line["quantity"] for line in lines),
        "gross_total": gross_total,
        "vat_total": vat_total,
        "net_total": net_total,
        "amount_in_words": amount_to_words(net_total),
    }


def split_cheques(total_amount, number_of_splits: int, *, base_date=None, intervals=None) -> list[dict]:
    """
    Split an amount into cheques.

    Whole rupees are shared out as floor(total / n) plus one for each of the
    first (total mod n) cheques; paisa stay on the last cheque so the splits
    always add up to the amount. Each cheque date is base_date + its interval
    in days (interval 0 when not given).
    """
    try:
        n = int(number_of_splits)
    except (TypeError, ValueError):
        raise FinanceValidationError("number_of_splits must be an integer")
    if n < 1:
        raise FinanceValidationError("number_of_splits must be at least 1")

    total = to_number(total_amount)
    if total <= 0:
        raise FinanceValidationError("amount must be greater than 0")

    whole = math.floor(total)
    paisa = round(total - whole, 2)
    share, remainder = divmod(whole, n)
    start = parse_date_field(base_date, "base_date", FinanceValidationError)
    if intervals is not None and not isinstance(intervals, (list, tuple)):
        raise FinanceValidationError("intervals must be a list of day counts")
    intervals = list(intervals or ())

    splits = []
    for i in range(n):
        amount = share + (1 if i < remainder else 0)
        if i == n - 1:
            amount = round(amount + paisa, 2)
        interval = int(to_number(intervals[i])) if i < len(intervals) else 0
        interval = max(interval, 0)
        try:
            cheque_date = (start + timedelta(days=interval)).isoformat() if start else None
        except OverflowError:
            raise FinanceValidationError(f"Cheque {i + 1}: interval of {interval} days is out of range")
        splits.append({
            "cheque_date": cheque_date,
            "interval": interval,
            "amount": amount,
            "cheque_number": "",
            "remarks": "",
        })
    return splits


# -- Saved TDS calculations ---------------------------------------------------

def list_tds_calculations() -> list[TdsCalculation]:
    return db.session.query(TdsCalculation).order_by(TdsCalculation.date.desc(), TdsCalculation.created_at.desc()).all()


def get_tds_calculation(calc_id: str) -> TdsCalculation:
    calc = db.session.get(TdsCalculation, calc_id)
    if calc is None:
        raise FinanceNotFoundError("TDS calculation not found")
    return calc


def _tds_fields(payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise FinanceValidationError("Invalid JSON payload")
    allowed = {"voucher_no", "date", "party_name", "taxable_amount", "tds_rate", "include_vat"}
    unknown = set(payload) - allowed
    if unknown:
        raise FinanceValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")
    return payload


def create_tds_calculation(*, payload: dict, username: str | None = None) -> TdsCalculation:
    data = _tds_fields(payload)
    day = parse_date_field(data.get("date"), "date", FinanceValidationError)
    if day is None:
        raise FinanceValidationError("date is required")
    if to_number(data.get("taxable_amount")) <= 0:
        raise FinanceValidationError("taxable_amount must be greater than 0")

    figures = calculate_tds_voucher(
        data.get("taxable_amount"),
        tds_rate_percent=data.get("tds_rate", DEFAULT_TDS_RATE * 100),
        include_vat=bool(data.get("include_vat")),
    )
    calc = TdsCalculation(
        voucher_no=data.get("voucher_no") or settings_service.allocate_number("tdsVoucher"),
        date=day,
        party_name=(data.get("party_name") or "").strip() or None,
        created_by=username,
        **figures,
    )
    db.session.add(calc)
    snapshot_service.commit_and_publish("tds_calculations")
    logger.info("TDS voucher %s saved", calc.voucher_no)
    return calc


def update_tds_calculation(calc_id: str, *, payload: dict, username: str | None = None) -> TdsCalculation:
    calc = get_tds_calculation(calc_id)
    data = _tds_fields(payload)
    if "date" in data:
        day = parse_date_field(data["date"], "date", FinanceValidationError)
        if day is None:
            raise FinanceValidationError("date is required")
        calc.date = day
    if "voucher_no" in data and data["voucher_no"]:
        calc.voucher_no = data["voucher_no"]
    if "party_name" in data:
        calc.party_name = (data.get("party_name") or "").strip() or None

    include_vat = data["include_vat"] if "include_vat" in data else calc.vat_amount > 0
    figures = calculate_tds_voucher(
        data.get("taxable_amount", calc.taxable_amount),
        tds_rate_percent=data.get("tds_rate", calc.tds_rate),
        include_vat=bool(include_vat),
    )
    for key, value in figures.items():
        setattr(calc, key, value)
    calc.touch(username)
    snapshot_service.commit_and_publish("tds_calculations")
    return calc


def delete_tds_calculation(calc_id: str) -> None:
    db.session.delete(get_tds_calculation(calc_id))
    snapshot_service.commit_and_publish("tds_calculations")


# -- Estimate invoices --------------------------------------------------------

ESTIMATE_POLICY = ModelValidationPolicy(
    writable_fields={"invoice_number", "date", "party_name", "items"},
    required_on_create={"invoice_number", "date", "party_name", "items"},
)


def _check_estimate_items(items) -> None:
    if not items:
        raise FinanceValidationError("At least one item is required")
    for item in items:
        if not isinstance(item, dict) or not item.get("product_name") or not item.get("quantity") or not item.get("rate"):
            raise FinanceValidationError("Every item needs product_name, quantity and rate")


def _apply_estimate(invoice: EstimateInvoice) -> None:
    figures = calculate_estimate(invoice.items)
    invoice.items = figures["items"]
    invoice.gross_total = figures["gross_total"]
    invoice.vat_total = figures["vat_total"]
    invoice.net_total = figures["net_total"]
    invoice.amount_in_words = figures["amount_in_words"]


def list_estimates() -> list[EstimateInvoice]:
    return db.session.query(EstimateInvoice).order_by(EstimateInvoice.date.desc(), EstimateInvoice.created_at.desc()).all()


def get_estimate(invoice_id: str) -> EstimateInvoice:
    invoice = db.session.get(EstimateInvoice, invoice_id)
    if invoice is None:
        raise FinanceNotFoundError("Estimate invoice not found")
    return invoice


def create_estimate(*, payload: dict, username: str | None = None) -> EstimateInvoice:
    patch = validate_payload(model=EstimateInvoice, payload=payload, policy=ESTIMATE_POLICY, partial=False)
    _check_estimate_items(patch["items"])
    invoice = EstimateInvoice(created_by=username, **patch)
    _apply_estimate(invoice)
    db.session.add(invoice)
    snapshot_service.commit_and_publish("estimate_invoices")
    return invoice


def update_estimate(invoice_id: str, *, payload: dict, username: str | None = None) -> EstimateInvoice:
    invoice = get_estimate(invoice_id)
    patch = validate_payload(model=EstimateInvoice, payload=payload, policy=ESTIMATE_POLICY, partial=True)
    if "items" in patch:
        _check_estimate_items(patch["items"])
    for key, value in patch.items():
        setattr(invoice, key, value)
    _apply_estimate(invoice)
    invoice.touch(username)
    snapshot_service.commit_and_publish("estimate_invoices")
    return invoice


def delete_estimate(invoice_id: str) -> None:
    db.session.delete(get_estimate(invoice_id))
    snapshot_service.commit_and_publish("estimate_invoices")


# -- Cheques ------------------------------------------------------------------

CHEQUE_POLICY = ModelValidationPolicy(
    writable_fields={
        "voucher_no", "payment_date", "invoice_date", "invoice_number",
        "party_name", "payee_name", "amount", "splits",
    },
    required_on_create={"payee_name", "amount", "splits"},
)


def _clean_splits(splits, amount: float) -> list[dict]:
    if not isinstance(splits, list) or not splits:
        raise FinanceValidationError("At least one cheque split is required")
    cleaned = []
    for split in splits:
        if not isinstance(split, dict):
            raise FinanceValidationError("Each split must be an object")
        cheque_date = parse_date_field(split.get("cheque_date"), "cheque_date", FinanceValidationError)
        cleaned.append({
            "cheque_date": cheque_date.isoformat() if cheque_date else None,
            "cheque_number": str(split.get("cheque_number") or "").strip(),
            "amount": to_number(split.get("amount")),
            "remarks": str(split.get("remarks") or "").strip(),
            "status": split.get("status") or "Due",
        })
    total = sum(s["amount"] for s in cleaned)
    if abs(total - amount) > AMOUNT_TOLERANCE:
        raise FinanceValidationError("Total of splits must equal the invoice amount")
    return cleaned


def list_cheques() -> list[Cheque]:
    return db.session.query(Cheque).order_by(Cheque.created_at.desc()).all()


def get_cheque(cheque_id: str) -> Cheque:
    cheque = db.session.get(Cheque, cheque_id)
    if cheque is None:
        raise FinanceNotFoundError("Cheque not found")
    return cheque


def create_cheque(*, payload: dict, username: str | None = None) -> Cheque:
    patch = validate_payload(model=Cheque, payload=payload, policy=CHEQUE_POLICY, partial=False)
    if patch["amount"] <= 0:
        raise FinanceValidationError("amount must be greater than 0")
    patch["splits"] = _clean_splits(patch["splits"], patch["amount"])
    cheque = Cheque(created_by=username, amount_in_words=amount_to_words(patch["amount"]), **patch)
    db.session.add(cheque)
    snapshot_service.commit_and_publish("cheques")
    return cheque


def update_cheque(cheque_id: str, *, payload: dict, username: str | None = None) -> Cheque:
    cheque = get_cheque(cheque_id)
    patch = validate_payload(model=Cheque, payload=payload, policy=CHEQUE_POLICY, partial=True)
    amount = patch.get("amount", cheque.amount)
    if amount is None or amount <= 0:
        raise FinanceValidationError("amount must be greater than 0")
    patch["splits"] = _clean_splits(patch.get("splits", cheque.splits), amount)
    for key, value in patch.items():
        setattr(cheque, key, value)
    cheque.amount_in_words = amount_to_words(amount)
    cheque.touch(username)
    snapshot_service.commit_and_publish("cheques")
    return cheque


def delete_cheque(cheque_id: str) -> None:
    db.session.delete(get_cheque(cheque_id))
    snapshot_service.commit_and_publish("cheques")

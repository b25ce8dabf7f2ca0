# Overview: Service-layer operations for application settings and document numbering.

"""
Settings and Document Numbering

Settings are key -> JSON value records. Known keys:
- documentPrefixes: {kind: prefix} overrides for serial numbers
- bonusMinPresentDays: default minimum qualifying days for bonus

Document numbers are <prefix><max+1 zero-padded to 3 digits>. Only existing
numbers that start with the current prefix take part in the max.
"""

import re

from ..extensions import db
from ..models import AppSetting
from ..validation import ValidationError


DOCUMENT_PREFIXES_KEY = "documentPrefixes"
BONUS_MIN_PRESENT_DAYS_KEY = "bonusMinPresentDays"

DEFAULT_PREFIXES = {
    "report": "2082/083-",
    "purchaseOrder": "SPI-",
    "purchase": "PUR-",
    "sales": "SALE-",
    "paymentReceipt": "VOU-",
    "tdsVoucher": "TDS-",
}

NUMBER_PAD = 3

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


class UnknownDocumentKindError(ValidationError):
    pass


def get_setting(key: str, default=None):
    row = db.session.get(AppSetting, key)
    if row is None or row.value is None:
        return default
    return row.value


def set_setting(key: str, value, username: str | None = None) -> AppSetting:
    if not key or not str(key).strip():
        raise ValidationError("key is required")
    row = db.session.get(AppSetting, key)
    if row is None:
        row = AppSetting(key=key)
        db.session.add(row)
    row.value = value
    row.updated_by = username
    db.session.commit()
    return row


def list_settings() -> list[AppSetting]:
    return db.session.query(AppSetting).order_by(AppSetting.key).all()


def get_document_prefixes() -> dict:
    stored = get_setting(DOCUMENT_PREFIXES_KEY, {}) or {}
    merged = dict(DEFAULT_PREFIXES)
    merged.update({k: v for k, v in stored.items() if v})
    return merged


def get_prefix(kind: str) -> str:
    prefixes = get_document_prefixes()
    if kind not in prefixes:
        raise UnknownDocumentKindError(f"Unknown document kind: {kind}")
    return prefixes[kind]


def next_number_from(prefix: str, existing_numbers, pad: int = NUMBER_PAD) -> str:
    """
    Pure numbering rule: max numeric suffix among matching numbers, plus one.

    The suffix is read like a leading-integer parse, so "SPI-012a" counts as 12
    and "SPI-abc" is ignored.
    """
    max_number = 0
    for number in existing_numbers:
        if not number or not str(number).startswith(prefix):
            continue
        match = _LEADING_DIGITS.match(str(number)[len(prefix):])
        if match:
            max_number = max(max_number, int(match.group(1)))
    return f"{prefix}{str(max_number + 1).zfill(pad)}"


def next_document_number(kind: str, existing_numbers) -> str:
    return next_number_from(get_prefix(kind), existing_numbers)


def _existing_numbers(kind: str) -> list:
    from ..models import PurchaseOrder, Report, TdsCalculation, Transaction, Trip

    columns = {
        "report": Report.serial_number,
        "purchaseOrder": PurchaseOrder.po_number,
        "purchase": Transaction.purchase_number,
        "sales": Trip.trip_number,
        "paymentReceipt": Transaction.voucher_no,
        "tdsVoucher": TdsCalculation.voucher_no,
    }
    if kind not in columns:
        raise UnknownDocumentKindError(f"Unknown document kind: {kind}")
    column = columns[kind]
    return [row[0] for row in db.session.query(column).filter(column.isnot(None)).distinct().all()]


def allocate_number(kind: str) -> str:
    """Next number for kind based on what is already stored."""
    return next_document_number(kind, _existing_numbers(kind))


def update_document_prefixes(prefixes: dict, username: str | None = None) -> dict:
    if not isinstance(prefixes, dict):
        raise ValidationError("prefixes must be an object")
    unknown = [k for k in prefixes if k not in DEFAULT_PREFIXES]
    if unknown:
        raise UnknownDocumentKindError(f"Unknown document kind: {', '.join(unknown)}")
    stored = dict(get_setting(DOCUMENT_PREFIXES_KEY, {}) or {})
    stored.update({k: str(v).strip() for k, v in prefixes.items()})
    set_setting(DOCUMENT_PREFIXES_KEY, stored, username)
    return get_document_prefixes()

# Overview: Service-layer operations for party ledgers; running balance over a party's transactions.

from __future__ import annotations

from datetime import date

from ..bs_calendar import to_bs_string
from ..extensions import db
from ..models import Account, Party, Transaction
from ..time_utils import parse_iso_date
from ..validation import NotFoundError, to_number

"""
Party Ledger Invariants (authoritative)

- Rows are sorted ascending by transaction date; the sort is stable, so
  same-day rows keep their input order.
- Sales and Payment post to debit; Receipt and Purchase post to credit.
  This is the party-perspective convention the business uses. Keep it.
- balance(i) = sum(debit - credit) for rows 1..i.
- closing_balance is the last row's balance (0 for an empty ledger);
  total_debit/total_credit are plain column sums.
- build_party_ledger() is pure: same input, same output.
"""

DEBIT_TYPES = {"Sales", "Payment"}
CREDIT_TYPES = {"Receipt", "Purchase"}
NOT_AVAILABLE = "N/A"


class PartyNotFoundError(NotFoundError):
    pass


def _field(txn, key):
    if isinstance(txn, dict):
        return txn.get(key)
    return getattr(txn, key, None)


def _txn_date(txn) -> date | None:
    try:
        return parse_iso_date(_field(txn, "date"))
    except ValueError:
        return None


def _particulars(txn, accounts_by_id: dict) -> str:
    txn_type = _field(txn, "type")
    particulars = _field(txn, "remarks") or txn_type
    if txn_type in ("Sales", "Purchase"):
        number = _field(txn, "purchase_number") or _field(txn, "trip_number") or ""
        particulars = f"{txn_type} #{number}"
    if txn_type in ("Receipt", "Payment"):
        account = accounts_by_id.get(_field(txn, "account_id"))
        billing_type = _field(txn, "billing_type")
        if billing_type == "Bank" and account is not None:
            bank_name = _field(account, "bank_name")
            particulars = f"{txn_type} via {bank_name} Chq #{_field(txn, 'cheque_number')}"
        elif billing_type == "Cash":
            particulars = f"{txn_type} via Cash"
    return particulars


def build_party_ledger(transactions, accounts=()) -> dict:
    """
    Build ledger rows with a running balance.

    transactions/accounts may be model instances or dicts. Missing dates sort
    first.
    """
    accounts_by_id = {_field(a, "id"): a for a in accounts or ()}
    ordered = sorted(transactions or (), key=lambda t: _txn_date(t) or date.min)

    rows = []
    balance = 0.0
    total_debit = 0.0
    total_credit = 0.0
    for txn in ordered:
        txn_type = _field(txn, "type")
        amount = to_number(_field(txn, "amount"))
        debit = amount if txn_type in DEBIT_TYPES else 0.0
        credit = amount if txn_type in CREDIT_TYPES else 0.0
        balance += debit - credit
        total_debit += debit
        total_credit += credit

        txn_date = _txn_date(txn)
        rows.append({
            "id": _field(txn, "id"),
            "date": txn_date.isoformat() if txn_date else None,
            "date_bs": to_bs_string(txn_date),
            "particulars": _particulars(txn, accounts_by_id),
            "voucher_type": txn_type,
            "voucher_no": (
                _field(txn, "purchase_number")
                or _field(txn, "trip_number")
                or _field(txn, "voucher_id")
                or NOT_AVAILABLE
            ),
            "debit": debit,
            "credit": credit,
            "balance": balance,
        })

    return {
        "rows": rows,
        "closing_balance": rows[-1]["balance"] if rows else 0.0,
        "total_debit": total_debit,
        "total_credit": total_credit,
    }


def get_party_ledger(party_id: str) -> dict:
    """Load a party's transactions and build its ledger."""
    party = db.session.get(Party, party_id)
    if party is None:
        raise PartyNotFoundError("Party not found")

    transactions = (
        db.session.query(Transaction)
        .filter(Transaction.party_id == party_id)
        .order_by(Transaction.created_at, Transaction.id)
        .all()
    )
    accounts = db.session.query(Account).all()
    ledger = build_party_ledger(transactions, accounts)
    ledger["party"] = party.to_dict()
    return ledger


def party_balances() -> list[dict]:
    """Closing balance per party, for the ledger index page."""
    parties = db.session.query(Party).order_by(Party.name).all()
    transactions = db.session.query(Transaction).filter(Transaction.party_id.isnot(None)).all()
    by_party: dict[str, list] = {}
    for txn in transactions:
        by_party.setdefault(txn.party_id, []).append(txn)

    result = []
    for party in parties:
        ledger = build_party_ledger(by_party.get(party.id, []))
        result.append({
            "party_id": party.id,
            "name": party.name,
            "type": party.type,
            "total_debit": ledger["total_debit"],
            "total_credit": ledger["total_credit"],
            "closing_balance": ledger["closing_balance"],
        })
    return result

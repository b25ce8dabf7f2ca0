# Overview: Service-layer operations for live snapshots; full-result-set change feeds per collection.

"""
Live Snapshot Feeds

WHY: Clients keep a local copy of a collection and replace it wholesale
whenever it changes. Every event carries the full current result set, never
a diff, so a consumer only has to keep the latest value.

DESIGN:
- A collection name is a table name (e.g. "trips", "transactions")
- Each collection has a monotonically increasing revision
- publish() runs after a committed mutation; it re-reads the collection and
  delivers it to every subscriber
- Delivery may repeat (one publish per batch flush); consumers must be
  idempotent (last value wins)
- The hub lives on app.extensions, not in module state
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from flask import current_app

from ..extensions import db


logger = logging.getLogger(__name__)

Listener = Callable[[str, int, list], None]


class UnknownCollectionError(Exception):
    """Raised when a snapshot is requested for a collection that is not registered."""
    pass


@dataclass
class _Feed:
    revision: int = 0
    listeners: list = field(default_factory=list)


class SnapshotHub:
    """Per-application registry of collection feeds."""

    def __init__(self):
        self._feeds: dict[str, _Feed] = {}
        self._lock = threading.Lock()

    def _feed(self, collection: str) -> _Feed:
        with self._lock:
            return self._feeds.setdefault(collection, _Feed())

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        feed = self._feed(collection)
        with self._lock:
            feed.listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in feed.listeners:
                    feed.listeners.remove(listener)

        return unsubscribe

    def bump(self, collection: str) -> tuple[int, list]:
        feed = self._feed(collection)
        with self._lock:
            feed.revision += 1
            return feed.revision, list(feed.listeners)

    def revision(self, collection: str) -> int:
        return self._feed(collection).revision


def init_app(app) -> None:
    app.extensions["snapshots"] = SnapshotHub()


def _hub() -> SnapshotHub:
    return current_app.extensions["snapshots"]


def _models_by_collection() -> dict:
    from .. import models

    return {
        m.__tablename__: m
        for m in (
            models.Party, models.Account, models.Vehicle, models.Driver, models.Destination,
            models.PolicyOrMembership, models.Transaction, models.Trip,
            models.RawMaterial, models.UnitOfMeasure, models.PurchaseOrder,
            models.Product, models.Report, models.CostReport,
            models.Employee, models.AttendanceRecord, models.PayrollRun,
            models.TdsCalculation, models.Cheque, models.EstimateInvoice,
            models.Note,
        )
    }


def collections() -> list[str]:
    return sorted(_models_by_collection())


def load_collection(collection: str) -> list[dict]:
    """Full current result set for a collection, as dicts."""
    model = _models_by_collection().get(collection)
    if model is None:
        raise UnknownCollectionError(f"Unknown collection: {collection}")
    rows = db.session.query(model).order_by(model.created_at, model.id).all()
    return [row.to_dict() for row in rows]


def subscribe(collection: str, listener: Listener) -> Callable[[], None]:
    """
    Register listener(collection, revision, rows). Returns an unsubscribe callable.
    """
    if collection not in _models_by_collection():
        raise UnknownCollectionError(f"Unknown collection: {collection}")
    return _hub().subscribe(collection, listener)


def publish(*collection_names: str) -> None:
    """
    Deliver the full snapshot of each collection to its subscribers.

    Call only after the mutation is committed.
    """
    hub = _hub()
    for collection in dict.fromkeys(collection_names):
        revision, listeners = hub.bump(collection)
        if not listeners:
            continue
        rows = load_collection(collection)
        for listener in listeners:
            try:
                listener(collection, revision, rows)
            except Exception:
                # One failing consumer must not block delivery to the rest.
                logger.exception("Snapshot listener failed for %s (revision %s)", collection, revision)


def get_snapshot(collection: str) -> dict:
    rows = load_collection(collection)
    return {
        "collection": collection,
        "revision": _hub().revision(collection),
        "items": rows,
        "count": len(rows),
    }


def commit_and_publish(*collection_names: str) -> None:
    db.session.commit()
    publish(*collection_names)

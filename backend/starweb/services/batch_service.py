# Overview: Service-layer operations for bounded batch writes; chunked commits with a per-chunk cap.

"""
Bounded Batch Writer

WHY: Multi-record rewrites (voucher edits, trip-derived transactions,
attendance imports, month deletes) can touch more rows than one write batch
may carry. Operations are accumulated and committed in chunks of at most
`limit` operations.

DESIGN:
- add/update/delete each count as one operation
- When the counter reaches the limit the chunk is committed and the counter
  resets; accumulation continues
- commit() flushes the remainder
- Chunks commit sequentially; a failure rolls back only the open chunk
- After each committed chunk the touched collections are published to
  snapshot subscribers
"""

import logging

from flask import current_app

from ..extensions import db
from . import snapshot_service


logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 499


class BatchWriter:
    def __init__(self, limit: int | None = None):
        if limit is None:
            limit = current_app.config.get("BATCH_WRITE_LIMIT", DEFAULT_BATCH_LIMIT)
        if limit < 1:
            raise ValueError("Batch limit must be >= 1")
        self.limit = limit
        self.pending = 0
        self.total = 0
        self.flushes = 0
        self._touched: set[str] = set()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            db.session.rollback()
            return False
        self.commit()
        return False

    def add(self, obj) -> None:
        db.session.add(obj)
        self._count(obj)

    def update(self, obj, **fields) -> None:
        for key, value in fields.items():
            setattr(obj, key, value)
        db.session.add(obj)
        self._count(obj)

    def delete(self, obj) -> None:
        db.session.delete(obj)
        self._count(obj)

    def _count(self, obj) -> None:
        self._touched.add(obj.__tablename__)
        self.pending += 1
        self.total += 1
        if self.pending >= self.limit:
            self.flush()

    def flush(self) -> None:
        if self.pending == 0:
            return
        db.session.commit()
        self.flushes += 1
        logger.debug("Batch flush %s committed %s operations", self.flushes, self.pending)
        self.pending = 0
        touched, self._touched = sorted(self._touched), set()
        snapshot_service.publish(*touched)

    def commit(self) -> "BatchWriter":
        self.flush()
        return self

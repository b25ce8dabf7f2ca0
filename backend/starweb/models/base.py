# Overview: Shared column helpers for document-shaped records.

from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


def new_id() -> str:
    return uuid.uuid4().hex


class AuditMixin:
    """
    Generated string id plus audit metadata.

    WHY: Records keep the shape of the document store they were modelled on.
    References between records are plain string ids; nothing is enforced.
    """
    id = db.Column(db.String(32), primary_key=True, default=new_id)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_modified_by = db.Column(db.String(64), nullable=True)
    last_modified_at = db.Column(db.DateTime, nullable=True)

    def touch(self, username: str | None) -> None:
        self.last_modified_by = username
        self.last_modified_at = utcnow()

    def audit_dict(self) -> dict:
        return {
            "id": self.id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "last_modified_by": self.last_modified_by,
            "last_modified_at": to_utc_z(self.last_modified_at),
        }

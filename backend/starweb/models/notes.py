from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from .base import AuditMixin


class Note(AuditMixin, db.Model):
    """Note or to-do item. Open to-dos list before completed ones."""
    __tablename__ = "notes"

    type = db.Column(db.String(16), nullable=False, default="Todo")
    title = db.Column(db.String(255), nullable=True)
    content = db.Column(db.Text, nullable=False)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    due_date = db.Column(db.Date, nullable=True)

    def to_dict(self) -> dict:
        return {
            **self.audit_dict(),
            "type": self.type,
            "title": self.title,
            "content": self.content,
            "is_completed": bool(self.is_completed),
            "due_date": to_iso_date(self.due_date),
        }

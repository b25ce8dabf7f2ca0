from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AppSetting(db.Model):
    """
    Key -> JSON value application settings (document prefixes, bonus minimums).
    """
    __tablename__ = "app_settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.JSON, nullable=True)

    updated_by = db.Column(db.String(64), nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "updated_by": self.updated_by,
            "updated_at": to_utc_z(self.updated_at),
        }

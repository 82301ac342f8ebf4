import json
from datetime import datetime

from warehouse_tracker.extensions import db


class DeletionRecord(db.Model):
    """Snapshot of deleted rows kept for the undo window."""

    __tablename__ = "deletion_records"

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), nullable=False, unique=True, index=True)

    kind = db.Column(db.String(16), nullable=False)  # warehouse | section | row
    warehouse_letter = db.Column(db.String(8), nullable=False)
    payload = db.Column(db.Text, nullable=False, default="{}")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    restored_at = db.Column(db.DateTime, nullable=True)

    def payload_dict(self) -> dict:
        try:
            return json.loads(self.payload or "{}")
        except Exception:
            return {}

    def to_dict(self):
        return {
            "token": self.token,
            "kind": self.kind,
            "warehouse_letter": self.warehouse_letter,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "restored_at": self.restored_at.isoformat() if self.restored_at else None,
        }

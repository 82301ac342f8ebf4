from datetime import datetime

from warehouse_tracker.extensions import db


class DailyUtilization(db.Model):
    __tablename__ = "daily_utilization"
    __table_args__ = (
        db.UniqueConstraint("warehouse_id", "date", name="uq_daily_utilization_warehouse_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    # NULL means the whole site
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False, index=True)

    total_space = db.Column(db.Integer, nullable=False, default=0)
    utilized_space = db.Column(db.Integer, nullable=False, default=0)
    utilization_percent = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "warehouse_id": int(self.warehouse_id) if self.warehouse_id is not None else None,
            "date": self.date.isoformat() if self.date else None,
            "total_space": int(self.total_space or 0),
            "utilized_space": int(self.utilized_space or 0),
            "utilization_percent": float(self.utilization_percent or 0.0),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

from datetime import datetime

from warehouse_tracker.extensions import db


class Warehouse(db.Model):
    __tablename__ = "warehouses"

    id = db.Column(db.Integer, primary_key=True)
    letter = db.Column(db.String(8), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="indoor")  # indoor | outdoor

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    last_modified = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    sections = db.relationship(
        "WarehouseSection",
        backref="warehouse",
        cascade="all, delete-orphan",
        order_by="WarehouseSection.section_number",
        lazy="select",
    )

    def touch(self, now=None):
        now = now or datetime.utcnow()
        self.updated_at = now
        self.last_modified = now

    def to_dict(self, include_sections: bool = False):
        out = {
            "id": int(self.id) if self.id is not None else None,
            "letter": self.letter,
            "name": self.name,
            "kind": self.type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }
        if include_sections:
            out["sections"] = [s.to_dict() for s in self.ordered_sections()]
        return out

    def ordered_sections(self):
        return sorted(self.sections, key=lambda s: (int(s.position or 0), int(s.section_number)))


class WarehouseSection(db.Model):
    __tablename__ = "warehouse_sections"
    __table_args__ = (
        db.UniqueConstraint("warehouse_id", "section_number", name="uq_warehouse_sections_number"),
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    section_number = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="available")  # occupied | available
    position = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def key(self) -> str:
        letter = self.warehouse.letter if self.warehouse is not None else ""
        return f"{letter}{int(self.section_number)}"

    def to_dict(self):
        return {
            "id": int(self.id) if self.id is not None else None,
            "warehouse_id": int(self.warehouse_id) if self.warehouse_id is not None else None,
            "key": self.key,
            "section_number": int(self.section_number),
            "status": self.status,
            "position": int(self.position or 0),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

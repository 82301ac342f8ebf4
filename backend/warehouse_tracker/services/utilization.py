from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from warehouse_tracker.extensions import db
from warehouse_tracker.models import DailyUtilization, Warehouse
from warehouse_tracker.utils.dashboard_state import DashboardState, reduce
from warehouse_tracker.utils.utilization import UtilizationStats


def load_dashboard_state(undo_window_seconds: int = 3, sections_per_row: int = 3) -> DashboardState:
    """Build the dashboard state from the stored warehouses and sections."""
    rows = Warehouse.query.order_by(Warehouse.letter.asc()).all()
    snapshot = []
    for wh in rows:
        d = wh.to_dict(include_sections=True)
        snapshot.append({
            "letter": d["letter"],
            "name": d["name"],
            "kind": d["kind"],
            "last_modified": d["last_modified"],
            "sections": d["sections"],
        })
    state = DashboardState(undo_window_seconds=undo_window_seconds, sections_per_row=sections_per_row)
    return reduce(state, {"type": "load_snapshot", "warehouses": snapshot})


def fetch_daily_samples(start: date, end: date, warehouse_id: Optional[int] = None) -> List[dict]:
    """Stored samples inside ``[start, end]`` plus the latest one before ``start``.

    ``warehouse_id=None`` reads the site-wide rows.
    """
    base = DailyUtilization.query
    if warehouse_id is None:
        base = base.filter(DailyUtilization.warehouse_id.is_(None))
    else:
        base = base.filter(DailyUtilization.warehouse_id == int(warehouse_id))

    rows = (
        base.filter(DailyUtilization.date >= start, DailyUtilization.date <= end)
        .order_by(DailyUtilization.date.asc())
        .all()
    )
    prior = (
        base.filter(DailyUtilization.date < start)
        .order_by(DailyUtilization.date.desc())
        .first()
    )
    if prior is not None:
        rows = [prior] + rows
    return [{"date": r.date, "value": float(r.utilization_percent or 0.0)} for r in rows]


def upsert_daily_utilization(day: date, stats: UtilizationStats, warehouse_id: Optional[int] = None) -> DailyUtilization:
    """Insert or update the sample for ``(warehouse_id, day)``. Caller commits."""
    now = datetime.utcnow()
    row = DailyUtilization.query.filter_by(warehouse_id=warehouse_id, date=day).first()
    if row is None:
        row = DailyUtilization(warehouse_id=warehouse_id, date=day, created_at=now)
    row.total_space = int(stats.total_sections)
    row.utilized_space = int(stats.occupied_sections)
    row.utilization_percent = float(stats.utilization_percent)
    row.updated_at = now
    db.session.add(row)
    return row

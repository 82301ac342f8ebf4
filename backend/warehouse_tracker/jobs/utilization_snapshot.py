from __future__ import annotations

from datetime import date, datetime

from flask import current_app

from warehouse_tracker.extensions import db
from warehouse_tracker.models import Warehouse
from warehouse_tracker.services.utilization import upsert_daily_utilization
from warehouse_tracker.services.warehouses import purge_expired_deletions
from warehouse_tracker.utils.utilization import calculate_stats, section_key


def _today() -> date:
    return datetime.utcnow().date()


def run_daily_utilization(*, today: date | None = None) -> dict:
    """Recompute today's utilization and upsert one sample site-wide and per warehouse."""
    day = today or _today()
    written = 0
    purged = 0

    warehouses = Warehouse.query.order_by(Warehouse.letter.asc()).all()
    statuses = {}
    membership = {}
    for wh in warehouses:
        for sec in wh.sections:
            key = section_key(wh.letter, sec.section_number)
            statuses[key] = sec.status
            membership[key] = wh.letter

    overall = calculate_stats(statuses)
    try:
        upsert_daily_utilization(day, overall, warehouse_id=None)
        written += 1
        for wh in warehouses:
            stats = calculate_stats(statuses, groups=[wh.letter], membership=membership)
            upsert_daily_utilization(day, stats, warehouse_id=wh.id)
            written += 1
        purged = purge_expired_deletions()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("daily utilization snapshot failed for %s", day)
        return {"ok": False, "date": day.isoformat(), "error": str(e)}

    current_app.logger.info(
        "daily utilization snapshot %s: %s%% across %s sections, %s rows written, %s undo records purged",
        day, overall.utilization_percent, overall.total_sections, written, purged,
    )
    return {
        "ok": True,
        "date": day.isoformat(),
        "written": written,
        "purged": purged,
        "overall": overall.to_dict(),
    }

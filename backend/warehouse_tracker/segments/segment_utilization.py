from __future__ import annotations

from datetime import date, datetime

from flask import Blueprint, current_app, jsonify, request

from warehouse_tracker.extensions import db
from warehouse_tracker.models import Warehouse
from warehouse_tracker.services.utilization import fetch_daily_samples, load_dashboard_state
from warehouse_tracker.utils.dashboard_state import stats_for, summary
from warehouse_tracker.utils.series import RANGES, build_daily_series, resolve_range
from warehouse_tracker.utils.utilization import status_breakdown

utilization_bp = Blueprint("utilization_bp", __name__, url_prefix="/api/utilization")


def _today() -> date:
    return datetime.utcnow().date()


@utilization_bp.get("/summary")
def utilization_summary():
    state = load_dashboard_state(
        undo_window_seconds=int(current_app.config["UNDO_WINDOW_SECONDS"]),
        sections_per_row=int(current_app.config["SECTIONS_PER_ROW"]),
    )
    rollup = summary(state)
    per_warehouse = []
    for letter in sorted(state.warehouses):
        item = state.warehouses[letter].to_dict()
        item["stats"] = stats_for(state, letter).to_dict()
        per_warehouse.append(item)
    return jsonify({
        "ok": True,
        "total": rollup["all"].to_dict(),
        "indoor": rollup["indoor"].to_dict(),
        "outdoor": rollup["outdoor"].to_dict(),
        "status_breakdown": status_breakdown(state.statuses),
        "warehouses": per_warehouse,
    }), 200


@utilization_bp.get("/history")
def utilization_history():
    range_name = (request.args.get("range") or "week").strip().lower()
    if range_name not in RANGES:
        return jsonify({"ok": False, "message": f"range must be one of: {', '.join(RANGES)}"}), 400
    try:
        start, end = resolve_range(
            range_name,
            _today(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except ValueError as e:
        return jsonify({"ok": False, "message": str(e)}), 400

    letter = (request.args.get("warehouse") or "").strip().upper()
    warehouse_id = None
    if letter and letter != "ALL":
        wh = Warehouse.query.filter_by(letter=letter).first()
        if not wh:
            return jsonify({"ok": False, "message": f"warehouse {letter} not found"}), 404
        warehouse_id = wh.id

    base = {
        "range": range_name,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "warehouse": letter if warehouse_id is not None else None,
    }
    try:
        samples = fetch_daily_samples(start, end, warehouse_id=warehouse_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("history fetch failed for %s..%s", start, end)
        return jsonify({"ok": True, **base, "items": [], "samples": 0, "message": "No data"}), 200

    series = build_daily_series(start, end, samples)
    items = [{"date": p["date"].isoformat(), "value": p["value"]} for p in series]
    return jsonify({"ok": True, **base, "items": items, "samples": len(samples), "message": ""}), 200

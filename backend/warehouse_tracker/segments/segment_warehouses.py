from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from warehouse_tracker.extensions import db
from warehouse_tracker.services import warehouses as svc
from warehouse_tracker.utils.utilization import KINDS, calculate_stats

warehouses_bp = Blueprint("warehouses_bp", __name__, url_prefix="/api")

_INIT_DONE = False


@warehouses_bp.before_app_request
def _ensure_tables_once():
    global _INIT_DONE
    if _INIT_DONE:
        return
    try:
        db.create_all()
    except Exception:
        current_app.logger.warning("create_all failed; relying on migrations")
    _INIT_DONE = True


def _cfg(name: str) -> int:
    return int(current_app.config[name])


def _stats(wh) -> dict:
    statuses = {s.key: s.status for s in wh.sections}
    return calculate_stats(statuses).to_dict()


def _warehouse_payload(wh, include_sections: bool = True) -> dict:
    out = wh.to_dict(include_sections=include_sections)
    out["stats"] = _stats(wh)
    return out


def _error(e: svc.ServiceError):
    return jsonify({"ok": False, "message": str(e)}), e.status_code


def _undo_payload(rec) -> dict:
    return {
        "token": rec.token,
        "expires_at": rec.expires_at.isoformat(),
        "undo_url": f"/api/undo/{rec.token}",
    }


@warehouses_bp.get("/warehouses")
def list_warehouses():
    kind = (request.args.get("kind") or "").strip().lower() or None
    if kind and kind not in KINDS:
        return jsonify({"ok": False, "message": "Invalid kind"}), 400
    include = (request.args.get("sections") or "").strip() == "1"
    rows = svc.list_warehouses(kind)
    return jsonify({"ok": True, "items": [_warehouse_payload(w, include) for w in rows]}), 200


@warehouses_bp.post("/warehouses")
def create_warehouse():
    payload = request.get_json(silent=True) or {}
    count = svc.clamp_section_count(
        payload.get("sections"),
        default=_cfg("DEFAULT_SECTION_COUNT"),
        maximum=_cfg("MAX_SECTIONS_PER_REQUEST"),
    )
    try:
        wh = svc.create_warehouse(
            name=payload.get("name") or "",
            kind=payload.get("kind") or payload.get("type") or "",
            letter=(payload.get("letter") or "").strip() or None,
            sections=count,
        )
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("create warehouse failed")
        return jsonify({"ok": False, "message": "Failed to create warehouse", "error": str(e)}), 500
    current_app.logger.info("warehouse %s created with %s sections", wh.letter, count)
    return jsonify({"ok": True, "warehouse": _warehouse_payload(wh)}), 201


@warehouses_bp.get("/warehouses/<letter>")
def get_warehouse(letter: str):
    try:
        wh = svc.get_warehouse(letter)
    except svc.ServiceError as e:
        return _error(e)
    return jsonify({"ok": True, "warehouse": _warehouse_payload(wh)}), 200


@warehouses_bp.delete("/warehouses/<letter>")
def delete_warehouse(letter: str):
    try:
        wh = svc.get_warehouse(letter)
        rec = svc.delete_warehouse(wh, _cfg("UNDO_WINDOW_SECONDS"))
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("delete warehouse %s failed", letter)
        return jsonify({"ok": False, "message": "Failed to delete warehouse", "error": str(e)}), 500
    return jsonify({"ok": True, "message": f"Warehouse {rec.warehouse_letter} deleted", "undo": _undo_payload(rec)}), 200


@warehouses_bp.post("/warehouses/<letter>/sections")
def add_sections(letter: str):
    payload = request.get_json(silent=True) or {}
    count = svc.clamp_section_count(
        payload.get("count"),
        default=_cfg("SECTIONS_PER_ROW"),
        maximum=_cfg("MAX_SECTIONS_PER_REQUEST"),
    )
    try:
        wh = svc.get_warehouse(letter)
        created = svc.add_sections(wh, count)
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("add sections to %s failed", letter)
        return jsonify({"ok": False, "message": "Failed to add sections", "error": str(e)}), 500
    return jsonify({
        "ok": True,
        "created": [s.to_dict() for s in created],
        "warehouse": _warehouse_payload(wh),
    }), 201


@warehouses_bp.delete("/warehouses/<letter>/sections/<int:number>")
def delete_section(letter: str, number: int):
    try:
        wh = svc.get_warehouse(letter)
        sec = svc.get_section(wh, number)
        rec = svc.delete_section(wh, sec, _cfg("UNDO_WINDOW_SECONDS"))
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("delete section %s%s failed", letter, number)
        return jsonify({"ok": False, "message": "Failed to delete section", "error": str(e)}), 500
    return jsonify({
        "ok": True,
        "message": f"Section {wh.letter}{number} deleted",
        "undo": _undo_payload(rec),
        "warehouse": _warehouse_payload(wh),
    }), 200


@warehouses_bp.delete("/warehouses/<letter>/rows/last")
def delete_last_row(letter: str):
    try:
        wh = svc.get_warehouse(letter)
        rec = svc.delete_last_row(wh, _cfg("SECTIONS_PER_ROW"), _cfg("UNDO_WINDOW_SECONDS"))
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("delete row from %s failed", letter)
        return jsonify({"ok": False, "message": "Failed to delete row", "error": str(e)}), 500
    return jsonify({
        "ok": True,
        "message": f"Row deleted from warehouse {wh.letter}",
        "undo": _undo_payload(rec),
        "warehouse": _warehouse_payload(wh),
    }), 200


@warehouses_bp.post("/warehouses/<letter>/sections/<int:number>/toggle")
def toggle_section(letter: str, number: int):
    try:
        wh = svc.get_warehouse(letter)
        sec = svc.toggle_section(svc.get_section(wh, number))
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("toggle %s%s failed", letter, number)
        return jsonify({"ok": False, "message": "Failed to update section", "error": str(e)}), 500
    return jsonify({"ok": True, "section": sec.to_dict(), "stats": _stats(wh)}), 200


@warehouses_bp.put("/warehouses/<letter>/sections/<int:number>")
def set_section_status(letter: str, number: int):
    payload = request.get_json(silent=True) or {}
    try:
        wh = svc.get_warehouse(letter)
        sec = svc.set_section_status(svc.get_section(wh, number), payload.get("status"))
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("set status of %s%s failed", letter, number)
        return jsonify({"ok": False, "message": "Failed to update section", "error": str(e)}), 500
    return jsonify({"ok": True, "section": sec.to_dict(), "stats": _stats(wh)}), 200


@warehouses_bp.post("/warehouses/<letter>/sections/reorder")
def reorder_sections(letter: str):
    payload = request.get_json(silent=True) or {}
    try:
        wh = svc.reorder_sections(svc.get_warehouse(letter), payload.get("order"))
    except svc.ServiceError as e:
        return _error(e)
    except Exception as e:
        current_app.logger.exception("reorder %s failed", letter)
        return jsonify({"ok": False, "message": "Failed to reorder sections", "error": str(e)}), 500
    return jsonify({"ok": True, "warehouse": _warehouse_payload(wh)}), 200


@warehouses_bp.post("/undo/<token>")
def undo_deletion(token: str):
    try:
        rec = svc.restore_deletion(token)
    except svc.ServiceError as e:
        current_app.logger.info("undo rejected: %s", e)
        return _error(e)
    except Exception as e:
        current_app.logger.exception("undo failed")
        return jsonify({"ok": False, "message": "Failed to undo", "error": str(e)}), 500
    return jsonify({"ok": True, "restored": rec.to_dict()}), 200

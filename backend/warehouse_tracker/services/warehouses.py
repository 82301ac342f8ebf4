from __future__ import annotations

import json
import secrets
from datetime import date, datetime, timedelta
from typing import List, Optional

from warehouse_tracker.extensions import db
from warehouse_tracker.models import DailyUtilization, DeletionRecord, Warehouse, WarehouseSection
from warehouse_tracker.utils.utilization import (
    AVAILABLE,
    KINDS,
    next_group_identifier,
    normalize_status,
    toggle_status,
    validate_group_identifier,
)


class ServiceError(Exception):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class Gone(ServiceError):
    status_code = 410


def _now():
    return datetime.utcnow()


def _dt(value: Optional[str]):
    return datetime.fromisoformat(value) if value else None


def clamp_section_count(value, default: int, maximum: int) -> int:
    try:
        n = int(value) if value not in (None, "") else int(default)
    except (TypeError, ValueError):
        n = int(default)
    if n < 1:
        n = 1
    if n > maximum:
        n = maximum
    return n


def list_warehouses(kind: str | None = None) -> List[Warehouse]:
    q = Warehouse.query
    if kind:
        q = q.filter(Warehouse.type == kind)
    return q.order_by(Warehouse.letter.asc()).all()


def get_warehouse(letter: str) -> Warehouse:
    wh = Warehouse.query.filter_by(letter=(letter or "").strip().upper()).first()
    if not wh:
        raise NotFound(f"warehouse {letter} not found")
    return wh


def get_section(wh: Warehouse, number: int) -> WarehouseSection:
    sec = WarehouseSection.query.filter_by(warehouse_id=wh.id, section_number=int(number)).first()
    if not sec:
        raise NotFound(f"section {wh.letter}{number} not found")
    return sec


def _append_sections(wh: Warehouse, count: int, now) -> List[WarehouseSection]:
    numbers = [int(s.section_number) for s in wh.sections]
    positions = [int(s.position or 0) for s in wh.sections]
    start = max(numbers) + 1 if numbers else 1
    pos = max(positions) + 1 if positions else 0
    created = []
    for i in range(count):
        sec = WarehouseSection(
            section_number=start + i,
            status=AVAILABLE,
            position=pos + i,
            created_at=now,
            updated_at=now,
        )
        wh.sections.append(sec)
        created.append(sec)
    return created


def create_warehouse(name: str, kind: str, letter: str | None = None, sections: int = 1) -> Warehouse:
    kind = (kind or "").strip().lower()
    if kind not in KINDS:
        raise ServiceError(f"kind must be one of: {', '.join(KINDS)}")

    existing = [w.letter for w in Warehouse.query.all()]
    if letter:
        try:
            letter = validate_group_identifier(letter, [])
        except ValueError as e:
            raise ServiceError(str(e))
        try:
            validate_group_identifier(letter, existing)
        except ValueError as e:
            raise Conflict(str(e))
    else:
        letter = next_group_identifier(existing)
        if not letter:
            raise Conflict("no free warehouse letter left")

    now = _now()
    wh = Warehouse(
        letter=letter,
        name=(name or "").strip() or f"Warehouse {letter}",
        type=kind,
        created_at=now,
        updated_at=now,
        last_modified=now,
    )
    _append_sections(wh, sections, now)
    try:
        db.session.add(wh)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return wh


def add_sections(wh: Warehouse, count: int) -> List[WarehouseSection]:
    now = _now()
    created = _append_sections(wh, count, now)
    wh.touch(now)
    try:
        db.session.add(wh)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return created


def _save_section(sec: WarehouseSection, now) -> WarehouseSection:
    sec.updated_at = now
    if sec.warehouse is not None:
        sec.warehouse.touch(now)
    try:
        db.session.add(sec)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return sec


def toggle_section(sec: WarehouseSection) -> WarehouseSection:
    sec.status = toggle_status(sec.status)
    return _save_section(sec, _now())


def set_section_status(sec: WarehouseSection, status) -> WarehouseSection:
    try:
        sec.status = normalize_status(status)
    except ValueError as e:
        raise ServiceError(str(e))
    return _save_section(sec, _now())


def reorder_sections(wh: Warehouse, ordered_numbers) -> Warehouse:
    by_number = {int(s.section_number): s for s in wh.sections}
    try:
        order = [int(n) for n in ordered_numbers or []]
    except (TypeError, ValueError):
        raise ServiceError("order must be a list of section numbers")
    if sorted(order) != sorted(by_number):
        raise ServiceError("order must list every section of the warehouse exactly once")
    now = _now()
    for pos, n in enumerate(order):
        by_number[n].position = pos
        by_number[n].updated_at = now
    wh.touch(now)
    try:
        db.session.add(wh)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return wh


# ---------------------------------------------------------------------------
# Deletion with undo window
# ---------------------------------------------------------------------------

def _section_snapshot(sec: WarehouseSection) -> dict:
    return {
        "section_number": int(sec.section_number),
        "status": sec.status,
        "position": int(sec.position or 0),
        "created_at": sec.created_at.isoformat() if sec.created_at else None,
        "updated_at": sec.updated_at.isoformat() if sec.updated_at else None,
    }


def _history_snapshot(row: DailyUtilization) -> dict:
    return {
        "date": row.date.isoformat(),
        "total_space": int(row.total_space or 0),
        "utilized_space": int(row.utilized_space or 0),
        "utilization_percent": float(row.utilization_percent or 0.0),
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def _record(kind: str, letter: str, payload: dict, window_seconds: int, now) -> DeletionRecord:
    rec = DeletionRecord(
        token=secrets.token_urlsafe(24),
        kind=kind,
        warehouse_letter=letter,
        payload=json.dumps(payload, default=str),
        created_at=now,
        expires_at=now + timedelta(seconds=int(window_seconds)),
    )
    db.session.add(rec)
    return rec


def delete_warehouse(wh: Warehouse, window_seconds: int) -> DeletionRecord:
    now = _now()
    history = DailyUtilization.query.filter_by(warehouse_id=wh.id).all()
    payload = {
        "warehouse": {
            "letter": wh.letter,
            "name": wh.name,
            "type": wh.type,
            "created_at": wh.created_at.isoformat() if wh.created_at else None,
            "last_modified": wh.last_modified.isoformat() if wh.last_modified else None,
        },
        "sections": [_section_snapshot(s) for s in wh.sections],
        "history": [_history_snapshot(r) for r in history],
    }
    try:
        rec = _record("warehouse", wh.letter, payload, window_seconds, now)
        for row in history:
            db.session.delete(row)
        db.session.delete(wh)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return rec


def _delete_sections(wh: Warehouse, secs: List[WarehouseSection], kind: str, window_seconds: int) -> DeletionRecord:
    now = _now()
    payload = {"sections": [_section_snapshot(s) for s in secs]}
    try:
        rec = _record(kind, wh.letter, payload, window_seconds, now)
        for s in secs:
            wh.sections.remove(s)
        wh.touch(now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return rec


def delete_section(wh: Warehouse, sec: WarehouseSection, window_seconds: int) -> DeletionRecord:
    return _delete_sections(wh, [sec], "section", window_seconds)


def delete_last_row(wh: Warehouse, per_row: int, window_seconds: int) -> DeletionRecord:
    secs = sorted(wh.sections, key=lambda s: int(s.section_number))
    if len(secs) < per_row:
        raise ServiceError("no complete row to delete")
    return _delete_sections(wh, secs[-per_row:], "row", window_seconds)


def _restore_sections(wh: Warehouse, snapshots: List[dict]) -> None:
    taken = {int(s.section_number) for s in wh.sections}
    for snap in snapshots:
        if int(snap["section_number"]) in taken:
            raise Conflict(f"section {wh.letter}{snap['section_number']} already exists")
        wh.sections.append(WarehouseSection(
            section_number=int(snap["section_number"]),
            status=snap.get("status") or AVAILABLE,
            position=int(snap.get("position") or 0),
            created_at=_dt(snap.get("created_at")) or _now(),
            updated_at=_dt(snap.get("updated_at")) or _now(),
        ))


def restore_deletion(token: str) -> DeletionRecord:
    rec = DeletionRecord.query.filter_by(token=(token or "").strip()).first()
    if not rec:
        raise NotFound("nothing to undo")
    if rec.restored_at is not None:
        raise Gone("deletion already undone")
    now = _now()
    if now > rec.expires_at:
        raise Gone("undo window expired")

    payload = rec.payload_dict()
    try:
        if rec.kind == "warehouse":
            info = payload.get("warehouse") or {}
            try:
                validate_group_identifier(rec.warehouse_letter, [w.letter for w in Warehouse.query.all()])
            except ValueError as e:
                raise Conflict(str(e))
            wh = Warehouse(
                letter=rec.warehouse_letter,
                name=info.get("name") or rec.warehouse_letter,
                type=info.get("type") or "indoor",
                created_at=_dt(info.get("created_at")) or now,
                updated_at=now,
                last_modified=_dt(info.get("last_modified")) or now,
            )
            _restore_sections(wh, payload.get("sections") or [])
            db.session.add(wh)
            db.session.flush()
            for h in payload.get("history") or []:
                db.session.add(DailyUtilization(
                    warehouse_id=wh.id,
                    date=date.fromisoformat(h["date"]),
                    total_space=int(h.get("total_space") or 0),
                    utilized_space=int(h.get("utilized_space") or 0),
                    utilization_percent=float(h.get("utilization_percent") or 0.0),
                    created_at=_dt(h.get("created_at")) or now,
                    updated_at=_dt(h.get("updated_at")) or now,
                ))
        else:
            wh = Warehouse.query.filter_by(letter=rec.warehouse_letter).first()
            if not wh:
                raise Gone(f"warehouse {rec.warehouse_letter} no longer exists")
            _restore_sections(wh, payload.get("sections") or [])
            wh.touch(now)
        rec.restored_at = now
        db.session.add(rec)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return rec


def purge_expired_deletions(now=None) -> int:
    now = now or _now()
    rows = DeletionRecord.query.filter(DeletionRecord.expires_at < now).all()
    for r in rows:
        db.session.delete(r)
    return len(rows)

"""Dashboard state and the reducer that drives it.

The whole dashboard is one serializable ``DashboardState``. Every change goes
through ``reduce(state, action)`` which returns a new state and leaves the old
one untouched, so the UI controller and the tests share the same code path.

Actions are plain dicts with a ``type`` key, for example::

    {"type": "toggle_section", "key": "A1", "now": datetime.utcnow()}

Network calls are tagged per channel: ``request_started`` bumps the channel's
generation and ``request_finished`` is ignored unless it carries the current
generation, so a late answer to a superseded request cannot overwrite newer
state.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from warehouse_tracker.utils.utilization import (
    AVAILABLE,
    KINDS,
    UtilizationStats,
    calculate_stats,
    normalize_status,
    section_key,
    split_section_key,
    summarize_by_kind,
    toggle_status,
    validate_group_identifier,
)


@dataclass
class WarehouseInfo:
    letter: str
    name: str
    kind: str = "indoor"
    last_modified: Optional[datetime] = None

    def to_dict(self):
        return {
            "letter": self.letter,
            "name": self.name,
            "kind": self.kind,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WarehouseInfo":
        lm = data.get("last_modified")
        return cls(
            letter=data["letter"],
            name=data.get("name") or data["letter"],
            kind=data.get("kind") or "indoor",
            last_modified=datetime.fromisoformat(lm) if isinstance(lm, str) else lm,
        )


@dataclass
class PendingUndo:
    label: str
    deleted_at: datetime
    warehouses: Dict[str, WarehouseInfo] = field(default_factory=dict)
    statuses: Dict[str, str] = field(default_factory=dict)
    membership: Dict[str, str] = field(default_factory=dict)
    token: Optional[str] = None

    def to_dict(self):
        return {
            "label": self.label,
            "deleted_at": self.deleted_at.isoformat(),
            "warehouses": {k: w.to_dict() for k, w in self.warehouses.items()},
            "statuses": dict(self.statuses),
            "membership": dict(self.membership),
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PendingUndo":
        return cls(
            label=data["label"],
            deleted_at=datetime.fromisoformat(data["deleted_at"]),
            warehouses={k: WarehouseInfo.from_dict(w) for k, w in (data.get("warehouses") or {}).items()},
            statuses=dict(data.get("statuses") or {}),
            membership=dict(data.get("membership") or {}),
            token=data.get("token"),
        )


@dataclass
class DashboardState:
    warehouses: Dict[str, WarehouseInfo] = field(default_factory=dict)
    statuses: Dict[str, str] = field(default_factory=dict)
    membership: Dict[str, str] = field(default_factory=dict)
    selected: Optional[str] = None
    pending_undo: Optional[PendingUndo] = None
    generations: Dict[str, int] = field(default_factory=dict)
    busy: Dict[str, bool] = field(default_factory=dict)
    history: List[dict] = field(default_factory=list)
    history_message: str = ""
    undo_window_seconds: int = 3
    sections_per_row: int = 3

    def to_dict(self):
        return {
            "warehouses": {k: w.to_dict() for k, w in self.warehouses.items()},
            "statuses": dict(self.statuses),
            "membership": dict(self.membership),
            "selected": self.selected,
            "pending_undo": self.pending_undo.to_dict() if self.pending_undo else None,
            "generations": dict(self.generations),
            "busy": dict(self.busy),
            "history": [
                {"date": p["date"].isoformat() if hasattr(p["date"], "isoformat") else p["date"], "value": p["value"]}
                for p in self.history
            ],
            "history_message": self.history_message,
            "undo_window_seconds": int(self.undo_window_seconds),
            "sections_per_row": int(self.sections_per_row),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DashboardState":
        pending = data.get("pending_undo")
        return cls(
            warehouses={k: WarehouseInfo.from_dict(w) for k, w in (data.get("warehouses") or {}).items()},
            statuses=dict(data.get("statuses") or {}),
            membership=dict(data.get("membership") or {}),
            selected=data.get("selected"),
            pending_undo=PendingUndo.from_dict(pending) if pending else None,
            generations={k: int(v) for k, v in (data.get("generations") or {}).items()},
            busy={k: bool(v) for k, v in (data.get("busy") or {}).items()},
            history=list(data.get("history") or []),
            history_message=data.get("history_message") or "",
            undo_window_seconds=int(data.get("undo_window_seconds") or 3),
            sections_per_row=int(data.get("sections_per_row") or 3),
        )


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

def sections_of(state: DashboardState, letter: str) -> List[str]:
    keys = [k for k, g in state.membership.items() if g == letter]
    return sorted(keys, key=lambda k: split_section_key(k)[1] or 0)


def stats_for(state: DashboardState, letter: Optional[str] = None) -> UtilizationStats:
    groups = None if letter is None else [letter]
    return calculate_stats(state.statuses, groups=groups, membership=state.membership)


def summary(state: DashboardState) -> Dict[str, UtilizationStats]:
    kinds = {w.letter: w.kind for w in state.warehouses.values()}
    return summarize_by_kind(state.statuses, kinds, membership=state.membership)


def current_generation(state: DashboardState, channel: str) -> int:
    return int(state.generations.get(channel, 0))


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def _touch(state: DashboardState, letter: Optional[str], now) -> None:
    w = state.warehouses.get(letter) if letter else None
    if w is not None and now is not None:
        w.last_modified = now


def _remember(state: DashboardState, label: str, now, keys: List[str], letters: List[str], token=None) -> None:
    state.pending_undo = PendingUndo(
        label=label,
        deleted_at=now or datetime.utcnow(),
        warehouses={l: copy.deepcopy(state.warehouses[l]) for l in letters if l in state.warehouses},
        statuses={k: state.statuses[k] for k in keys if k in state.statuses},
        membership={k: state.membership[k] for k in keys if k in state.membership},
        token=token,
    )
    for k in keys:
        state.statuses.pop(k, None)
        state.membership.pop(k, None)
    for l in letters:
        state.warehouses.pop(l, None)
        if state.selected == l:
            state.selected = None


def _load_snapshot(state: DashboardState, action: dict) -> DashboardState:
    state.warehouses = {}
    state.statuses = {}
    state.membership = {}
    for row in action.get("warehouses") or []:
        info = WarehouseInfo.from_dict(row)
        state.warehouses[info.letter] = info
        for sec in row.get("sections") or []:
            key = section_key(info.letter, sec["section_number"])
            try:
                state.statuses[key] = normalize_status(sec.get("status"))
            except ValueError:
                state.statuses[key] = AVAILABLE
            state.membership[key] = info.letter
    if state.selected not in state.warehouses:
        state.selected = None
    return state


def _select_warehouse(state: DashboardState, action: dict) -> DashboardState:
    letter = action.get("letter")
    state.selected = letter if letter in state.warehouses else None
    return state


def _toggle_section(state: DashboardState, action: dict) -> DashboardState:
    key = action.get("key")
    if key not in state.statuses:
        return state
    state.statuses[key] = toggle_status(state.statuses[key])
    _touch(state, state.membership.get(key), action.get("now"))
    return state


def _set_status(state: DashboardState, action: dict) -> DashboardState:
    key = action.get("key")
    if key not in state.statuses:
        return state
    try:
        state.statuses[key] = normalize_status(action.get("status"))
    except ValueError:
        return state
    _touch(state, state.membership.get(key), action.get("now"))
    return state


def _append_sections(state: DashboardState, letter: str, count: int) -> None:
    existing = [split_section_key(k)[1] or 0 for k in sections_of(state, letter)]
    start = max(existing) + 1 if existing else 1
    for n in range(start, start + count):
        key = section_key(letter, n)
        state.statuses[key] = AVAILABLE
        state.membership[key] = letter


def _add_warehouse(state: DashboardState, action: dict) -> DashboardState:
    try:
        letter = validate_group_identifier(action.get("letter"), state.warehouses.keys())
    except ValueError:
        return state
    kind = (action.get("kind") or "indoor").strip().lower()
    if kind not in KINDS:
        return state
    state.warehouses[letter] = WarehouseInfo(
        letter=letter,
        name=(action.get("name") or letter).strip(),
        kind=kind,
        last_modified=action.get("now"),
    )
    _append_sections(state, letter, max(1, int(action.get("sections") or 1)))
    return state


def _add_sections(state: DashboardState, action: dict) -> DashboardState:
    letter = action.get("letter")
    if letter not in state.warehouses:
        return state
    _append_sections(state, letter, max(1, int(action.get("count") or 1)))
    _touch(state, letter, action.get("now"))
    return state


def _delete_section(state: DashboardState, action: dict) -> DashboardState:
    key = action.get("key")
    if key not in state.statuses:
        return state
    letter = state.membership.get(key)
    _remember(state, f"Section {key} deleted", action.get("now"), [key], [], action.get("token"))
    _touch(state, letter, action.get("now"))
    return state


def _delete_row(state: DashboardState, action: dict) -> DashboardState:
    letter = action.get("letter")
    keys = sections_of(state, letter)
    per_row = int(state.sections_per_row)
    if letter not in state.warehouses or len(keys) < per_row:
        return state
    _remember(state, f"Row deleted from warehouse {letter}", action.get("now"), keys[-per_row:], [], action.get("token"))
    _touch(state, letter, action.get("now"))
    return state


def _delete_warehouse(state: DashboardState, action: dict) -> DashboardState:
    letter = action.get("letter")
    if letter not in state.warehouses:
        return state
    _remember(state, f"Warehouse {letter} deleted", action.get("now"), sections_of(state, letter), [letter], action.get("token"))
    return state


def undo_expired(state: DashboardState, now) -> bool:
    p = state.pending_undo
    if p is None:
        return True
    return (now - p.deleted_at).total_seconds() > float(state.undo_window_seconds)


def _undo(state: DashboardState, action: dict) -> DashboardState:
    p = state.pending_undo
    if p is None:
        return state
    expired = undo_expired(state, action.get("now") or datetime.utcnow())
    state.pending_undo = None
    if expired:
        return state
    for letter, info in p.warehouses.items():
        state.warehouses[letter] = info
    state.statuses.update(p.statuses)
    state.membership.update(p.membership)
    return state


def _expire_undo(state: DashboardState, action: dict) -> DashboardState:
    if undo_expired(state, action.get("now") or datetime.utcnow()):
        state.pending_undo = None
    return state


def _request_started(state: DashboardState, action: dict) -> DashboardState:
    channel = action.get("channel") or "default"
    state.generations[channel] = current_generation(state, channel) + 1
    state.busy[channel] = True
    return state


def _request_finished(state: DashboardState, action: dict) -> DashboardState:
    channel = action.get("channel") or "default"
    if int(action.get("generation") or 0) != current_generation(state, channel):
        return state
    state.busy[channel] = False
    ok = bool(action.get("ok", True))
    payload = action.get("payload")
    if channel == "history":
        state.history = list(payload or []) if ok else []
        state.history_message = "" if state.history else "No data"
    elif channel == "snapshot" and ok:
        _load_snapshot(state, {"warehouses": payload or []})
    return state


_HANDLERS = {
    "load_snapshot": _load_snapshot,
    "select_warehouse": _select_warehouse,
    "toggle_section": _toggle_section,
    "set_status": _set_status,
    "add_warehouse": _add_warehouse,
    "add_sections": _add_sections,
    "delete_section": _delete_section,
    "delete_row": _delete_row,
    "delete_warehouse": _delete_warehouse,
    "undo": _undo,
    "expire_undo": _expire_undo,
    "request_started": _request_started,
    "request_finished": _request_finished,
}


def reduce(state: DashboardState, action: dict) -> DashboardState:
    """Apply ``action`` and return the next state. Unknown actions are a no-op."""
    handler = _HANDLERS.get((action or {}).get("type"))
    if handler is None:
        return state
    return handler(copy.deepcopy(state), action)

from datetime import datetime, timedelta

from warehouse_tracker.utils.dashboard_state import (
    DashboardState,
    current_generation,
    reduce,
    sections_of,
    stats_for,
    summary,
)
from warehouse_tracker.utils.utilization import AVAILABLE, OCCUPIED

T0 = datetime(2026, 10, 18, 8, 0, 0)


def _loaded():
    state = DashboardState()
    return reduce(state, {
        "type": "load_snapshot",
        "warehouses": [
            {
                "letter": "A",
                "name": "Main",
                "kind": "indoor",
                "sections": [
                    {"section_number": 1, "status": "occupied"},
                    {"section_number": 2, "status": "green"},
                    {"section_number": 3, "status": "red"},
                ],
            },
            {
                "letter": "E",
                "name": "Yard",
                "kind": "outdoor",
                "sections": [{"section_number": 1, "status": "available"}],
            },
        ],
    })


def test_load_snapshot_normalizes_statuses():
    state = _loaded()
    assert state.statuses == {"A1": OCCUPIED, "A2": AVAILABLE, "A3": OCCUPIED, "E1": AVAILABLE}
    assert sections_of(state, "A") == ["A1", "A2", "A3"]
    assert stats_for(state, "A").utilization_percent == 67
    assert stats_for(state).utilization_percent == 50
    s = summary(state)
    assert s["outdoor"].total_sections == 1
    assert s["indoor"].occupied_sections == 2


def test_reduce_does_not_mutate_input():
    state = _loaded()
    after = reduce(state, {"type": "toggle_section", "key": "A1", "now": T0})
    assert state.statuses["A1"] == OCCUPIED
    assert after.statuses["A1"] == AVAILABLE
    assert after.warehouses["A"].last_modified == T0


def test_toggle_twice_restores():
    state = _loaded()
    twice = reduce(reduce(state, {"type": "toggle_section", "key": "A2"}), {"type": "toggle_section", "key": "A2"})
    assert twice.statuses == state.statuses


def test_unknown_action_and_unknown_key_are_noops():
    state = _loaded()
    assert reduce(state, {"type": "explode"}) is state
    assert reduce(state, {"type": "toggle_section", "key": "Z9"}).statuses == state.statuses
    assert reduce(state, {"type": "set_status", "key": "A1", "status": "purple"}).statuses == state.statuses


def test_add_warehouse_respects_prefix_rule():
    state = _loaded()
    same = reduce(state, {"type": "add_warehouse", "letter": "AB", "name": "Annex"})
    assert "AB" not in same.warehouses
    added = reduce(state, {"type": "add_warehouse", "letter": "b", "name": "Back", "kind": "outdoor", "sections": 2})
    assert added.warehouses["B"].kind == "outdoor"
    assert sections_of(added, "B") == ["B1", "B2"]


def test_add_sections_continues_after_highest_number():
    state = _loaded()
    state = reduce(state, {"type": "delete_section", "key": "A2", "now": T0})
    state = reduce(state, {"type": "add_sections", "letter": "A", "count": 2, "now": T0})
    assert sections_of(state, "A") == ["A1", "A3", "A4", "A5"]


def test_delete_section_then_undo_inside_window():
    state = reduce(_loaded(), {"type": "delete_section", "key": "A3", "now": T0, "token": "tok"})
    assert "A3" not in state.statuses
    assert state.pending_undo.token == "tok"
    restored = reduce(state, {"type": "undo", "now": T0 + timedelta(seconds=2)})
    assert restored.statuses["A3"] == OCCUPIED
    assert restored.membership["A3"] == "A"
    assert restored.pending_undo is None


def test_undo_after_window_keeps_deletion():
    state = reduce(_loaded(), {"type": "delete_warehouse", "letter": "A", "now": T0})
    assert "A" not in state.warehouses
    late = reduce(state, {"type": "undo", "now": T0 + timedelta(seconds=4)})
    assert "A" not in late.warehouses
    assert "A1" not in late.statuses
    assert late.pending_undo is None


def test_expire_undo():
    state = reduce(_loaded(), {"type": "delete_section", "key": "E1", "now": T0})
    assert reduce(state, {"type": "expire_undo", "now": T0 + timedelta(seconds=1)}).pending_undo is not None
    assert reduce(state, {"type": "expire_undo", "now": T0 + timedelta(seconds=5)}).pending_undo is None


def test_delete_row_needs_a_full_row():
    state = reduce(_loaded(), {"type": "delete_row", "letter": "A", "now": T0})
    assert sections_of(state, "A") == []
    assert len(state.pending_undo.statuses) == 3
    untouched = reduce(_loaded(), {"type": "delete_row", "letter": "E", "now": T0})
    assert sections_of(untouched, "E") == ["E1"]
    assert untouched.pending_undo is None


def test_deleting_selected_warehouse_clears_selection():
    state = reduce(_loaded(), {"type": "select_warehouse", "letter": "E"})
    assert state.selected == "E"
    state = reduce(state, {"type": "delete_warehouse", "letter": "E", "now": T0})
    assert state.selected is None


def test_stale_response_is_ignored():
    state = DashboardState()
    state = reduce(state, {"type": "request_started", "channel": "history"})
    first = current_generation(state, "history")
    state = reduce(state, {"type": "request_started", "channel": "history"})
    second = current_generation(state, "history")
    assert second == first + 1

    state = reduce(state, {"type": "request_finished", "channel": "history", "generation": second,
                           "payload": [{"date": "2026-10-17", "value": 40.0}]})
    assert state.busy["history"] is False
    stale = reduce(state, {"type": "request_finished", "channel": "history", "generation": first, "payload": []})
    assert stale.history == [{"date": "2026-10-17", "value": 40.0}]
    assert stale.history_message == ""


def test_failed_history_request_shows_no_data():
    state = reduce(DashboardState(), {"type": "request_started", "channel": "history"})
    state = reduce(state, {"type": "request_finished", "channel": "history",
                           "generation": current_generation(state, "history"), "ok": False})
    assert state.history == []
    assert state.history_message == "No data"


def test_snapshot_channel_reloads_state():
    state = reduce(_loaded(), {"type": "request_started", "channel": "snapshot"})
    state = reduce(state, {"type": "request_finished", "channel": "snapshot",
                           "generation": current_generation(state, "snapshot"),
                           "payload": [{"letter": "C", "name": "Cold", "sections": [{"section_number": 1, "status": "occupied"}]}]})
    assert list(state.warehouses) == ["C"]
    assert state.statuses == {"C1": OCCUPIED}


def test_state_round_trips_through_dict():
    state = reduce(_loaded(), {"type": "delete_section", "key": "A1", "now": T0, "token": "abc"})
    state = reduce(state, {"type": "select_warehouse", "letter": "A"})
    again = DashboardState.from_dict(state.to_dict())
    assert again.to_dict() == state.to_dict()
    assert again.pending_undo.deleted_at == T0

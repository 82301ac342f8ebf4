import random

import pytest

from warehouse_tracker.utils.utilization import (
    AVAILABLE,
    OCCUPIED,
    calculate_stats,
    next_group_identifier,
    normalize_status,
    round_half_up_percent,
    split_section_key,
    status_breakdown,
    summarize_by_kind,
    toggle_status,
    validate_group_identifier,
)


def _random_statuses(rng, n):
    groups = ["A", "B", "C", "AB"]
    return {
        f"{rng.choice(groups)}{i}": rng.choice([OCCUPIED, AVAILABLE, "red", "green", "bogus"])
        for i in range(n)
    }


def test_counts_always_add_up():
    rng = random.Random(7)
    for n in range(0, 40):
        statuses = _random_statuses(rng, n)
        for groups in (None, ["A"], ["B", "C"], ["AB"], []):
            s = calculate_stats(statuses, groups=groups)
            assert s.occupied_sections + s.available_sections == s.total_sections
            assert 0 <= s.utilization_percent <= 100


def test_empty_mapping_is_all_zero():
    s = calculate_stats({})
    assert s.to_dict() == {
        "total_sections": 0,
        "occupied_sections": 0,
        "available_sections": 0,
        "utilization_percent": 0,
    }
    assert calculate_stats({"A1": OCCUPIED}, groups=["B"]).utilization_percent == 0


def test_group_filter_example():
    statuses = {"A1": OCCUPIED, "A2": AVAILABLE, "B1": OCCUPIED}
    s = calculate_stats(statuses, groups=["A"])
    assert (s.total_sections, s.occupied_sections, s.available_sections, s.utilization_percent) == (2, 1, 1, 50)


def test_group_filter_does_not_match_longer_identifier():
    statuses = {"A1": OCCUPIED, "AB1": OCCUPIED, "AB2": AVAILABLE}
    assert calculate_stats(statuses, groups=["A"]).total_sections == 1
    assert calculate_stats(statuses, groups=["AB"]).total_sections == 2


def test_explicit_membership_wins_over_key():
    statuses = {"X1": OCCUPIED, "X2": AVAILABLE}
    membership = {"X1": "A", "X2": "B"}
    s = calculate_stats(statuses, groups=["A"], membership=membership)
    assert s.total_sections == 1
    assert s.utilization_percent == 100


def test_percent_rounds_half_up():
    assert round_half_up_percent(1, 8) == 13  # 12.5
    assert round_half_up_percent(1, 3) == 33
    assert round_half_up_percent(2, 3) == 67
    assert round_half_up_percent(5, 200) == 3  # 2.5
    assert round_half_up_percent(0, 0) == 0


def test_percent_is_monotonic_when_flipping_to_occupied():
    statuses = {f"A{i}": AVAILABLE for i in range(1, 12)}
    last = calculate_stats(statuses).utilization_percent
    for key in list(statuses):
        statuses[key] = OCCUPIED
        now = calculate_stats(statuses).utilization_percent
        assert now >= last
        last = now
    assert last == 100


def test_legacy_colours_and_toggle():
    assert normalize_status("red") == OCCUPIED
    assert normalize_status("GREEN") == AVAILABLE
    assert normalize_status(True) == OCCUPIED
    with pytest.raises(ValueError):
        normalize_status("yellow")
    assert toggle_status(OCCUPIED) == AVAILABLE
    assert toggle_status(AVAILABLE) == OCCUPIED
    assert toggle_status(toggle_status("red")) == OCCUPIED


def test_unknown_status_counts_as_available():
    s = calculate_stats({"A1": "yellow", "A2": OCCUPIED})
    assert s.available_sections == 1
    assert s.occupied_sections == 1


def test_split_section_key():
    assert split_section_key("A1") == ("A", 1)
    assert split_section_key("AB12") == ("AB", 12)
    assert split_section_key("C") == ("C", None)


def test_summarize_by_kind_and_breakdown():
    statuses = {"A1": OCCUPIED, "A2": OCCUPIED, "E1": AVAILABLE, "E2": OCCUPIED}
    out = summarize_by_kind(statuses, {"A": "indoor", "E": "outdoor"})
    assert out["all"].utilization_percent == 75
    assert out["indoor"].utilization_percent == 100
    assert out["outdoor"].utilization_percent == 50
    assert status_breakdown(statuses) == {OCCUPIED: 3, AVAILABLE: 1}


def test_group_identifiers_stay_prefix_free():
    assert validate_group_identifier(" b ", ["A"]) == "B"
    with pytest.raises(ValueError):
        validate_group_identifier("A", ["A"])
    with pytest.raises(ValueError):
        validate_group_identifier("AB", ["A"])
    with pytest.raises(ValueError):
        validate_group_identifier("A", ["AB"])
    with pytest.raises(ValueError):
        validate_group_identifier("A1", [])
    with pytest.raises(ValueError):
        validate_group_identifier("", [])
    assert validate_group_identifier("abcdefgh", []) == "ABCDEFGH"
    with pytest.raises(ValueError):
        validate_group_identifier("ABCDEFGHI", [])


def test_next_group_identifier():
    assert next_group_identifier([]) == "A"
    assert next_group_identifier(["A", "B"]) == "C"
    assert next_group_identifier(["AB"]) == "B"
    assert next_group_identifier([chr(c) for c in range(ord("A"), ord("Z") + 1)]) is None

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

OCCUPIED = "occupied"
AVAILABLE = "available"
STATUSES = (OCCUPIED, AVAILABLE)

KINDS = ("indoor", "outdoor")

# Matches the width of the letter columns.
MAX_IDENTIFIER_LENGTH = 8

# Legacy colour vocabulary of the grid: red cells are in use.
_STATUS_ALIASES = {
    "occupied": OCCUPIED,
    "red": OCCUPIED,
    "available": AVAILABLE,
    "green": AVAILABLE,
}


@dataclass
class UtilizationStats:
    total_sections: int = 0
    occupied_sections: int = 0
    available_sections: int = 0
    utilization_percent: int = 0

    def to_dict(self):
        return {
            "total_sections": int(self.total_sections),
            "occupied_sections": int(self.occupied_sections),
            "available_sections": int(self.available_sections),
            "utilization_percent": int(self.utilization_percent),
        }


def normalize_status(value) -> str:
    """Return the canonical status for ``value`` or raise ValueError."""
    if isinstance(value, bool):
        return OCCUPIED if value else AVAILABLE
    key = (str(value) if value is not None else "").strip().lower()
    if key not in _STATUS_ALIASES:
        raise ValueError(f"unknown status: {value!r}")
    return _STATUS_ALIASES[key]


def is_occupied(value) -> bool:
    try:
        return normalize_status(value) == OCCUPIED
    except ValueError:
        return False


def toggle_status(value) -> str:
    return AVAILABLE if is_occupied(value) else OCCUPIED


def round_half_up_percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    # floor(part / whole * 100 + 0.5) without float error
    return (200 * int(part) + int(whole)) // (2 * int(whole))


def section_key(group: str, number: int) -> str:
    return f"{group}{int(number)}"


def split_section_key(key: str) -> Tuple[str, Optional[int]]:
    """Split ``"AB12"`` into ``("AB", 12)``.

    The group token is the run of leading alphabetic characters. A key with no
    trailing digits yields ``None`` as its number.
    """
    raw = (key or "").strip()
    i = 0
    while i < len(raw) and raw[i].isalpha():
        i += 1
    group, digits = raw[:i], raw[i:]
    number = int(digits) if digits.isdigit() else None
    return group, number


def _group_of(key: str, membership: Optional[Mapping[str, str]]) -> str:
    if membership is not None and key in membership:
        return membership[key]
    return split_section_key(key)[0]


def calculate_stats(
    statuses: Mapping[str, object],
    groups: Optional[Iterable[str]] = None,
    membership: Optional[Mapping[str, str]] = None,
) -> UtilizationStats:
    """Reduce a section-key -> status mapping into utilization counts.

    When ``groups`` is given only sections whose group identifier equals one of
    them are counted. The identifier comes from ``membership`` when it knows the
    key, otherwise from the key's leading alphabetic token. Identifiers are
    compared whole, so group ``A`` never claims section ``AB1``.
    """
    wanted = None if groups is None else set(groups)
    total = 0
    occupied = 0
    for key, status in (statuses or {}).items():
        if wanted is not None and _group_of(key, membership) not in wanted:
            continue
        total += 1
        if is_occupied(status):
            occupied += 1
    return UtilizationStats(
        total_sections=total,
        occupied_sections=occupied,
        available_sections=total - occupied,
        utilization_percent=round_half_up_percent(occupied, total),
    )


def status_breakdown(statuses: Mapping[str, object]) -> Dict[str, int]:
    stats = calculate_stats(statuses)
    return {OCCUPIED: stats.occupied_sections, AVAILABLE: stats.available_sections}


def summarize_by_kind(
    statuses: Mapping[str, object],
    kinds: Mapping[str, str],
    membership: Optional[Mapping[str, str]] = None,
) -> Dict[str, UtilizationStats]:
    """Site-wide stats plus indoor/outdoor rollups. ``kinds`` maps group -> kind."""
    out = {"all": calculate_stats(statuses)}
    for kind in KINDS:
        letters = [g for g, k in kinds.items() if k == kind]
        out[kind] = calculate_stats(statuses, groups=letters, membership=membership)
    return out


def validate_group_identifier(candidate: str, existing: Iterable[str]) -> str:
    """Normalize ``candidate`` and make sure the identifier set stays prefix-free."""
    ident = (candidate or "").strip().upper()
    if not ident:
        raise ValueError("warehouse letter is required")
    if not ident.isalpha() or not ident.isascii():
        raise ValueError("warehouse letter must be alphabetic")
    if len(ident) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(f"warehouse letter is limited to {MAX_IDENTIFIER_LENGTH} characters")
    for other in existing:
        other = (other or "").strip().upper()
        if not other:
            continue
        if other == ident:
            raise ValueError(f"warehouse {ident} already exists")
        if other.startswith(ident) or ident.startswith(other):
            raise ValueError(f"warehouse {ident} collides with warehouse {other}")
    return ident


def next_group_identifier(existing: Iterable[str]) -> Optional[str]:
    taken = [e for e in existing if e]
    for code in range(ord("A"), ord("Z") + 1):
        letter = chr(code)
        try:
            return validate_group_identifier(letter, taken)
        except ValueError:
            continue
    return None

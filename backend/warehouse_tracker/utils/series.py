from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

RANGE_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}
RANGES = tuple(RANGE_DAYS) + ("custom",)

# Longest custom window the history endpoint will expand day by day.
MAX_CUSTOM_DAYS = 3660


def parse_day(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = (str(value) if value is not None else "").strip()
    if not raw:
        raise ValueError("date is required")
    # accept full ISO timestamps as well as bare days
    return date.fromisoformat(raw[:10])


def _sample_pair(sample) -> Tuple[date, float]:
    if isinstance(sample, dict):
        day = sample.get("date")
        value = sample.get("value")
        if value is None:
            value = sample.get("utilization_percent")
    else:
        day, value = sample
    return parse_day(day), float(value or 0)


def build_daily_series(start, end, samples: Iterable) -> List[Dict[str, object]]:
    """Dense day-by-day series over ``[start, end]`` with last value carried forward.

    Days without a sample take the most recent earlier value, including samples
    dated before ``start``; with nothing earlier the value is 0. A later sample
    for an already seen day replaces it. ``start > end`` gives an empty list.
    """
    first = parse_day(start)
    last = parse_day(end)
    if first > last:
        return []

    by_day: Dict[date, float] = {}
    for sample in samples or []:
        day, value = _sample_pair(sample)
        if day > last:
            continue
        by_day[day] = value

    carry = 0.0
    earlier = [d for d in by_day if d < first]
    if earlier:
        carry = by_day[max(earlier)]

    out = []
    for offset in range((last - first).days + 1):
        day = first + timedelta(days=offset)
        if day in by_day:
            carry = by_day[day]
        out.append({"date": day, "value": carry})
    return out


def resolve_range(name: str, today, start=None, end=None) -> Tuple[date, date]:
    """Turn a dashboard time filter into an inclusive ``(start, end)`` pair."""
    key = (name or "week").strip().lower()
    if key == "custom":
        if start is None or end is None:
            raise ValueError("custom range needs start and end")
        first, last = parse_day(start), parse_day(end)
        if (last - first).days + 1 > MAX_CUSTOM_DAYS:
            raise ValueError(f"custom range is limited to {MAX_CUSTOM_DAYS} days")
        return first, last
    days: Optional[int] = RANGE_DAYS.get(key)
    if days is None:
        raise ValueError(f"unknown range: {name!r}")
    last = parse_day(today)
    return last - timedelta(days=days - 1), last

"""Totals derived from store records (hours, pay, reimbursements)."""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, Mapping

from core.settings import MILEAGE_RATE_PER_MILE
from datetime_utils import hours_between, parse_iso


def hours_from_entry(entry: Mapping[str, Any]) -> float:
    """Worked hours of a finished entry, net of its break; 0 while open."""

    start = parse_iso(entry.get("startTime"))
    end = parse_iso(entry.get("endTime"))
    if start is None or end is None:
        return 0.0
    worked = hours_between(start, end) - (entry.get("breakMinutes") or 0) / 60
    return max(0.0, worked)


def total_hours_on(entries: Iterable[Mapping[str, Any]], day: str) -> float:
    return sum(hours_from_entry(e) for e in entries if e.get("date") == day)


def total_miles_on(entries: Iterable[Mapping[str, Any]], day: str) -> float:
    return sum(float(e.get("tripMiles") or 0) for e in entries if e.get("date") == day)


def overtime_hours_on(entries: Iterable[Mapping[str, Any]], day: str, threshold: float) -> float:
    return max(0.0, total_hours_on(entries, day) - threshold)


def calculate_earnings(
    entries: Iterable[Mapping[str, Any]],
    rate: float,
    overtime_multiplier: float,
    overtime_threshold: float,
) -> Dict[str, float]:
    """Regular and overtime pay, with the threshold applied per day."""

    by_day: Dict[str, float] = defaultdict(float)
    for entry in entries:
        by_day[entry.get("date")] += hours_from_entry(entry)

    regular = 0.0
    overtime = 0.0
    for hours in by_day.values():
        regular += min(hours, overtime_threshold) * rate
        overtime += max(0.0, hours - overtime_threshold) * rate * overtime_multiplier
    return {"regular": regular, "overtime": overtime, "total": regular + overtime}


def mileage_reimbursement(
    entries: Iterable[Mapping[str, Any]],
    rate_per_mile: float = MILEAGE_RATE_PER_MILE,
) -> float:
    return sum(
        float(e.get("tripMiles") or 0) * rate_per_mile
        for e in entries
        if e.get("purpose") == "work"
    )


__all__ = [
    "calculate_earnings",
    "hours_from_entry",
    "mileage_reimbursement",
    "overtime_hours_on",
    "total_hours_on",
    "total_miles_on",
]

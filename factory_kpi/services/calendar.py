"""
Rules of the dashboard calendars.

Day maps are keyed by day-of-month (as strings once stored in JSON):

  safety           "safe" | "incident"
  quality          "satisfied" | "dissatisfied"
  premium-freight  "freight" | "none"
  production       efficiency percentage 0-100, one map per scope
                   (free-text production line name)
"""

from __future__ import annotations

import calendar as _calendar
from datetime import date
from typing import Any, Dict, Optional

STATUS_CALENDARS = ("safety", "quality", "premium-freight")
VALUE_CALENDARS = ("production",)
CALENDARS = STATUS_CALENDARS + VALUE_CALENDARS

# Clicking a day on these calendars is refused for days after today.
NO_FUTURE_EDITS = ("safety", "quality")


class CalendarRuleError(ValueError):
    """A day edit that the calendar does not allow."""


def days_in_month(year: int, month: int) -> int:
    return _calendar.monthrange(year, month)[1]


def next_status(calendar: str, current: Optional[str]) -> str:
    """Status a click moves the day to."""
    if calendar == "safety":
        return "incident" if current == "safe" else "safe"
    if calendar == "quality":
        return "dissatisfied" if current == "satisfied" else "satisfied"
    if calendar == "premium-freight":
        return "none" if current == "freight" else "freight"
    raise CalendarRuleError(f"Days of the {calendar} calendar cannot be toggled")


def check_day(calendar: str, year: int, month: int, day: int, today: Optional[date] = None) -> None:
    if not 1 <= day <= days_in_month(year, month):
        raise CalendarRuleError(f"Day {day} is not in {year}-{month:02d}")
    if calendar in NO_FUTURE_EDITS:
        today = today or date.today()
        if (year, month) == (today.year, today.month) and day > today.day:
            raise CalendarRuleError("Future days cannot be changed")


def toggle_day(
    calendar: str,
    days: Dict[str, Any],
    year: int,
    month: int,
    day: int,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Return a new day map with the day's status advanced."""
    check_day(calendar, year, month, day, today)
    updated = dict(days)
    updated[str(day)] = next_status(calendar, days.get(str(day)))
    return updated


def set_day_value(
    calendar: str,
    days: Dict[str, Any],
    year: int,
    month: int,
    day: int,
    value: float,
) -> Dict[str, Any]:
    if calendar not in VALUE_CALENDARS:
        raise CalendarRuleError(f"Days of the {calendar} calendar take a status, not a value")
    check_day(calendar, year, month, day)
    if not 0 <= value <= 100:
        raise CalendarRuleError("Efficiency must be between 0 and 100")
    updated = dict(days)
    updated[str(day)] = value
    return updated


def efficiency_band(value: Optional[float]) -> Optional[str]:
    if value is None:
        return None
    if value >= 95:
        return "green"
    if value >= 85:
        return "yellow"
    return "red"


def summarize(calendar: str, days: Dict[str, Any]) -> Dict[str, Any]:
    values = list(days.values())
    if calendar == "safety":
        return {"safeDays": values.count("safe"), "incidents": values.count("incident")}
    if calendar == "quality":
        return {"satisfied": values.count("satisfied"), "dissatisfied": values.count("dissatisfied")}
    if calendar == "premium-freight":
        return {"freightDays": values.count("freight")}
    numbers = [float(v) for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
    average = round(sum(numbers) / len(numbers), 2) if numbers else None
    return {
        "recordedDays": len(numbers),
        "average": average,
        "band": efficiency_band(average),
    }

from datetime import date

import pytest

from factory_kpi.services.calendar import (
    CalendarRuleError,
    efficiency_band,
    next_status,
    set_day_value,
    summarize,
    toggle_day,
)


@pytest.mark.parametrize(
    "calendar, current, expected",
    [
        ("safety", None, "safe"),
        ("safety", "safe", "incident"),
        ("safety", "incident", "safe"),
        ("quality", None, "satisfied"),
        ("quality", "satisfied", "dissatisfied"),
        ("premium-freight", None, "freight"),
        ("premium-freight", "freight", "none"),
        ("premium-freight", "none", "freight"),
    ],
)
def test_next_status(calendar, current, expected):
    assert next_status(calendar, current) == expected


def test_production_days_cannot_be_toggled():
    with pytest.raises(CalendarRuleError):
        next_status("production", None)


def test_future_days_are_refused_for_safety_and_quality():
    today = date(2024, 6, 15)
    with pytest.raises(CalendarRuleError):
        toggle_day("safety", {}, 2024, 6, 16, today=today)
    with pytest.raises(CalendarRuleError):
        toggle_day("quality", {}, 2024, 6, 30, today=today)
    assert toggle_day("safety", {}, 2024, 6, 15, today=today) == {"15": "safe"}
    # Premium freight can be planned ahead.
    assert toggle_day("premium-freight", {}, 2024, 6, 20, today=today) == {"20": "freight"}


def test_toggle_does_not_mutate_input():
    days = {"3": "safe"}
    updated = toggle_day("safety", days, 2023, 1, 3)
    assert days == {"3": "safe"}
    assert updated == {"3": "incident"}


def test_days_outside_the_month_are_refused():
    with pytest.raises(CalendarRuleError):
        toggle_day("premium-freight", {}, 2023, 2, 29)
    with pytest.raises(CalendarRuleError):
        set_day_value("production", {}, 2023, 4, 31, 90)


def test_set_day_value_range_and_calendar():
    assert set_day_value("production", {}, 2023, 4, 2, 88.5) == {"2": 88.5}
    with pytest.raises(CalendarRuleError):
        set_day_value("production", {}, 2023, 4, 2, 101)
    with pytest.raises(CalendarRuleError):
        set_day_value("safety", {}, 2023, 4, 2, 50)


@pytest.mark.parametrize("value, band", [(None, None), (95, "green"), (94.99, "yellow"), (85, "yellow"), (84.9, "red")])
def test_efficiency_band(value, band):
    assert efficiency_band(value) == band


def test_summaries():
    assert summarize("safety", {"1": "safe", "2": "safe", "3": "incident"}) == {"safeDays": 2, "incidents": 1}
    assert summarize("quality", {"1": "dissatisfied"}) == {"satisfied": 0, "dissatisfied": 1}
    assert summarize("premium-freight", {"1": "freight", "2": "none"}) == {"freightDays": 1}
    assert summarize("production", {"1": 90, "2": 100}) == {"recordedDays": 2, "average": 95.0, "band": "green"}
    assert summarize("production", {}) == {"recordedDays": 0, "average": None, "band": None}


@pytest.mark.parametrize("calendar, start", [("safety", "incident"), ("quality", "satisfied"), ("premium-freight", "none")])
def test_toggling_twice_restores_the_day(calendar, start):
    days = {"4": start}
    assert toggle_day(calendar, toggle_day(calendar, days, 2023, 5, 4), 2023, 5, 4) == days

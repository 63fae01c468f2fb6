"""Month calendars and bookable time slots for a doctor's weekly availability.

A weekly availability map looks like::

    {"monday": {"available": true, "slots": ["09:00", "09:30"]}, "sunday": {"available": false, "slots": []}}

An available day with an empty slot list is open for the whole clinic day.
All times are naive local clinic times.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from typing import Any, TypedDict

from app.core.config import settings

WEEKDAY_NAMES: tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class SlotUnavailableError(ValueError):
    pass


class CalendarDay(TypedDict):
    date: date
    day: int
    is_past: bool
    is_today: bool
    is_selected: bool
    is_weekend: bool
    is_available: bool


class TimeSlot(TypedDict):
    time: str
    available: bool


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def _day_entry(availability: Mapping[str, Any], day: date) -> Mapping[str, Any]:
    entry = availability.get(weekday_name(day)) or {}
    return entry if isinstance(entry, Mapping) else {}


def is_day_available(availability: Mapping[str, Any], day: date) -> bool:
    return bool(_day_entry(availability, day).get("available"))


def has_any_available_day(availability: Mapping[str, Any]) -> bool:
    return any(bool((availability.get(name) or {}).get("available")) for name in WEEKDAY_NAMES)


def clinic_slot_times(
    open_hour: int | None = None,
    close_hour: int | None = None,
    slot_minutes: int | None = None,
) -> list[str]:
    open_hour = settings.clinic_open_hour if open_hour is None else open_hour
    close_hour = settings.clinic_close_hour if close_hour is None else close_hour
    slot_minutes = settings.slot_minutes if slot_minutes is None else slot_minutes
    if slot_minutes <= 0:
        raise ValueError("slot_minutes must be positive.")

    times: list[str] = []
    minute_of_day = open_hour * 60
    while minute_of_day < close_hour * 60:
        hour, minute = divmod(minute_of_day, 60)
        times.append(f"{hour:02d}:{minute:02d}")
        minute_of_day += slot_minutes
    return times


def off_grid_slots(availability: Mapping[str, Any]) -> list[str]:
    """Listed slot times that are not clinic slots and so could never be booked."""
    grid = set(clinic_slot_times())
    invalid: list[str] = []
    for name in WEEKDAY_NAMES:
        for slot_time in (availability.get(name) or {}).get("slots") or []:
            if slot_time not in grid and slot_time not in invalid:
                invalid.append(slot_time)
    return invalid


def parse_slot_time(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError as exc:
        raise ValueError(f"Invalid slot time: {value!r}") from exc


def build_month_calendar(
    year: int,
    month: int,
    availability: Mapping[str, Any],
    today: date,
    selected: date | None = None,
) -> list[CalendarDay | None]:
    """Sunday-first month grid; leading None cells pad the first week."""
    first_weekday, days_in_month = calendar.monthrange(year, month)
    # calendar.monthrange counts Monday as 0; the grid starts on Sunday.
    leading_blanks = (first_weekday + 1) % 7

    cells: list[CalendarDay | None] = [None] * leading_blanks
    for day_number in range(1, days_in_month + 1):
        current = date(year, month, day_number)
        is_past = current < today
        cells.append(
            {
                "date": current,
                "day": day_number,
                "is_past": is_past,
                "is_today": current == today,
                "is_selected": selected is not None and current == selected,
                "is_weekend": current.weekday() >= 5,
                "is_available": is_day_available(availability, current) and not is_past,
            }
        )
    return cells


def generate_day_slots(
    day: date,
    availability: Mapping[str, Any],
    booked: Iterable[str],
    now: datetime,
    *,
    open_hour: int | None = None,
    close_hour: int | None = None,
    slot_minutes: int | None = None,
) -> list[TimeSlot]:
    booked_times = set(booked)
    entry = _day_entry(availability, day)
    day_open = bool(entry.get("available"))
    offered = set(entry.get("slots") or [])

    slots: list[TimeSlot] = []
    for slot_time in clinic_slot_times(open_hour, close_hour, slot_minutes):
        starts_at = datetime.combine(day, parse_slot_time(slot_time))
        available = (
            day_open
            and (not offered or slot_time in offered)
            and slot_time not in booked_times
            and starts_at > now
        )
        slots.append({"time": slot_time, "available": available})
    return slots


def ensure_slot_bookable(
    starts_at: datetime,
    availability: Mapping[str, Any],
    booked: Iterable[str],
    now: datetime,
) -> str:
    slot_time = starts_at.strftime("%H:%M")
    if starts_at.second or starts_at.microsecond:
        raise SlotUnavailableError(f"{starts_at.isoformat()} does not start on a slot boundary.")
    slots = generate_day_slots(starts_at.date(), availability, booked, now)
    for slot in slots:
        if slot["time"] == slot_time:
            if not slot["available"]:
                raise SlotUnavailableError(f"Slot {starts_at:%Y-%m-%d %H:%M} is not available.")
            return slot_time
    raise SlotUnavailableError(f"{slot_time} is not a clinic slot.")

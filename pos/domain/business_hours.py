"""Business hours, special hours and holiday evaluation.

All functions work on wall-clock time: the caller passes a datetime already
expressed in the store's timezone (naive or aware) and gets datetimes back in
the same frame. Evaluation order for a given instant:

1. a closing holiday wins;
2. a special-hours entry for that exact date replaces the weekly schedule;
3. the weekly schedule for the weekday applies, minus break windows;
4. with nothing configured the store is open.

Missing or unreadable configuration never raises; it leaves the store open.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Sequence

DAYS_OF_WEEK = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

MAX_LOOKAHEAD_DAYS = 365


class HolidayType(str, enum.Enum):
    SINGLE = "single"
    RECURRING = "recurring"


class RecurringPattern(str, enum.Enum):
    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class StatusSource(str, enum.Enum):
    """Which piece of configuration decided an OpenStatus."""

    HOLIDAY = "holiday"
    SPECIAL_HOURS = "special_hours"
    SCHEDULE = "schedule"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True, slots=True)
class BreakWindow:
    start: str
    end: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BreakWindow":
        return cls(start=data.get("start") or "", end=data.get("end") or "")


@dataclass(frozen=True, slots=True)
class DaySchedule:
    enabled: bool = False
    open_time: str | None = None
    close_time: str | None = None
    breaks: tuple[BreakWindow, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DaySchedule":
        return cls(
            enabled=bool(data.get("enabled", False)),
            open_time=data.get("open_time"),
            close_time=data.get("close_time"),
            breaks=tuple(
                BreakWindow.from_dict(item)
                for item in data.get("breaks") or ()
                if isinstance(item, Mapping)
            ),
        )


@dataclass(frozen=True, slots=True)
class SpecialHours:
    date: str
    enabled: bool = False
    open_time: str | None = None
    close_time: str | None = None
    note: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SpecialHours":
        return cls(
            date=data.get("date") or "",
            enabled=bool(data.get("enabled", False)),
            open_time=data.get("open_time"),
            close_time=data.get("close_time"),
            note=data.get("note"),
        )


@dataclass(frozen=True, slots=True)
class BusinessHours:
    timezone: str | None = None
    # None means no weekly schedule was ever configured
    schedule: Mapping[str, DaySchedule] | None = None
    special_hours: tuple[SpecialHours, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "BusinessHours":
        if not data:
            return cls()
        raw_schedule = data.get("schedule")
        schedule = None
        if isinstance(raw_schedule, Mapping):
            schedule = {
                str(day).lower(): DaySchedule.from_dict(value)
                for day, value in raw_schedule.items()
                if isinstance(value, Mapping)
            }
        return cls(
            timezone=data.get("timezone"),
            schedule=schedule,
            special_hours=tuple(
                SpecialHours.from_dict(item)
                for item in data.get("special_hours") or ()
                if isinstance(item, Mapping)
            ),
        )


@dataclass(frozen=True, slots=True)
class RecurringRule:
    pattern: RecurringPattern
    day_of_month: int | None = None
    # 0-6, Sunday = 0
    day_of_week: int | None = None
    # 1-12
    month: int | None = None


@dataclass(frozen=True, slots=True)
class Holiday:
    id: str
    name: str
    type: HolidayType
    date: str | None = None
    recurring: RecurringRule | None = None
    is_business_closed: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Holiday | None":
        """Build a holiday from stored JSON, None when the entry is unusable."""
        try:
            holiday_type = HolidayType(data.get("type"))
        except ValueError:
            return None

        recurring = None
        raw = data.get("recurring")
        if isinstance(raw, Mapping):
            try:
                recurring = RecurringRule(
                    pattern=RecurringPattern(raw.get("pattern")),
                    day_of_month=raw.get("day_of_month"),
                    day_of_week=raw.get("day_of_week"),
                    month=raw.get("month"),
                )
            except ValueError:
                recurring = None

        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            type=holiday_type,
            date=data.get("date"),
            recurring=recurring,
            is_business_closed=bool(data.get("is_business_closed", True)),
        )


@dataclass(frozen=True, slots=True)
class OpenStatus:
    is_open: bool
    reason: str | None = None
    next_open: datetime | None = None
    source: StatusSource = StatusSource.UNCONFIGURED


def holidays_from_dicts(items: Sequence[Mapping[str, Any]] | None) -> list[Holiday]:
    holidays = []
    for item in items or ():
        if not isinstance(item, Mapping):
            continue
        holiday = Holiday.from_dict(item)
        if holiday is not None:
            holidays.append(holiday)
    return holidays


def format_date(when: datetime) -> str:
    return f"{when.year:04d}-{when.month:02d}-{when.day:02d}"


def day_of_week(when: datetime) -> int:
    """Weekday with Sunday = 0, the convention stored in holiday rules."""
    return (when.weekday() + 1) % 7


def parse_clock(value: str | None) -> tuple[int, int] | None:
    """Parse ``HH:MM`` into (hour, minute), None when it is not a valid time."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour, minute


def _at_clock(when: datetime, clock: tuple[int, int], days_ahead: int = 0) -> datetime:
    moved = when + timedelta(days=days_ahead) if days_ahead else when
    return moved.replace(hour=clock[0], minute=clock[1], second=0, microsecond=0)


def check_time_range(
    when: datetime, open_time: str | None, close_time: str | None
) -> OpenStatus | None:
    """Check ``when`` against an open/close window.

    The window is [open, close). When close is earlier than open the window
    spans midnight. Returns None when either bound is missing or unreadable.
    """
    opening = parse_clock(open_time)
    closing = parse_clock(close_time)
    if opening is None or closing is None:
        return None

    current = when.hour * 60 + when.minute
    open_minutes = opening[0] * 60 + opening[1]
    close_minutes = closing[0] * 60 + closing[1]

    if close_minutes < open_minutes:
        is_open = current >= open_minutes or current < close_minutes
    else:
        is_open = open_minutes <= current < close_minutes

    if is_open:
        return OpenStatus(is_open=True)

    if current < open_minutes:
        next_open = _at_clock(when, opening)
    else:
        next_open = _at_clock(when, opening, days_ahead=1)
    return OpenStatus(is_open=False, next_open=next_open)


def _in_break(when: datetime, window: BreakWindow) -> datetime | None:
    """Return the end of ``window`` when ``when`` falls inside it."""
    status = check_time_range(when, window.start, window.end)
    if status is None or not status.is_open:
        return None
    end = parse_clock(window.end)
    current = when.hour * 60 + when.minute
    days_ahead = 1 if end[0] * 60 + end[1] <= current else 0
    return _at_clock(when, end, days_ahead=days_ahead)


def _recurring_matches(rule: RecurringRule, when: datetime) -> bool:
    weekday = day_of_week(when)
    if rule.pattern == RecurringPattern.YEARLY:
        if rule.month and rule.day_of_month:
            return when.month == rule.month and when.day == rule.day_of_month
        # Without month/day only the weekday is compared, so this matches
        # that weekday in every month of the year.
        if rule.day_of_week is not None:
            return weekday == rule.day_of_week
        return False
    if rule.pattern == RecurringPattern.MONTHLY:
        return bool(rule.day_of_month) and when.day == rule.day_of_month
    if rule.pattern == RecurringPattern.WEEKLY:
        return rule.day_of_week is not None and weekday == rule.day_of_week
    return False


def get_holiday_for_date(when: datetime, holidays: Sequence[Holiday] | None) -> Holiday | None:
    """First holiday, in list order, that covers the date of ``when``."""
    date_str = format_date(when)
    for holiday in holidays or ():
        if holiday.type == HolidayType.SINGLE:
            if holiday.date == date_str:
                return holiday
        elif holiday.type == HolidayType.RECURRING and holiday.recurring is not None:
            if _recurring_matches(holiday.recurring, when):
                return holiday
    return None


def is_business_open(
    when: datetime,
    business_hours: BusinessHours | None = None,
    holidays: Sequence[Holiday] | None = None,
) -> OpenStatus:
    """Decide whether the store is open at ``when``."""
    if holidays:
        holiday = get_holiday_for_date(when, holidays)
        if holiday is not None and holiday.is_business_closed:
            return OpenStatus(
                is_open=False,
                reason=f"Closed for {holiday.name}",
                source=StatusSource.HOLIDAY,
            )

    if business_hours is None:
        return OpenStatus(is_open=True)

    date_str = format_date(when)
    special = next((sh for sh in business_hours.special_hours if sh.date == date_str), None)
    if special is not None:
        if not special.enabled:
            return OpenStatus(
                is_open=False,
                reason=special.note or "Closed (special hours)",
                source=StatusSource.SPECIAL_HOURS,
            )
        status = check_time_range(when, special.open_time, special.close_time)
        if status is not None:
            return OpenStatus(
                is_open=status.is_open,
                next_open=status.next_open,
                source=StatusSource.SPECIAL_HOURS,
            )

    if business_hours.schedule is not None:
        day_name = DAYS_OF_WEEK[day_of_week(when)]
        day_schedule = business_hours.schedule.get(day_name)
        if day_schedule is None or not day_schedule.enabled:
            return OpenStatus(
                is_open=False,
                reason=f"Closed on {day_name}",
                source=StatusSource.SCHEDULE,
            )

        status = check_time_range(when, day_schedule.open_time, day_schedule.close_time)
        if status is not None:
            if status.is_open:
                for window in day_schedule.breaks:
                    break_end = _in_break(when, window)
                    if break_end is not None:
                        return OpenStatus(
                            is_open=False,
                            reason="Closed for break",
                            next_open=break_end,
                            source=StatusSource.SCHEDULE,
                        )
            return OpenStatus(
                is_open=status.is_open,
                next_open=status.next_open,
                source=StatusSource.SCHEDULE,
            )

    return OpenStatus(is_open=True)


def get_next_open_time(
    from_when: datetime,
    business_hours: BusinessHours | None = None,
    holidays: Sequence[Holiday] | None = None,
) -> datetime | None:
    """Earliest instant the store opens, from ``from_when`` onwards.

    Walks forward one day at a time (from local midnight) and gives up with
    None after MAX_LOOKAHEAD_DAYS days without an opening.
    """
    check = from_when
    for _ in range(MAX_LOOKAHEAD_DAYS):
        status = is_business_open(check, business_hours, holidays)
        if status.is_open:
            return check
        if status.next_open is not None:
            return status.next_open
        check = (check + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return None


def get_business_hours_for_day(
    day_name: str, business_hours: BusinessHours | None = None
) -> DaySchedule | None:
    if business_hours is None or business_hours.schedule is None:
        return None
    return business_hours.schedule.get(day_name.lower())

from datetime import date as CalendarDate, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pos.domain.business_hours import DAYS_OF_WEEK

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class BreakWindow(BaseModel):
    start: str = Field(..., pattern=CLOCK_PATTERN)
    end: str = Field(..., pattern=CLOCK_PATTERN)


class DaySchedule(BaseModel):
    enabled: bool
    open_time: str | None = Field(None, pattern=CLOCK_PATTERN)
    close_time: str | None = Field(None, pattern=CLOCK_PATTERN)
    breaks: list[BreakWindow] = Field(default_factory=list)


class SpecialHours(BaseModel):
    date: CalendarDate
    enabled: bool
    open_time: str | None = Field(None, pattern=CLOCK_PATTERN)
    close_time: str | None = Field(None, pattern=CLOCK_PATTERN)
    note: str | None = Field(None, max_length=255)


class BusinessHours(BaseModel):
    timezone: str | None = None
    schedule: dict[str, DaySchedule] | None = None
    special_hours: list[SpecialHours] = Field(default_factory=list)


class BusinessHoursResponse(BusinessHours):
    version: int


class BusinessHoursUpdate(BaseModel):
    """Only the keys sent by the client are replaced."""

    version: int = Field(..., description="Settings version the client last read")
    timezone: str | None = None
    schedule: dict[str, DaySchedule] | None = None
    special_hours: list[SpecialHours] | None = None

    @field_validator("schedule")
    @classmethod
    def known_weekdays(cls, v: dict[str, DaySchedule] | None) -> dict[str, DaySchedule] | None:
        """Lower-case weekday keys and reject anything that is not a weekday."""
        if v is None:
            return v
        normalized = {}
        for day, schedule in v.items():
            key = day.lower()
            if key not in DAYS_OF_WEEK:
                raise ValueError(f"Unknown weekday: {day}")
            normalized[key] = schedule
        return normalized


class RecurringRule(BaseModel):
    pattern: Literal["yearly", "monthly", "weekly"]
    day_of_month: int | None = Field(None, ge=1, le=31)
    day_of_week: int | None = Field(None, ge=0, le=6, description="0-6, Sunday = 0")
    month: int | None = Field(None, ge=1, le=12)


class Holiday(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: Literal["single", "recurring"]
    date: CalendarDate | None = None
    recurring: RecurringRule | None = None
    is_business_closed: bool = True


class HolidayCreate(BaseModel):
    version: int = Field(..., description="Settings version the client last read")
    name: str = Field(..., min_length=1, max_length=255)
    type: Literal["single", "recurring"]
    date: CalendarDate | None = None
    recurring: RecurringRule | None = None
    is_business_closed: bool = True


class HolidayUpdate(BaseModel):
    version: int = Field(..., description="Settings version the client last read")
    name: str | None = Field(None, min_length=1, max_length=255)
    type: Literal["single", "recurring"] | None = None
    date: CalendarDate | None = None
    recurring: RecurringRule | None = None
    is_business_closed: bool | None = None


class HolidayList(BaseModel):
    version: int
    items: list[Holiday]


class HolidayMutation(BaseModel):
    version: int
    holiday: Holiday


class StoreStatus(BaseModel):
    is_open: bool
    reason: str | None = None
    next_open: datetime | None = None
    source: str
    evaluated_at: datetime
    timezone: str

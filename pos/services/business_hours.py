"""Business hours service: weekly schedule, special hours, holiday calendar and store status."""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from pos.domain.business_hours import (
    MAX_LOOKAHEAD_DAYS,
    BusinessHours,
    Holiday,
    HolidayType,
    OpenStatus,
    RecurringPattern,
    get_next_open_time,
    is_business_open,
)
from pos.domain.tenant_settings import TenantSettings
from pos.errors import DomainValidationError, NotFoundError
from pos.repositories.scoped import TenantScope
from pos.services.tenant import load_settings, save_settings, validate_timezone

logger = logging.getLogger(__name__)

BUSINESS_HOURS_KEYS = ("timezone", "schedule", "special_hours")


@dataclass(frozen=True, slots=True)
class StoreStatus:
    status: OpenStatus
    next_open: datetime | None
    evaluated_at: datetime
    timezone: str


def get_business_hours(db: Session, scope: TenantScope) -> TenantSettings:
    return load_settings(db, scope)


def update_business_hours(
    db: Session, scope: TenantScope, version: int, changes: dict[str, Any]
) -> TenantSettings:
    """
    Replace the given top-level business hours keys, keeping the others.

    ``changes`` may hold ``timezone``, ``schedule`` and ``special_hours``;
    every key present replaces the stored value wholesale.

    Raises:
        DomainValidationError: If the timezone is unknown
        ConcurrencyConflictError: If the settings changed since ``version``
    """
    current = load_settings(db, scope)
    merged = dict(current.business_hours)
    for key in BUSINESS_HOURS_KEYS:
        if key in changes:
            merged[key] = changes[key]
    if merged.get("timezone"):
        validate_timezone(merged["timezone"])
    return save_settings(db, scope, replace(current, version=version, business_hours=merged))


def validate_holiday(holiday: dict[str, Any]) -> None:
    """
    Check a holiday definition before it is stored.

    Raises:
        DomainValidationError: If required fields for its type are missing
    """
    if not holiday.get("name") or not holiday.get("type"):
        raise DomainValidationError("Name and type are required")

    if holiday["type"] == HolidayType.SINGLE.value and not holiday.get("date"):
        raise DomainValidationError("Date is required for single date holidays")

    if holiday["type"] == HolidayType.RECURRING.value:
        recurring = holiday.get("recurring") or {}
        pattern = recurring.get("pattern")
        if not pattern:
            raise DomainValidationError("Recurring pattern is required for recurring holidays")
        if pattern == RecurringPattern.YEARLY.value and (
            not recurring.get("month") or not recurring.get("day_of_month")
        ):
            raise DomainValidationError(
                "Month and day of month are required for yearly recurring holidays"
            )
        if pattern == RecurringPattern.MONTHLY.value and not recurring.get("day_of_month"):
            raise DomainValidationError("Day of month is required for monthly recurring holidays")
        if pattern == RecurringPattern.WEEKLY.value and recurring.get("day_of_week") is None:
            raise DomainValidationError("Day of week is required for weekly recurring holidays")


def _normalize_holiday(holiday: dict[str, Any]) -> dict[str, Any]:
    # Single holidays keep no recurring rule and recurring ones no date
    if holiday["type"] == HolidayType.SINGLE.value:
        holiday["recurring"] = None
    else:
        holiday["date"] = None
    return holiday


def list_holidays(db: Session, scope: TenantScope) -> TenantSettings:
    return load_settings(db, scope)


def add_holiday(
    db: Session, scope: TenantScope, version: int, holiday: dict[str, Any]
) -> tuple[dict[str, Any], TenantSettings]:
    """
    Append a holiday to the tenant calendar. The server assigns its ID.

    Raises:
        DomainValidationError: If the holiday is incomplete
        ConcurrencyConflictError: If the settings changed since ``version``
    """
    validate_holiday(holiday)
    new_holiday = _normalize_holiday({**holiday, "id": f"holiday_{uuid.uuid4().hex}"})
    current = load_settings(db, scope)
    saved = save_settings(
        db,
        scope,
        replace(current, version=version, holidays=current.holidays + (new_holiday,)),
    )
    logger.info("Added holiday %s to tenant %s", new_holiday["id"], scope.slug)
    return new_holiday, saved


def update_holiday(
    db: Session, scope: TenantScope, version: int, holiday_id: str, changes: dict[str, Any]
) -> tuple[dict[str, Any], TenantSettings]:
    """
    Replace the provided fields of one holiday.

    Raises:
        NotFoundError: If the tenant has no holiday with this ID
        DomainValidationError: If the result is incomplete
        ConcurrencyConflictError: If the settings changed since ``version``
    """
    current = load_settings(db, scope)
    holidays = list(current.holidays)
    for index, existing in enumerate(holidays):
        if existing.get("id") == holiday_id:
            break
    else:
        raise NotFoundError("Holiday not found")

    updated = {**existing, **changes, "id": holiday_id}
    validate_holiday(updated)
    holidays[index] = _normalize_holiday(updated)
    saved = save_settings(db, scope, replace(current, version=version, holidays=tuple(holidays)))
    return holidays[index], saved


def delete_holiday(
    db: Session, scope: TenantScope, version: int, holiday_id: str
) -> TenantSettings:
    """
    Raises:
        NotFoundError: If the tenant has no holiday with this ID
        ConcurrencyConflictError: If the settings changed since ``version``
    """
    current = load_settings(db, scope)
    remaining = tuple(h for h in current.holidays if h.get("id") != holiday_id)
    if len(remaining) == len(current.holidays):
        raise NotFoundError("Holiday not found")
    return save_settings(db, scope, replace(current, version=version, holidays=remaining))


def _store_zone(tenant_settings: TenantSettings) -> ZoneInfo:
    name = tenant_settings.hours().timezone or tenant_settings.timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r for tenant %s, using UTC", name, tenant_settings.tenant_id)
        return ZoneInfo("UTC")


def find_next_opening(
    from_when: datetime,
    business_hours: BusinessHours,
    holidays: list[Holiday],
) -> datetime | None:
    """
    Earliest instant from ``from_when`` at which the store is actually open.

    ``get_next_open_time`` reports the schedule's next opening time without
    checking that day's own configuration, so a closing time on Friday
    yields Saturday even when Saturday is disabled. Each candidate is
    evaluated again and the search continues from it while it is closed.
    """
    candidate = from_when
    for _ in range(MAX_LOOKAHEAD_DAYS):
        candidate = get_next_open_time(candidate, business_hours, holidays)
        if candidate is None:
            return None
        if is_business_open(candidate, business_hours, holidays).is_open:
            return candidate
    return None


def get_store_status(
    db: Session, scope: TenantScope, at: datetime | None = None
) -> StoreStatus:
    """
    Evaluate whether the store is open at ``at`` (default: now).

    Aware datetimes are converted to the store timezone; naive ones are read
    as store wall-clock time.
    """
    tenant_settings = load_settings(db, scope)
    zone = _store_zone(tenant_settings)

    if at is None:
        local = datetime.now(zone)
    elif at.tzinfo is None:
        local = at.replace(tzinfo=zone)
    else:
        local = at.astimezone(zone)

    business_hours = tenant_settings.hours()
    holidays = tenant_settings.holiday_calendar()
    status = is_business_open(local, business_hours, holidays)
    next_open = None if status.is_open else find_next_opening(local, business_hours, holidays)
    return StoreStatus(status=status, next_open=next_open, evaluated_at=local, timezone=zone.key)

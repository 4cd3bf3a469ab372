from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pos.api.deps import get_db, get_tenant_scope, require_tenant_roles
from pos.repositories.scoped import TenantScope
from pos.schemas.business_hours import (
    BusinessHoursResponse,
    BusinessHoursUpdate,
    Holiday,
    HolidayCreate,
    HolidayList,
    HolidayMutation,
    HolidayUpdate,
)
from pos.services import business_hours as hours_service

router = APIRouter(prefix="/tenants/{slug}", tags=["business-hours"])


def _hours_response(tenant_settings) -> BusinessHoursResponse:
    return BusinessHoursResponse(**tenant_settings.business_hours, version=tenant_settings.version)


@router.get("/business-hours", response_model=BusinessHoursResponse)
def get_business_hours(
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    return _hours_response(hours_service.get_business_hours(db, scope))


@router.put("/business-hours", response_model=BusinessHoursResponse)
def update_business_hours(
    hours_data: BusinessHoursUpdate,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    """
    Update business hours. Admins and managers only.

    ``timezone``, ``schedule`` and ``special_hours`` are each replaced only
    when present in the request body.
    """
    changes = hours_data.model_dump(mode="json", exclude_unset=True, exclude={"version"})
    saved = hours_service.update_business_hours(db, scope, hours_data.version, changes)
    return _hours_response(saved)


@router.get("/holidays", response_model=HolidayList)
def get_holidays(
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    tenant_settings = hours_service.list_holidays(db, scope)
    return HolidayList(
        version=tenant_settings.version,
        items=[Holiday.model_validate(h) for h in tenant_settings.holidays],
    )


@router.post("/holidays", response_model=HolidayMutation, status_code=status.HTTP_201_CREATED)
def create_holiday(
    holiday_data: HolidayCreate,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    """
    Add a holiday to the calendar. Admins and managers only.
    """
    holiday, saved = hours_service.add_holiday(
        db,
        scope,
        holiday_data.version,
        holiday_data.model_dump(mode="json", exclude={"version"}),
    )
    return HolidayMutation(version=saved.version, holiday=Holiday.model_validate(holiday))


@router.put("/holidays/{holiday_id}", response_model=HolidayMutation)
def update_holiday(
    holiday_id: str,
    holiday_data: HolidayUpdate,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    holiday, saved = hours_service.update_holiday(
        db,
        scope,
        holiday_data.version,
        holiday_id,
        holiday_data.model_dump(mode="json", exclude_unset=True, exclude={"version"}),
    )
    return HolidayMutation(version=saved.version, holiday=Holiday.model_validate(holiday))


@router.delete("/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday(
    holiday_id: str,
    version: int = Query(..., description="Settings version the client last read"),
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    hours_service.delete_holiday(db, scope, version, holiday_id)

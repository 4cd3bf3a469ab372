from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pos.api.deps import get_db, get_public_tenant_scope
from pos.repositories.scoped import TenantScope
from pos.schemas.business_hours import StoreStatus
from pos.services.business_hours import get_store_status

router = APIRouter(prefix="/public/{slug}", tags=["public"])


@router.get("/status", response_model=StoreStatus)
def get_status(
    at: datetime | None = Query(
        None, description="Instant to evaluate; naive values are read as store local time"
    ),
    scope: TenantScope = Depends(get_public_tenant_scope),
    db: Session = Depends(get_db),
):
    """
    Whether the storefront is open, and when it opens next if it is not.
    No authentication: the tenant is resolved from the slug.
    """
    store_status = get_store_status(db, scope, at)
    return StoreStatus(
        is_open=store_status.status.is_open,
        reason=store_status.status.reason,
        next_open=store_status.next_open,
        source=store_status.status.source.value,
        evaluated_at=store_status.evaluated_at,
        timezone=store_status.timezone,
    )

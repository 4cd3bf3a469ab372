from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos.api.deps import get_db, get_tenant_scope, require_roles, require_tenant_roles
from pos.repositories.scoped import TenantScope
from pos.schemas.tenant import Tenant, TenantCreate, TenantSettingsUpdate
from pos.services.tenant import create_tenant, get_tenant, update_settings

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post("", response_model=Tenant, status_code=status.HTTP_201_CREATED)
def create_new_tenant(
    tenant_data: TenantCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_roles("platform_admin")),
):
    """
    Create a new tenant. Only platform admins can create tenants.
    """
    tenant = create_tenant(
        db,
        slug=tenant_data.slug,
        name=tenant_data.name,
        currency=tenant_data.currency,
        timezone=tenant_data.timezone,
        tax_enabled=tenant_data.tax_enabled,
        default_tax_rate=tenant_data.default_tax_rate,
        tax_label=tenant_data.tax_label,
    )
    return Tenant.model_validate(tenant)


@router.get("/{slug}", response_model=Tenant)
def get_tenant_by_slug(
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    """
    Get a tenant. Members of the tenant and platform admins can see it.
    """
    return Tenant.model_validate(get_tenant(db, scope))


@router.put("/{slug}/settings", response_model=Tenant)
def update_tenant_settings(
    settings_data: TenantSettingsUpdate,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    """
    Update general and tax settings. Admins and managers only.

    The request carries the settings ``version`` it was based on; a stale
    version is rejected with 409.
    """
    update_settings(
        db,
        scope,
        version=settings_data.version,
        name=settings_data.name,
        currency=settings_data.currency,
        timezone=settings_data.timezone,
        tax_enabled=settings_data.tax_enabled,
        default_tax_rate=settings_data.default_tax_rate,
        tax_label=settings_data.tax_label,
    )
    return Tenant.model_validate(get_tenant(db, scope))

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from pos.db.models.tenant import Tenant as TenantModel
from pos.domain.tenant_settings import TenantSettings
from pos.errors import ConcurrencyConflictError, NotFoundError
from pos.repositories.scoped import TenantScope


def get_tenant_by_slug(db: Session, slug: str, active_only: bool = True) -> TenantModel | None:
    """Get a tenant by its URL slug."""
    query = db.query(TenantModel).filter(TenantModel.slug == slug)
    if active_only:
        query = query.filter(TenantModel.is_active == True)  # noqa: E712
    return query.first()


def create_tenant(
    db: Session,
    slug: str,
    name: str,
    currency: str,
    timezone: str,
    tax_enabled: bool = False,
    default_tax_rate: Decimal = Decimal(0),
    tax_label: str = "Tax",
) -> TenantModel:
    """Create a new tenant in the database. Pure data access - no business logic."""
    db_tenant = TenantModel(
        slug=slug,
        name=name,
        is_active=True,
        currency=currency,
        timezone=timezone,
        tax_enabled=tax_enabled,
        default_tax_rate=default_tax_rate,
        tax_label=tax_label,
        business_hours={},
        holidays=[],
    )
    db.add(db_tenant)
    db.commit()
    db.refresh(db_tenant)
    return db_tenant


def _to_settings(tenant: TenantModel) -> TenantSettings:
    return TenantSettings(
        tenant_id=tenant.id,
        version=tenant.version,
        name=tenant.name,
        currency=tenant.currency,
        timezone=tenant.timezone,
        tax_enabled=tenant.tax_enabled,
        default_tax_rate=Decimal(tenant.default_tax_rate or 0),
        tax_label=tenant.tax_label,
        business_hours=dict(tenant.business_hours or {}),
        holidays=tuple(tenant.holidays or ()),
    )


class TenantSettingsRepository:
    """Loads and stores the settings of the scoped tenant as one value."""

    def __init__(self, db: Session, scope: TenantScope):
        self.db = db
        self.scope = scope

    def _tenant(self) -> TenantModel:
        tenant = self.db.query(TenantModel).filter(TenantModel.id == self.scope.tenant_id).first()
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def load(self) -> TenantSettings:
        return _to_settings(self._tenant())

    def save(self, new_settings: TenantSettings) -> TenantSettings:
        """Write ``new_settings`` back if nobody else wrote since it was read.

        Raises:
            ConcurrencyConflictError: If the stored version differs from
                ``new_settings.version`` or a concurrent UPDATE won the race.
        """
        tenant = self._tenant()
        if tenant.version != new_settings.version:
            raise ConcurrencyConflictError(
                f"Tenant settings changed (version {tenant.version}, expected {new_settings.version})"
            )

        tenant.name = new_settings.name
        tenant.currency = new_settings.currency
        tenant.timezone = new_settings.timezone
        tenant.tax_enabled = new_settings.tax_enabled
        tenant.default_tax_rate = new_settings.default_tax_rate
        tenant.tax_label = new_settings.tax_label
        # New containers so the JSON columns are flagged as modified
        tenant.business_hours = dict(new_settings.business_hours)
        tenant.holidays = list(new_settings.holidays)

        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrencyConflictError("Tenant settings were modified concurrently") from exc

        self.db.refresh(tenant)
        return _to_settings(tenant)

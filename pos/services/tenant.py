"""Tenant service: creation, scope resolution and versioned settings updates."""

import logging
import re
from dataclasses import replace
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

import pos.repositories.tenant as tenant_repo
from pos.core.config import settings
from pos.db.models.tenant import Tenant as TenantModel
from pos.db.models.user import User
from pos.domain.tenant_settings import TenantSettings
from pos.errors import (
    ConcurrencyConflictError,
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
)
from pos.repositories.scoped import TenantScope
from pos.repositories.tenant import TenantSettingsRepository

logger = logging.getLogger(__name__)

PLATFORM_ADMIN = "platform_admin"
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


def validate_timezone(name: str) -> str:
    """Raise DomainValidationError unless ``name`` is a known IANA timezone."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise DomainValidationError(f"Unknown timezone: {name}")
    return name


def create_tenant(
    db: Session,
    slug: str,
    name: str,
    currency: str | None = None,
    timezone: str | None = None,
    tax_enabled: bool = False,
    default_tax_rate: Decimal = Decimal(0),
    tax_label: str = "Tax",
) -> TenantModel:
    """
    Create a tenant with domain validation.

    - Slug may only contain lowercase letters, numbers and hyphens
    - Slug is unique across active and inactive tenants

    Raises:
        DomainValidationError: If the slug or timezone is invalid
        DuplicateResourceError: If the slug is already taken
    """
    slug = slug.strip().lower()
    if not SLUG_PATTERN.match(slug):
        raise DomainValidationError(
            "Slug can only contain lowercase letters, numbers, and hyphens"
        )
    if tenant_repo.get_tenant_by_slug(db, slug, active_only=False):
        raise DuplicateResourceError(f"A tenant with slug {slug} already exists")

    tenant = tenant_repo.create_tenant(
        db,
        slug=slug,
        name=name.strip(),
        currency=(currency or settings.default_currency).upper(),
        timezone=validate_timezone(timezone or settings.default_timezone),
        tax_enabled=tax_enabled,
        default_tax_rate=default_tax_rate,
        tax_label=tax_label.strip() or "Tax",
    )
    logger.info("Created tenant %s (id=%s)", tenant.slug, tenant.id)
    return tenant


def resolve_public_scope(db: Session, slug: str) -> TenantScope:
    """Resolve the tenant from the slug path segment alone.

    Raises:
        NotFoundError: If no active tenant has this slug.
    """
    tenant = tenant_repo.get_tenant_by_slug(db, slug)
    if not tenant:
        raise NotFoundError("Tenant not found")
    return TenantScope(tenant_id=tenant.id, slug=tenant.slug)


def resolve_member_scope(db: Session, slug: str, current_user: User) -> TenantScope:
    """
    Resolve the tenant for an authenticated request.

    - Platform admins may act on any tenant
    - Everyone else only on the tenant their account belongs to

    Raises:
        NotFoundError: If no active tenant has this slug.
        ForbiddenError: If the user belongs to another tenant.
    """
    scope = resolve_public_scope(db, slug)
    if current_user.role.name == PLATFORM_ADMIN:
        return scope
    if current_user.tenant_id != scope.tenant_id:
        raise ForbiddenError("Not enough permissions")
    return scope


def get_tenant(db: Session, scope: TenantScope) -> TenantModel:
    tenant = tenant_repo.get_tenant_by_slug(db, scope.slug)
    if not tenant or tenant.id != scope.tenant_id:
        raise NotFoundError("Tenant not found")
    return tenant


def load_settings(db: Session, scope: TenantScope) -> TenantSettings:
    return TenantSettingsRepository(db, scope).load()


def save_settings(db: Session, scope: TenantScope, new_settings: TenantSettings) -> TenantSettings:
    """Persist ``new_settings`` atomically, logging lost races."""
    try:
        saved = TenantSettingsRepository(db, scope).save(new_settings)
    except ConcurrencyConflictError:
        logger.warning(
            "Settings write for tenant %s rejected at version %s", scope.slug, new_settings.version
        )
        raise
    logger.info("Saved settings for tenant %s (version %s)", scope.slug, saved.version)
    return saved


def update_settings(
    db: Session,
    scope: TenantScope,
    version: int,
    name: str | None = None,
    currency: str | None = None,
    timezone: str | None = None,
    tax_enabled: bool | None = None,
    default_tax_rate: Decimal | None = None,
    tax_label: str | None = None,
) -> TenantSettings:
    """
    Update general and tax settings of a tenant.

    ``version`` is the settings version the caller read.

    Raises:
        DomainValidationError: If the timezone is unknown
        ConcurrencyConflictError: If the settings changed since ``version``
    """
    current = replace(load_settings(db, scope), version=version)
    changes = {}
    if name is not None:
        changes["name"] = name.strip()
    if currency is not None:
        changes["currency"] = currency.upper()
    if timezone is not None:
        changes["timezone"] = validate_timezone(timezone)
    if tax_enabled is not None:
        changes["tax_enabled"] = tax_enabled
    if default_tax_rate is not None:
        changes["default_tax_rate"] = default_tax_rate
    if tax_label is not None:
        changes["tax_label"] = tax_label.strip() or "Tax"
    return save_settings(db, scope, replace(current, **changes))

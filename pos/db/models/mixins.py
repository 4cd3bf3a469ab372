from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import declared_attr


class TenantOwnedMixin:
    """Columns shared by every row that belongs to exactly one tenant.

    Rows carrying this mixin are only reachable through
    ``pos.repositories.scoped.TenantScopedRepository``.
    """

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)

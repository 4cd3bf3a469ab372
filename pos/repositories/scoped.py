"""Tenant-scoped data access.

Every row of a tenant-owned table is read and written through a
``TenantScopedRepository``. The repository is bound to one ``TenantScope``
when it is built, filters every query by that tenant and stamps every insert
with it, so callers cannot forget the tenant filter or issue a query that
spans tenants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy.orm import Query, Session

ModelT = TypeVar("ModelT")


@dataclass(frozen=True, slots=True)
class TenantScope:
    """The tenant a request acts on, resolved once per request."""

    tenant_id: int
    slug: str


class TenantScopedRepository(Generic[ModelT]):
    model: ClassVar[type]

    def __init__(self, db: Session, scope: TenantScope):
        self.db = db
        self.scope = scope

    def _query(self) -> Query:
        return self.db.query(self.model).filter(self.model.tenant_id == self.scope.tenant_id)

    def get(self, obj_id: int) -> ModelT | None:
        """Get a row of this tenant by ID; rows of other tenants are invisible."""
        return self._query().filter(self.model.id == obj_id).first()

    def list(self) -> list[ModelT]:
        return self._query().all()

    def add(self, **values: Any) -> ModelT:
        # The scope always wins over any tenant_id passed by the caller
        values["tenant_id"] = self.scope.tenant_id
        obj = self.model(**values)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, obj: ModelT, **values: Any) -> ModelT:
        if obj.tenant_id != self.scope.tenant_id:
            raise ValueError("Object does not belong to the repository's tenant")
        values.pop("tenant_id", None)
        for key, value in values.items():
            setattr(obj, key, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete(self, obj: ModelT) -> None:
        if obj.tenant_id != self.scope.tenant_id:
            raise ValueError("Object does not belong to the repository's tenant")
        self.db.delete(obj)
        self.db.commit()

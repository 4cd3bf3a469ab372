from pos.db.models.role import Role
from pos.db.models.tenant import Tenant
from pos.db.models.user import User
from pos.db.models.tax_rule import TaxRule

__all__ = ["Role", "Tenant", "User", "TaxRule"]

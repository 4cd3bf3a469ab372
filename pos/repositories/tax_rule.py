from pos.db.models.tax_rule import TaxRule as TaxRuleModel
from pos.repositories.scoped import TenantScopedRepository


class TaxRuleRepository(TenantScopedRepository[TaxRuleModel]):
    model = TaxRuleModel

    def list_rules(self, is_active: bool | None = None) -> list[TaxRuleModel]:
        """Rules of the tenant, highest priority first, then in creation order."""
        query = self._query()
        if is_active is not None:
            query = query.filter(TaxRuleModel.is_active == is_active)
        return query.order_by(TaxRuleModel.priority.desc(), TaxRuleModel.id.asc()).all()

    def list_active_in_creation_order(self) -> list[TaxRuleModel]:
        """Active rules in the order the resolver breaks priority ties on."""
        return (
            self._query()
            .filter(TaxRuleModel.is_active == True)  # noqa: E712
            .order_by(TaxRuleModel.id.asc())
            .all()
        )

"""Tax service: tenant tax rule management and checkout tax quotes."""

import logging
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from pos.core.config import settings
from pos.db.models.tax_rule import TaxRule as TaxRuleModel
from pos.domain.tax_rules import (
    AppliesTo,
    ItemTax,
    ItemsTaxResult,
    LineItem,
    SaleRegion,
    TaxRegion,
    TaxRule,
    TaxSource,
    calculate_tax_for_items,
    to_decimal,
)
from pos.errors import NotFoundError
from pos.repositories.scoped import TenantScope
from pos.repositories.tax_rule import TaxRuleRepository
from pos.services.tenant import load_settings

logger = logging.getLogger(__name__)

CLEARABLE_FIELDS = ("region_country", "region_state", "region_city")


def to_domain_rule(record: TaxRuleModel) -> TaxRule | None:
    """Map a stored rule to the resolver's value object, None when unusable."""
    try:
        applies_to = AppliesTo(record.applies_to or AppliesTo.ALL.value)
    except ValueError:
        logger.warning("Ignoring tax rule %s with unknown scope %r", record.id, record.applies_to)
        return None

    region = TaxRegion(
        country=record.region_country or None,
        state=record.region_state or None,
        city=record.region_city or None,
        zip_codes=tuple(str(z) for z in record.region_zip_codes or ()),
    )
    return TaxRule(
        id=str(record.id),
        name=record.name,
        rate=to_decimal(record.rate),
        label=record.label or "Tax",
        applies_to=applies_to,
        category_ids=tuple(str(c) for c in record.category_ids or ()),
        product_ids=tuple(str(p) for p in record.product_ids or ()),
        region=None if region.is_empty() else region,
        priority=to_decimal(record.priority),
        is_active=bool(record.is_active),
    )


def round_currency(amount: Decimal, decimals: int | None = None) -> Decimal:
    """Round half-up to the currency precision."""
    places = settings.currency_decimals if decimals is None else decimals
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def list_tax_rules(
    db: Session, scope: TenantScope, is_active: bool | None = None
) -> list[TaxRuleModel]:
    return TaxRuleRepository(db, scope).list_rules(is_active=is_active)


def get_tax_rule(db: Session, scope: TenantScope, rule_id: int) -> TaxRuleModel:
    """
    Raises:
        NotFoundError: If the rule does not exist for this tenant
    """
    rule = TaxRuleRepository(db, scope).get(rule_id)
    if not rule:
        raise NotFoundError("Tax rule not found")
    return rule


def create_tax_rule(db: Session, scope: TenantScope, **values) -> TaxRuleModel:
    values["name"] = values["name"].strip()
    values["label"] = (values.get("label") or "").strip() or "Tax"
    rule = TaxRuleRepository(db, scope).add(**values)
    logger.info("Created tax rule %s for tenant %s", rule.id, scope.slug)
    return rule


def update_tax_rule(db: Session, scope: TenantScope, rule_id: int, **values) -> TaxRuleModel:
    """
    Update only the provided fields of a rule.

    Raises:
        NotFoundError: If the rule does not exist for this tenant
    """
    repo = TaxRuleRepository(db, scope)
    rule = repo.get(rule_id)
    if not rule:
        raise NotFoundError("Tax rule not found")
    if "name" in values and values["name"] is not None:
        values["name"] = values["name"].strip()
    if "label" in values and values["label"] is not None:
        values["label"] = values["label"].strip() or "Tax"
    # An explicit null widens the rule again; other columns are NOT NULL
    changes = {
        key: value
        for key, value in values.items()
        if value is not None or key in CLEARABLE_FIELDS
    }
    return repo.update(rule, **changes)


def delete_tax_rule(db: Session, scope: TenantScope, rule_id: int) -> None:
    """
    Raises:
        NotFoundError: If the rule does not exist for this tenant
    """
    repo = TaxRuleRepository(db, scope)
    rule = repo.get(rule_id)
    if not rule:
        raise NotFoundError("Tax rule not found")
    repo.delete(rule)
    logger.info("Deleted tax rule %s for tenant %s", rule_id, scope.slug)


def load_domain_rules(db: Session, scope: TenantScope) -> list[TaxRule]:
    """Active rules of the tenant, in creation order."""
    records = TaxRuleRepository(db, scope).list_active_in_creation_order()
    return [rule for rule in map(to_domain_rule, records) if rule is not None]


def _line_label(item_tax: ItemTax, tax_label: str) -> str:
    if item_tax.source == TaxSource.DEFAULT_RATE and tax_label:
        return tax_label
    return item_tax.label


def quote_tax(
    db: Session,
    scope: TenantScope,
    items: list[LineItem],
    region: SaleRegion | None = None,
) -> tuple[ItemsTaxResult, str]:
    """
    Compute the tax of a cart with the tenant's rules and default rate.

    The tenant default rate only applies while tax is enabled on the tenant.
    Lines taxed at the default rate carry the tenant's tax label. Each line
    and the total are rounded to currency precision here; the total is
    rounded from the unrounded sum.

    Returns:
        The rounded result and the tenant currency.
    """
    tenant_settings = load_settings(db, scope)
    raw = calculate_tax_for_items(
        items,
        tax_rules=load_domain_rules(db, scope),
        default_tax_rate=tenant_settings.effective_default_tax_rate,
        region=region,
    )
    rounded = ItemsTaxResult(
        total_tax=round_currency(raw.total_tax),
        item_taxes=[
            replace(
                item_tax,
                tax=round_currency(item_tax.tax),
                label=_line_label(item_tax, tenant_settings.tax_label),
            )
            for item_tax in raw.item_taxes
        ],
    )
    return rounded, tenant_settings.currency

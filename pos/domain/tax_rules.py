"""Regional tax rule resolution.

Given a sale line (product, category, product type, region) and the tenant's
prioritized tax rules, pick the single applicable rule and compute the tax.

Only active rules take part, and a rule matches when all of its conditions
hold. The highest ``priority`` wins; ties go to the earlier rule. Without a
match a positive default rate applies, otherwise the line is untaxed.

Amounts are not rounded; callers round to currency precision.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

DEFAULT_TAX_LABEL = "Tax"


class AppliesTo(str, enum.Enum):
    ALL = "all"
    PRODUCTS = "products"
    SERVICES = "services"
    CATEGORIES = "categories"


class ProductType(str, enum.Enum):
    PRODUCT = "product"
    SERVICE = "service"


class TaxSource(str, enum.Enum):
    """Where the rate of a result came from."""

    RULE = "rule"
    DEFAULT_RATE = "default_rate"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class TaxRegion:
    """Region condition attached to a rule. Empty fields are not checked."""

    country: str | None = None
    state: str | None = None
    city: str | None = None
    zip_codes: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.country or self.state or self.city or self.zip_codes)


@dataclass(frozen=True, slots=True)
class SaleRegion:
    """Where a sale takes place."""

    country: str | None = None
    state: str | None = None
    city: str | None = None
    zip_code: str | None = None


@dataclass(frozen=True, slots=True)
class TaxRule:
    id: str
    name: str
    rate: Decimal
    label: str = DEFAULT_TAX_LABEL
    applies_to: AppliesTo = AppliesTo.ALL
    category_ids: tuple[str, ...] = ()
    product_ids: tuple[str, ...] = ()
    region: TaxRegion | None = None
    priority: Decimal = Decimal(0)
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class TaxCalculationContext:
    subtotal: Decimal
    product_id: str | None = None
    category_id: str | None = None
    product_type: ProductType | None = None
    region: SaleRegion | None = None


@dataclass(frozen=True, slots=True)
class TaxResult:
    amount: Decimal
    rate: Decimal
    label: str
    applied_rules: tuple[TaxRule, ...] = ()
    source: TaxSource = TaxSource.NONE


@dataclass(frozen=True, slots=True)
class LineItem:
    subtotal: Decimal
    product_id: str | None = None
    category_id: str | None = None
    product_type: ProductType | None = None


@dataclass(frozen=True, slots=True)
class ItemTax:
    item_index: int
    tax: Decimal
    rate: Decimal
    label: str
    source: TaxSource = TaxSource.NONE


@dataclass(frozen=True, slots=True)
class ItemsTaxResult:
    total_tax: Decimal
    item_taxes: list[ItemTax] = field(default_factory=list)


def to_decimal(value: Any, default: Decimal = Decimal(0)) -> Decimal:
    """Coerce numbers coming from JSON or the database, ``default`` when unusable."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default
    return result if result.is_finite() else default


def _region_matches(rule_region: TaxRegion, region: SaleRegion | None) -> bool:
    if rule_region.is_empty():
        return True
    if region is None:
        return False
    if rule_region.country and region.country != rule_region.country:
        return False
    if rule_region.state and region.state != rule_region.state:
        return False
    if rule_region.city and region.city != rule_region.city:
        return False
    if rule_region.zip_codes and region.zip_code not in rule_region.zip_codes:
        return False
    return True


def is_rule_applicable(rule: TaxRule, context: TaxCalculationContext) -> bool:
    """Return True when every condition of ``rule`` holds for ``context``."""
    if rule.applies_to == AppliesTo.PRODUCTS and context.product_type != ProductType.PRODUCT:
        return False
    if rule.applies_to == AppliesTo.SERVICES and context.product_type != ProductType.SERVICE:
        return False

    if rule.applies_to == AppliesTo.CATEGORIES:
        if not context.category_id or context.category_id not in rule.category_ids:
            return False

    if rule.product_ids:
        if not context.product_id or context.product_id not in rule.product_ids:
            return False

    if rule.region is not None and not _region_matches(rule.region, context.region):
        return False

    return True


def _default_result(subtotal: Decimal, default_tax_rate: Decimal | None) -> TaxResult:
    rate = to_decimal(default_tax_rate)
    if rate > 0:
        return TaxResult(
            amount=subtotal * rate / 100,
            rate=rate,
            label=DEFAULT_TAX_LABEL,
            source=TaxSource.DEFAULT_RATE,
        )
    return TaxResult(amount=Decimal(0), rate=Decimal(0), label=DEFAULT_TAX_LABEL)


def select_rule(
    context: TaxCalculationContext, tax_rules: Iterable[TaxRule]
) -> TaxRule | None:
    """Pick the highest-priority active rule matching ``context``.

    ``sorted`` is stable, so rules sharing the top priority keep their input
    order and the first one wins.
    """
    candidates = [
        rule for rule in tax_rules if rule.is_active and is_rule_applicable(rule, context)
    ]
    if not candidates:
        return None
    ranked = sorted(candidates, key=lambda rule: to_decimal(rule.priority), reverse=True)
    return ranked[0]


def calculate_tax(
    context: TaxCalculationContext,
    tax_rules: Sequence[TaxRule] | None = None,
    default_tax_rate: Decimal | None = None,
) -> TaxResult:
    """Compute the tax of one sale line."""
    subtotal = to_decimal(context.subtotal)

    rule = select_rule(context, tax_rules or ())
    if rule is None:
        return _default_result(subtotal, default_tax_rate)

    rate = to_decimal(rule.rate)
    return TaxResult(
        amount=subtotal * rate / 100,
        rate=rate,
        label=rule.label or DEFAULT_TAX_LABEL,
        applied_rules=(rule,),
        source=TaxSource.RULE,
    )


def calculate_tax_for_items(
    items: Sequence[LineItem],
    tax_rules: Sequence[TaxRule] | None = None,
    default_tax_rate: Decimal | None = None,
    region: SaleRegion | None = None,
) -> ItemsTaxResult:
    """Resolve every line on its own and add the amounts up."""
    item_taxes: list[ItemTax] = []
    total_tax = Decimal(0)

    for index, item in enumerate(items):
        context = TaxCalculationContext(
            subtotal=item.subtotal,
            product_id=item.product_id,
            category_id=item.category_id,
            product_type=item.product_type,
            region=region,
        )
        result = calculate_tax(context, tax_rules, default_tax_rate)
        item_taxes.append(
            ItemTax(
                item_index=index,
                tax=result.amount,
                rate=result.rate,
                label=result.label,
                source=result.source,
            )
        )
        total_tax += result.amount

    return ItemsTaxResult(total_tax=total_tax, item_taxes=item_taxes)


def get_tax_rules_for_region(
    region: SaleRegion, tax_rules: Sequence[TaxRule] | None = None
) -> list[TaxRule]:
    """Active rules that either have no region or whose region covers ``region``."""
    if not tax_rules:
        return []
    return [
        rule
        for rule in tax_rules
        if rule.is_active and (rule.region is None or _region_matches(rule.region, region))
    ]

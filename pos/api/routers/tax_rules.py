from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pos.api.deps import get_db, get_tenant_scope, require_tenant_roles
from pos.domain.tax_rules import LineItem, ProductType, SaleRegion
from pos.repositories.scoped import TenantScope
from pos.schemas.tax_rule import (
    ItemTax,
    TaxQuote,
    TaxQuoteRequest,
    TaxRule,
    TaxRuleCreate,
    TaxRuleUpdate,
)
from pos.services import tax as tax_service

router = APIRouter(prefix="/tenants/{slug}", tags=["tax"])


@router.get("/tax-rules", response_model=list[TaxRule])
def get_all_tax_rules(
    is_active: bool | None = Query(None, description="Filter by active status"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    """
    List the tenant's tax rules, highest priority first.
    """
    rules = tax_service.list_tax_rules(db, scope, is_active=is_active)
    return [TaxRule.model_validate(rule) for rule in rules]


@router.post("/tax-rules", response_model=TaxRule, status_code=status.HTTP_201_CREATED)
def create_new_tax_rule(
    rule_data: TaxRuleCreate,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    """
    Create a tax rule. Admins and managers only.
    """
    rule = tax_service.create_tax_rule(db, scope, **rule_data.model_dump())
    return TaxRule.model_validate(rule)


@router.get("/tax-rules/{rule_id}", response_model=TaxRule)
def get_tax_rule_by_id(
    rule_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    return TaxRule.model_validate(tax_service.get_tax_rule(db, scope, rule_id))


@router.put("/tax-rules/{rule_id}", response_model=TaxRule)
def update_tax_rule_by_id(
    rule_id: int,
    rule_data: TaxRuleUpdate,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    """
    Update a tax rule. Only the fields sent are changed.
    """
    rule = tax_service.update_tax_rule(
        db, scope, rule_id, **rule_data.model_dump(exclude_unset=True)
    )
    return TaxRule.model_validate(rule)


@router.delete("/tax-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tax_rule_by_id(
    rule_id: int,
    scope: TenantScope = Depends(require_tenant_roles("admin", "manager")),
    db: Session = Depends(get_db),
):
    tax_service.delete_tax_rule(db, scope, rule_id)


@router.post("/tax/quote", response_model=TaxQuote)
def quote_cart_tax(
    quote_request: TaxQuoteRequest,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    """
    Compute the tax of a cart, line by line, with the tenant's active rules.
    """
    items = [
        LineItem(
            subtotal=item.subtotal,
            product_id=item.product_id,
            category_id=item.category_id,
            product_type=ProductType(item.product_type) if item.product_type else None,
        )
        for item in quote_request.items
    ]
    region = None
    if quote_request.region is not None:
        region = SaleRegion(**quote_request.region.model_dump())

    result, currency = tax_service.quote_tax(db, scope, items, region)
    return TaxQuote(
        total_tax=result.total_tax,
        currency=currency,
        items=[ItemTax.model_validate(item_tax) for item_tax in result.item_taxes],
    )

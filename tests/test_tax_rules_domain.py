from decimal import Decimal

from pos.domain.tax_rules import (
    AppliesTo,
    LineItem,
    ProductType,
    SaleRegion,
    TaxCalculationContext,
    TaxRegion,
    TaxRule,
    TaxSource,
    calculate_tax,
    calculate_tax_for_items,
    get_tax_rules_for_region,
    is_rule_applicable,
)


def rule(rule_id: str, rate: str, priority: int = 0, **kwargs) -> TaxRule:
    kwargs.setdefault("label", f"Rule {rule_id}")
    return TaxRule(
        id=rule_id,
        name=f"Rule {rule_id}",
        rate=Decimal(rate),
        priority=Decimal(priority),
        **kwargs,
    )


CA = SaleRegion(country="US", state="CA", city="San Francisco", zip_code="94103")
NY = SaleRegion(country="US", state="NY", city="New York", zip_code="10001")


# ============================================================================
# DEFAULTS AND FAIL-OPEN
# ============================================================================


def test_no_rules_and_no_default_rate_is_untaxed():
    for subtotal in ("0", "1", "100", "12345.67"):
        result = calculate_tax(TaxCalculationContext(subtotal=Decimal(subtotal)), [], Decimal(0))
        assert result.amount == 0
        assert result.rate == 0
        assert result.label == "Tax"
        assert result.applied_rules == ()
        assert result.source == TaxSource.NONE


def test_missing_rules_and_default_rate_is_untaxed():
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("50")))
    assert result.amount == 0
    assert result.source == TaxSource.NONE


def test_default_rate_applies_without_rules():
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("100")), [], Decimal("8.5"))
    assert result.amount == Decimal("8.5")
    assert result.rate == Decimal("8.5")
    assert result.label == "Tax"
    assert result.applied_rules == ()
    assert result.source == TaxSource.DEFAULT_RATE


def test_default_rate_applies_when_no_rule_matches():
    rules = [rule("ca", "7.25", region=TaxRegion(state="CA"))]
    result = calculate_tax(
        TaxCalculationContext(subtotal=Decimal("200"), region=NY), rules, Decimal("5")
    )
    assert result.amount == Decimal("10")
    assert result.source == TaxSource.DEFAULT_RATE


def test_negative_default_rate_is_ignored():
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("100")), [], Decimal("-3"))
    assert result.amount == 0
    assert result.source == TaxSource.NONE


def test_amount_is_not_rounded():
    rules = [rule("odd", "7.25")]
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("19.99")), rules)
    assert result.amount == Decimal("19.99") * Decimal("7.25") / 100
    assert result.amount == Decimal("1.449275")


def test_inactive_rules_are_ignored():
    rules = [rule("off", "20", priority=10, is_active=False), rule("on", "5")]
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("100")), rules)
    assert result.rate == Decimal("5")
    assert result.applied_rules[0].id == "on"


def test_only_inactive_rules_fall_back_to_default():
    rules = [rule("off", "20", is_active=False)]
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("100")), rules, Decimal("3"))
    assert result.rate == Decimal("3")
    assert result.source == TaxSource.DEFAULT_RATE


# ============================================================================
# PRIORITY SELECTION
# ============================================================================


def test_highest_priority_matching_rule_wins():
    rules = [rule("low", "5", priority=1), rule("high", "10", priority=5), rule("mid", "7", priority=3)]
    result = calculate_tax(TaxCalculationContext(subtotal=Decimal("100")), rules)
    assert result.rate == Decimal("10")
    assert result.label == "Rule high"
    assert result.amount == Decimal("10")
    assert [r.id for r in result.applied_rules] == ["high"]
    assert result.source == TaxSource.RULE


def test_lowering_a_non_selected_rule_priority_keeps_result():
    context = TaxCalculationContext(subtotal=Decimal("100"))
    before = calculate_tax(context, [rule("a", "5", priority=3), rule("b", "9", priority=7)])
    after = calculate_tax(context, [rule("a", "5", priority=0), rule("b", "9", priority=7)])
    assert before.rate == after.rate == Decimal("9")
    assert before.applied_rules == after.applied_rules


def test_non_matching_higher_priority_rule_is_skipped():
    rules = [
        rule("services", "20", priority=10, applies_to=AppliesTo.SERVICES),
        rule("all", "6", priority=1),
    ]
    result = calculate_tax(
        TaxCalculationContext(subtotal=Decimal("100"), product_type=ProductType.PRODUCT), rules
    )
    assert result.applied_rules[0].id == "all"


def test_priority_tie_goes_to_first_rule_in_input_order():
    first = rule("first", "4", priority=2)
    second = rule("second", "6", priority=2)
    context = TaxCalculationContext(subtotal=Decimal("100"))

    assert calculate_tax(context, [first, second]).applied_rules[0].id == "first"
    assert calculate_tax(context, [second, first]).applied_rules[0].id == "second"


# ============================================================================
# MATCHING CONDITIONS
# ============================================================================


def test_products_rule_requires_product_type():
    products = rule("p", "5", applies_to=AppliesTo.PRODUCTS)
    assert is_rule_applicable(
        products, TaxCalculationContext(subtotal=Decimal(1), product_type=ProductType.PRODUCT)
    )
    assert not is_rule_applicable(
        products, TaxCalculationContext(subtotal=Decimal(1), product_type=ProductType.SERVICE)
    )
    assert not is_rule_applicable(products, TaxCalculationContext(subtotal=Decimal(1)))


def test_services_rule_requires_service_type():
    services = rule("s", "5", applies_to=AppliesTo.SERVICES)
    assert is_rule_applicable(
        services, TaxCalculationContext(subtotal=Decimal(1), product_type=ProductType.SERVICE)
    )
    assert not is_rule_applicable(
        services, TaxCalculationContext(subtotal=Decimal(1), product_type=ProductType.PRODUCT)
    )


def test_categories_rule_requires_listed_category():
    food = rule("food", "2", applies_to=AppliesTo.CATEGORIES, category_ids=("cat-food", "cat-drinks"))
    assert is_rule_applicable(food, TaxCalculationContext(subtotal=Decimal(1), category_id="cat-food"))
    assert not is_rule_applicable(food, TaxCalculationContext(subtotal=Decimal(1), category_id="cat-toys"))
    assert not is_rule_applicable(food, TaxCalculationContext(subtotal=Decimal(1)))


def test_product_ids_restrict_any_rule():
    special = rule("special", "1", product_ids=("sku-1",))
    assert is_rule_applicable(special, TaxCalculationContext(subtotal=Decimal(1), product_id="sku-1"))
    assert not is_rule_applicable(special, TaxCalculationContext(subtotal=Decimal(1), product_id="sku-2"))
    assert not is_rule_applicable(special, TaxCalculationContext(subtotal=Decimal(1)))


def test_all_rule_matches_any_product_type():
    everything = rule("all", "3")
    for product_type in (None, ProductType.PRODUCT, ProductType.SERVICE):
        assert is_rule_applicable(
            everything, TaxCalculationContext(subtotal=Decimal(1), product_type=product_type)
        )


# ============================================================================
# REGION MATCHING
# ============================================================================


def test_region_matching_is_conjunctive():
    california = rule("ca", "7.25", region=TaxRegion(country="US", state="CA"))
    assert is_rule_applicable(california, TaxCalculationContext(subtotal=Decimal(1), region=CA))
    assert not is_rule_applicable(california, TaxCalculationContext(subtotal=Decimal(1), region=NY))


def test_region_rule_needs_a_sale_region():
    california = rule("ca", "7.25", region=TaxRegion(state="CA"))
    assert not is_rule_applicable(california, TaxCalculationContext(subtotal=Decimal(1)))


def test_empty_region_matches_everywhere():
    anywhere = rule("any", "4", region=TaxRegion())
    assert is_rule_applicable(anywhere, TaxCalculationContext(subtotal=Decimal(1)))
    assert is_rule_applicable(anywhere, TaxCalculationContext(subtotal=Decimal(1), region=NY))


def test_city_must_match_exactly():
    sf = rule("sf", "8.625", region=TaxRegion(city="San Francisco"))
    assert is_rule_applicable(sf, TaxCalculationContext(subtotal=Decimal(1), region=CA))
    assert not is_rule_applicable(
        sf, TaxCalculationContext(subtotal=Decimal(1), region=SaleRegion(city="san francisco"))
    )


def test_zip_codes_match_by_membership():
    downtown = rule("downtown", "9", region=TaxRegion(zip_codes=("94103", "94104")))
    assert is_rule_applicable(downtown, TaxCalculationContext(subtotal=Decimal(1), region=CA))
    assert not is_rule_applicable(downtown, TaxCalculationContext(subtotal=Decimal(1), region=NY))
    assert not is_rule_applicable(
        downtown, TaxCalculationContext(subtotal=Decimal(1), region=SaleRegion(state="CA"))
    )


def test_get_tax_rules_for_region():
    rules = [
        rule("global", "1"),
        rule("ca", "2", region=TaxRegion(state="CA")),
        rule("ny", "3", region=TaxRegion(state="NY")),
        rule("ca-off", "4", region=TaxRegion(state="CA"), is_active=False),
    ]
    assert [r.id for r in get_tax_rules_for_region(CA, rules)] == ["global", "ca"]
    assert [r.id for r in get_tax_rules_for_region(NY, rules)] == ["global", "ny"]
    assert get_tax_rules_for_region(CA, None) == []


# ============================================================================
# MULTIPLE ITEMS
# ============================================================================


def test_calculate_tax_for_items_resolves_each_line():
    rules = [
        rule("services", "20", priority=5, applies_to=AppliesTo.SERVICES),
        rule("ca", "7.5", priority=1, region=TaxRegion(state="CA")),
    ]
    items = [
        LineItem(subtotal=Decimal("100"), product_type=ProductType.PRODUCT),
        LineItem(subtotal=Decimal("50"), product_type=ProductType.SERVICE),
        LineItem(subtotal=Decimal("10")),
    ]

    result = calculate_tax_for_items(items, rules, Decimal("5"), region=CA)

    assert [t.item_index for t in result.item_taxes] == [0, 1, 2]
    assert [t.rate for t in result.item_taxes] == [Decimal("7.5"), Decimal("20"), Decimal("7.5")]
    assert [t.tax for t in result.item_taxes] == [Decimal("7.5"), Decimal("10"), Decimal("0.75")]
    assert result.total_tax == Decimal("18.25")


def test_calculate_tax_for_items_without_region_uses_default():
    rules = [rule("ca", "7.5", region=TaxRegion(state="CA"))]
    items = [LineItem(subtotal=Decimal("40")), LineItem(subtotal=Decimal("60"))]

    result = calculate_tax_for_items(items, rules, Decimal("10"))

    assert result.total_tax == Decimal("10")
    assert all(t.label == "Tax" for t in result.item_taxes)


def test_calculate_tax_for_no_items():
    result = calculate_tax_for_items([], [rule("a", "5")], Decimal("5"))
    assert result.total_tax == 0
    assert result.item_taxes == []


def test_item_taxes_record_their_source():
    rules = [rule("services", "20", applies_to=AppliesTo.SERVICES)]
    items = [
        LineItem(subtotal=Decimal("10"), product_type=ProductType.SERVICE),
        LineItem(subtotal=Decimal("10"), product_type=ProductType.PRODUCT),
    ]

    with_default = calculate_tax_for_items(items, rules, Decimal("5"))
    without_default = calculate_tax_for_items(items, rules, Decimal(0))

    assert [t.source for t in with_default.item_taxes] == [TaxSource.RULE, TaxSource.DEFAULT_RATE]
    assert without_default.item_taxes[1].source == TaxSource.NONE

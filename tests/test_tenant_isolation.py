from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from pos.repositories.scoped import TenantScope
from pos.repositories.tax_rule import TaxRuleRepository
from pos.repositories.tenant import TenantSettingsRepository


@pytest.fixture(scope="function")
def rules_in_both_stores(db: Session, store_scope, other_scope):
    mine = TaxRuleRepository(db, store_scope).add(name="Mine", rate=Decimal("5"))
    theirs = TaxRuleRepository(db, other_scope).add(name="Theirs", rate=Decimal("21"))
    return mine, theirs


# ============================================================================
# REPOSITORY SCOPING
# ============================================================================


def test_list_only_returns_scoped_rows(db: Session, store_scope, other_scope, rules_in_both_stores):
    assert [r.name for r in TaxRuleRepository(db, store_scope).list()] == ["Mine"]
    assert [r.name for r in TaxRuleRepository(db, other_scope).list_rules()] == ["Theirs"]


def test_get_hides_rows_of_other_tenants(db: Session, store_scope, rules_in_both_stores):
    _, theirs = rules_in_both_stores
    assert TaxRuleRepository(db, store_scope).get(theirs.id) is None


def test_add_stamps_scope_tenant(db: Session, store_scope, other_scope):
    rule = TaxRuleRepository(db, store_scope).add(
        name="Sneaky", rate=Decimal("1"), tenant_id=other_scope.tenant_id
    )
    assert rule.tenant_id == store_scope.tenant_id


def test_update_rejects_rows_of_other_tenants(db: Session, store_scope, rules_in_both_stores):
    _, theirs = rules_in_both_stores
    with pytest.raises(ValueError):
        TaxRuleRepository(db, store_scope).update(theirs, rate=Decimal("0"))


def test_update_cannot_move_row_to_other_tenant(db: Session, store_scope, other_scope, rules_in_both_stores):
    mine, _ = rules_in_both_stores
    updated = TaxRuleRepository(db, store_scope).update(mine, tenant_id=other_scope.tenant_id)
    assert updated.tenant_id == store_scope.tenant_id


def test_delete_rejects_rows_of_other_tenants(db: Session, store_scope, rules_in_both_stores):
    _, theirs = rules_in_both_stores
    with pytest.raises(ValueError):
        TaxRuleRepository(db, store_scope).delete(theirs)


def test_settings_repository_reads_scoped_tenant(db: Session, store_scope, other_scope):
    assert TenantSettingsRepository(db, store_scope).load().timezone == "America/New_York"
    assert TenantSettingsRepository(db, other_scope).load().timezone == "Europe/Madrid"


# ============================================================================
# API SCOPING
# ============================================================================


def test_rule_of_other_tenant_is_not_found(
    client, db: Session, admin_token: str, store, rules_in_both_stores
):
    _, theirs = rules_in_both_stores
    response = client.get(
        f"/api/v1/tenants/{store.slug}/tax-rules/{theirs.id}",
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 404


def test_cannot_delete_rule_of_other_tenant(
    client, db: Session, admin_token: str, store, rules_in_both_stores
):
    _, theirs = rules_in_both_stores
    response = client.delete(
        f"/api/v1/tenants/{store.slug}/tax-rules/{theirs.id}",
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 404
    assert TaxRuleRepository(db, TenantScope(theirs.tenant_id, "other-shop")).get(theirs.id) is not None


def test_member_cannot_reach_other_tenant(
    client, db: Session, admin_token: str, other_store, rules_in_both_stores
):
    response = client.get(
        f"/api/v1/tenants/{other_store.slug}/tax-rules",
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 403


def test_quote_ignores_rules_of_other_tenants(
    client, db: Session, cashier_token: str, store, rules_in_both_stores
):
    response = client.post(
        f"/api/v1/tenants/{store.slug}/tax/quote",
        json={"items": [{"subtotal": "100"}]},
        headers={"Authorization": f"Bearer {cashier_token}"},
    )
    assert Decimal(response.json()["total_tax"]) == Decimal("5.00")


def test_platform_admin_reaches_any_tenant(
    client, db: Session, platform_admin_token: str, other_store, rules_in_both_stores
):
    response = client.get(
        f"/api/v1/tenants/{other_store.slug}/tax-rules",
        headers={"Authorization": f"Bearer {platform_admin_token}"},
    )
    assert response.status_code == 200
    assert [r["name"] for r in response.json()] == ["Theirs"]


def test_inactive_tenant_is_not_found(client, db: Session, platform_admin_token: str, store):
    store.is_active = False
    db.commit()
    response = client.get(
        f"/api/v1/tenants/{store.slug}",
        headers={"Authorization": f"Bearer {platform_admin_token}"},
    )
    assert response.status_code == 404

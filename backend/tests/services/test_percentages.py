from decimal import Decimal

import pytest

from backoffice.core.errors import PricingValidationError
from backoffice.repository import pricing_repo
from backoffice.services.pricing.percentages import (
    MarkupPercentages,
    OverrideTier,
    fold_tiers,
    global_tier,
    resolve_percentages,
    validate_percentage,
)


D = Decimal


# ---------- fold_tiers：纯函数 ----------
def test_fold_later_tier_wins_per_field():
    result = fold_tiers([
        OverrideTier(store=D("20"), route=D("10")),
        OverrideTier(store=D("30")),
        OverrideTier(route=D("5")),
    ])
    assert result == MarkupPercentages(store=D("30"), route=D("5"))


def test_fold_none_falls_through():
    result = fold_tiers([OverrideTier(store=D("20"), route=D("10")), OverrideTier(), OverrideTier()])
    assert result == MarkupPercentages(store=D("20"), route=D("10"))


def test_zero_is_a_real_override():
    result = fold_tiers([OverrideTier(store=D("20"), route=D("10")), OverrideTier(store=D("0"))])
    assert result.store == D("0")
    assert result.route == D("10")


def test_global_tier_defaults_to_zero_without_row():
    assert global_tier(None) == OverrideTier(store=D("0"), route=D("0"))



# ---------- resolve_percentages：读库 ----------
def test_resolve_without_any_rows_is_zero(db_session):
    assert resolve_percentages(db_session, 1, 1) == MarkupPercentages(D("0"), D("0"))


def test_resolve_precedence_global_type_product(db_session, factory):
    ptype = factory.product_type()
    product = factory.product(product_type=ptype)

    pricing_repo.save_settings(db_session, store_markup_percent=D("20"), route_markup_percent=D("10"), actor_id=None)
    assert resolve_percentages(db_session, product.id, ptype.id) == MarkupPercentages(D("20"), D("10"))

    pricing_repo.upsert_type_override(db_session, ptype.id, store_markup_percent=D("30"), route_markup_percent=None, actor_id=None)
    assert resolve_percentages(db_session, product.id, ptype.id) == MarkupPercentages(D("30"), D("10"))

    pricing_repo.upsert_product_override(db_session, product.id, store_markup_percent=None, route_markup_percent=D("5"), actor_id=None)
    assert resolve_percentages(db_session, product.id, ptype.id) == MarkupPercentages(D("30"), D("5"))

    # 只给类型 id：商品级覆盖不参与
    assert resolve_percentages(db_session, None, ptype.id) == MarkupPercentages(D("30"), D("10"))


def test_resolve_uses_explicit_global_settings(db_session, factory):
    product = factory.product()
    pricing_repo.save_settings(db_session, store_markup_percent=D("20"), route_markup_percent=D("10"), actor_id=None)

    given = OverrideTier(store=D("50"), route=D("40"))
    assert resolve_percentages(db_session, product.id, None, global_settings=given) == MarkupPercentages(D("50"), D("40"))


def test_type_override_does_not_leak_to_other_types(db_session, factory):
    drinks = factory.product_type("Drinks")
    snacks = factory.product_type("Snacks")
    pricing_repo.upsert_type_override(db_session, drinks.id, store_markup_percent=D("30"), route_markup_percent=D("30"), actor_id=None)

    assert resolve_percentages(db_session, None, snacks.id) == MarkupPercentages(D("0"), D("0"))



# ---------- 输入校验 ----------
@pytest.mark.parametrize("value", [0, 1000, 12.5, D("12.50"), D("999.99")])
def test_validate_accepts_in_range(value):
    assert validate_percentage(value, "store") == D(str(value))


@pytest.mark.parametrize("value", [-1, 1000.01, 12.345, D("0.001"), float("nan"), float("inf"), D("NaN"), True, "10", [10]])
def test_validate_rejects(value):
    with pytest.raises(PricingValidationError):
        validate_percentage(value, "store")


def test_validate_none():
    assert validate_percentage(None, "store", allow_none=True) is None
    with pytest.raises(PricingValidationError):
        validate_percentage(None, "store")

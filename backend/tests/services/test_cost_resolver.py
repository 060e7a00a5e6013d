from datetime import datetime, timezone
from decimal import Decimal

from backoffice.services.pricing.cost_resolver import find_cost


def day(n: int) -> datetime:
    return datetime(2024, 1, n, 12, 0, tzinfo=timezone.utc)


def _find(db, product):
    return find_cost(db, product.id, product.product_type_id, product.brand_id, product.model_id)


def test_no_orders_returns_none(db_session, factory):
    product = factory.product(product_type=factory.product_type())
    assert _find(db_session, product) is None


def test_latest_product_order_wins(db_session, factory):
    product = factory.product()
    factory.purchase_order(product=product, cost="40", order_date=day(1))
    factory.purchase_order(product=product, cost="50", order_date=day(5))
    factory.purchase_order(product=product, cost="45", order_date=day(3))

    assert _find(db_session, product) == Decimal("50")


def test_orders_without_cost_are_ignored(db_session, factory):
    product = factory.product()
    factory.purchase_order(product=product, cost="50", order_date=day(1))
    factory.purchase_order(product=product, cost=None, order_date=day(9))

    assert _find(db_session, product) == Decimal("50")


def test_found_zero_is_not_none(db_session, factory):
    product = factory.product()
    factory.purchase_order(product=product, cost="0", order_date=day(1))

    assert _find(db_session, product) == Decimal("0")


def test_generic_order_matches_type_brand_model(db_session, factory):
    ptype = factory.product_type()
    brand = factory.brand()
    model = factory.model(brand=brand)
    product = factory.product(product_type=ptype, brand=brand, model=model)

    factory.purchase_order(product_type=ptype, brand=brand, model=model, cost="62.5", order_date=day(2))

    assert _find(db_session, product) == Decimal("62.5")


def test_generic_order_null_brand_matches_null_brand(db_session, factory):
    ptype = factory.product_type()
    product = factory.product(product_type=ptype)          # 无品牌/型号

    factory.purchase_order(product_type=ptype, cost="30", order_date=day(2))

    assert _find(db_session, product) == Decimal("30")


def test_generic_order_with_other_brand_does_not_match(db_session, factory):
    ptype = factory.product_type()
    acme = factory.brand("Acme")
    other = factory.brand("Other")
    product = factory.product(product_type=ptype, brand=acme)

    factory.purchase_order(product_type=ptype, brand=other, cost="30", order_date=day(2))
    factory.purchase_order(product_type=ptype, cost="31", order_date=day(3))      # brand NULL ≠ Acme

    assert _find(db_session, product) is None


def test_exact_product_order_beats_newer_generic_order(db_session, factory):
    ptype = factory.product_type()
    product = factory.product(product_type=ptype)

    factory.purchase_order(product=product, cost="50", order_date=day(1))
    factory.purchase_order(product_type=ptype, cost="70", order_date=day(9))

    assert _find(db_session, product) == Decimal("50")


def test_order_status_is_not_filtered(db_session, factory):
    product = factory.product()
    factory.purchase_order(product=product, cost="50", order_date=day(1), status="cancelled")

    assert _find(db_session, product) == Decimal("50")

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update

from backoffice.db.model.pricing import PricingSettings
from backoffice.db.model.product import Product
from backoffice.repository import pricing_repo
from backoffice.services.pricing import backfill
from backoffice.services.pricing.backfill import run_backfill
from backoffice.services.pricing.price_engine import ExecutionMode


D = Decimal
JAN_2 = datetime(2024, 1, 2, tzinfo=timezone.utc)


def _settings(db, store, route):
    pricing_repo.save_settings(db, store_markup_percent=D(store), route_markup_percent=D(route), actor_id=None)
    db.commit()


def _skipped_by_id(report):
    return {s.product_id: s for s in report.skipped}



# ---------- 成本来源链 ----------
def test_cost_from_purchase_order(db_session, factory, prices):
    _settings(db_session, "10", "20")
    product = factory.product("Cola", cost=None)
    factory.purchase_order(product=product, cost="50", order_date=JAN_2)

    report = run_backfill(db_session, mode=ExecutionMode.STRICT)
    db_session.commit()

    assert report.updated == 1
    assert report.sources["purchase_order"] == 1
    assert prices(product.id) == (D("50"), D("55.00"), D("60.00"))


def test_stored_cost_wins_over_purchase_order(db_session, factory, prices):
    product = factory.product("Cola", cost="40")
    factory.purchase_order(product=product, cost="50", order_date=JAN_2)

    report = run_backfill(db_session)
    db_session.commit()

    assert report.sources == {"stored": 1}
    assert prices(product.id)[0] == D("40")


def test_cost_reverse_derived_from_store_price(db_session, factory, prices):
    _settings(db_session, "10", "0")
    product = factory.product("Cola", cost=None, store_price="110", route_price="0")

    report = run_backfill(db_session)
    db_session.commit()

    assert report.sources["store_price"] == 1
    assert prices(product.id) == (D("100.00"), D("110.00"), D("100.00"))


def test_cost_reverse_derived_from_route_price(db_session, factory, prices):
    _settings(db_session, "0", "20")
    product = factory.product("Cola", cost=None, store_price="0", route_price="120")

    report = run_backfill(db_session)
    db_session.commit()

    assert report.sources["route_price"] == 1
    assert prices(product.id)[0] == D("100.00")


def test_reverse_derivation_uses_overrides(db_session, factory, prices):
    _settings(db_session, "10", "10")
    ptype = factory.product_type()
    product = factory.product("Cola", cost=None, product_type=ptype, store_price="125")
    pricing_repo.upsert_type_override(db_session, ptype.id, store_markup_percent=D("25"), route_markup_percent=None, actor_id=None)
    db_session.commit()

    run_backfill(db_session)
    db_session.commit()

    assert prices(product.id) == (D("100.00"), D("125.00"), D("110.00"))



# ---------- 跳过 ----------
def test_no_source_is_skipped_and_untouched(db_session, factory, prices):
    product = factory.product("Ghost", cost=None)

    report = run_backfill(db_session)
    db_session.commit()

    assert report.updated == 0
    skipped = _skipped_by_id(report)[product.id]
    assert skipped.product_name == "Ghost"
    assert skipped.reason.startswith("no cost source")
    assert prices(product.id) == (None, D("0"), D("0"))


def test_zero_stored_cost_is_skipped(db_session, factory, prices):
    product = factory.product("Freebie", cost="0", store_price="5", route_price="5")

    report = run_backfill(db_session)
    db_session.commit()

    assert _skipped_by_id(report)[product.id].reason.startswith("derived cost is not positive")
    assert prices(product.id) == (D("0"), D("5"), D("5"))


def test_report_to_dict(db_session, factory):
    ok = factory.product("A", cost="10")
    ghost = factory.product("B", cost=None)

    data = run_backfill(db_session).to_dict()

    assert data["updated"] == 1
    assert data["sources"] == {"stored": 1}
    assert data["skipped"] == [{
        "product_id": ghost.id,
        "product_name": "B",
        "reason": "no cost source (no stored cost, purchase order, or price)",
    }]
    assert ok.id != ghost.id



# ---------- 幂等 ----------
def test_backfill_is_idempotent(db_session, factory, prices):
    _settings(db_session, "10", "15")
    a = factory.product("A", cost=None, store_price="99.99")
    b = factory.product("B", cost=None)
    factory.purchase_order(product=b, cost="33.33", order_date=JAN_2)

    run_backfill(db_session)
    db_session.commit()
    first = (prices(a.id), prices(b.id))

    report = run_backfill(db_session)
    db_session.commit()

    assert (prices(a.id), prices(b.id)) == first
    assert report.sources == {"stored": 2}



# ---------- 执行模式 ----------
def _fail_on(monkeypatch, bad_id):
    original = backfill.apply_pricing

    def _apply(db, product_id, cost=None, **kwargs):
        if product_id == bad_id:
            raise RuntimeError("row locked forever")
        return original(db, product_id, cost, **kwargs)

    monkeypatch.setattr(backfill, "apply_pricing", _apply)


def test_tolerant_mode_records_unexpected_errors(db_session, factory, prices, monkeypatch):
    a = factory.product("A", cost="10")
    b = factory.product("B", cost="10", store_price="7", route_price="7")
    c = factory.product("C", cost="10")
    _fail_on(monkeypatch, b.id)

    report = run_backfill(db_session, mode=ExecutionMode.TOLERANT)
    db_session.commit()

    assert report.updated == 2
    assert _skipped_by_id(report)[b.id].reason == "error: row locked forever"
    assert prices(a.id)[1] == D("10.00")
    assert prices(b.id)[1:] == (D("7"), D("7"))
    assert prices(c.id)[1] == D("10.00")


def test_strict_mode_propagates(db_session, factory, monkeypatch):
    factory.product("A", cost="10")
    b = factory.product("B", cost="10")
    _fail_on(monkeypatch, b.id)

    with pytest.raises(RuntimeError):
        run_backfill(db_session, mode="strict")


def test_default_mode_comes_from_settings(db_session, factory, monkeypatch):
    b = factory.product("B", cost="10")
    _fail_on(monkeypatch, b.id)
    monkeypatch.setattr(backfill.settings, "PRICING_BACKFILL_MODE", "strict")

    with pytest.raises(RuntimeError):
        run_backfill(db_session)



# ---------- 锁行之后才读百分比 ----------
def test_percentages_are_read_after_the_row_lock(db_session, factory, prices, monkeypatch):
    _settings(db_session, "10", "10")
    p = factory.product("Shelf", cost=None, store_price="120")
    original = backfill.lock_product_for_pricing

    def _lock(db, product_id):
        # 快照之后、拿到行锁之前，全局设置已被另一个事务改成 20/20
        db.execute(update(PricingSettings).values(store_markup_percent=D("20"), route_markup_percent=D("20")))
        return original(db, product_id)

    monkeypatch.setattr(backfill, "lock_product_for_pricing", _lock)

    report = run_backfill(db_session, mode=ExecutionMode.STRICT)
    db_session.commit()

    assert report.sources == {"store_price": 1}
    assert prices(p.id) == (D("100.00"), D("120.00"), D("120.00"))


def test_stored_cost_is_read_after_the_row_lock(db_session, factory, prices, monkeypatch):
    p = factory.product("Shelf", cost="40")
    original = backfill.lock_product_for_pricing

    def _lock(db, product_id):
        # 快照里成本是 40，拿锁前另一个事务把成本改成了 50
        db.execute(update(Product).where(Product.id == product_id).values(cost_of_goods=D("50")))
        return original(db, product_id)

    monkeypatch.setattr(backfill, "lock_product_for_pricing", _lock)

    run_backfill(db_session, mode=ExecutionMode.STRICT)
    db_session.commit()

    assert prices(p.id) == (D("50"), D("50.00"), D("50.00"))

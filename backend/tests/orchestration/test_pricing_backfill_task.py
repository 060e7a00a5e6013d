from decimal import Decimal

from backoffice.orchestration.pricing_backfill import backfill_task
from backoffice.services.pricing import backfill


def test_kick_pricing_backfill_commits_and_returns_report(db_session, session_factory, factory, prices, monkeypatch):
    cola = factory.product("Cola", cost=None, store_price="10")
    factory.product("Ghost", cost=None)
    monkeypatch.setattr(backfill_task, "SessionLocal", session_factory)

    result = backfill_task.kick_pricing_backfill.run()

    assert result["updated"] == 1
    assert result["sources"] == {"store_price": 1}
    assert result["skipped"][0]["product_name"] == "Ghost"
    assert "error" not in result

    # 任务用的是自己的会话，这里确认已经提交
    assert prices(cola.id) == (Decimal("10.00"), Decimal("10.00"), Decimal("10.00"))


def test_kick_pricing_backfill_reports_error_and_rolls_back(db_session, session_factory, factory, prices, monkeypatch):
    cola = factory.product("Cola", cost="5")
    monkeypatch.setattr(backfill_task, "SessionLocal", session_factory)

    def _boom(db, product_id, cost=None, **kwargs):
        raise RuntimeError("lock timeout")

    monkeypatch.setattr(backfill, "apply_pricing", _boom)

    result = backfill_task.kick_pricing_backfill.run(mode="strict")

    assert result["error"] == "lock timeout"
    assert result["updated"] == 0
    assert prices(cola.id) == (Decimal("5"), Decimal("0"), Decimal("0"))

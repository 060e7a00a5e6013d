# 成本 / 价格回填：给缺成本的商品补成本，并用当前百分比把价格重新算一遍
#
# 成本来源优先级：已存成本 → 采购单历史 → 门店价反推 → 线路价反推
# 幂等：第二次跑时每个商品都已有成本，只会用同样的成本重算出同样的价格

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.repository.product_repo import load_products_for_backfill, lock_product_for_pricing
from backoffice.services.pricing.cost_resolver import find_cost
from backoffice.services.pricing.percentages import (
    MarkupPercentages,
    resolve_percentages,
)
from backoffice.services.pricing.price_engine import (
    ExecutionMode,
    apply_pricing,
    remove_markup,
)


logger = logging.getLogger(__name__)

_ZERO = Decimal("0")

SOURCE_STORED = "stored"
SOURCE_PURCHASE_ORDER = "purchase_order"
SOURCE_STORE_PRICE = "store_price"
SOURCE_ROUTE_PRICE = "route_price"


@dataclass(frozen=True)
class SkippedProduct:
    product_id: int
    product_name: str
    reason: str


@dataclass
class BackfillReport:
    updated: int = 0
    skipped: List[SkippedProduct] = field(default_factory=list)
    sources: Counter = field(default_factory=Counter)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updated": self.updated,
            "skipped": [
                {"product_id": s.product_id, "product_name": s.product_name, "reason": s.reason}
                for s in self.skipped
            ],
            "sources": dict(self.sources),
        }



'''
为单个商品确定成本（纯读）
返回 (cost, source)；找不到任何来源时 cost 为 None
'''
def derive_cost(
    db: Session,
    product: Dict[str, Any],
    percentages: MarkupPercentages,
) -> Tuple[Optional[Decimal], Optional[str]]:

    stored = product.get("cost_of_goods")
    if stored is not None:
        return Decimal(stored), SOURCE_STORED

    found = find_cost(
        db,
        product["id"],
        product.get("product_type_id"),
        product.get("brand_id"),
        product.get("model_id"),
    )
    if found is not None:
        return found, SOURCE_PURCHASE_ORDER

    store_price = Decimal(product.get("store_price") or 0)
    if store_price > _ZERO:
        return remove_markup(store_price, percentages.store), SOURCE_STORE_PRICE

    route_price = Decimal(product.get("route_price") or 0)
    if route_price > _ZERO:
        return remove_markup(route_price, percentages.route), SOURCE_ROUTE_PRICE

    return None, None


def _skip_reason(cost: Optional[Decimal]) -> Optional[str]:
    if cost is None:
        return "no cost source (no stored cost, purchase order, or price)"
    if not cost.is_finite():
        return f"derived cost is not finite ({cost})"
    if cost <= _ZERO:
        return f"derived cost is not positive ({cost})"
    return None



"""
全量回填（在调用方的事务内执行，由调用方 commit）
    - 按商品名排序逐个处理
    - 每个商品先 FOR UPDATE 锁行，再读成本/价格和生效百分比（不用快照里的旧值）
    - mode=TOLERANT：每个商品一个 SAVEPOINT，意外异常只跳过该商品（reason 以 "error:" 开头）
    - mode=STRICT：第一个异常直接抛出，调用方回滚整个回填
    - mode 不传时取 PRICING_BACKFILL_MODE
"""
def run_backfill(db: Session, *, mode: Optional[ExecutionMode | str] = None) -> BackfillReport:

    mode = ExecutionMode(mode or settings.PRICING_BACKFILL_MODE)

    report = BackfillReport()
    products = load_products_for_backfill(db)
    logger.info("backfill start products=%d mode=%s", len(products), mode.value)

    for product in products:
        pid, name = product["id"], product["name"]

        if mode is ExecutionMode.STRICT:
            _backfill_one(db, pid, name, report)
            continue

        try:
            with db.begin_nested():
                _backfill_one(db, pid, name, report)
        except Exception as exc:
            logger.exception("backfill failed product=%s name=%s (skipped)", pid, name)
            report.skipped.append(SkippedProduct(pid, name, f"error: {exc}"))

    logger.info("backfill done updated=%d skipped=%d sources=%s",
                report.updated, len(report.skipped), dict(report.sources))
    return report


def _backfill_one(db: Session, pid: int, name: str, report: BackfillReport) -> None:
    row = lock_product_for_pricing(db, pid)
    if row is None:
        # 快照之后被并发删除
        report.skipped.append(SkippedProduct(pid, name, "product no longer exists"))
        return

    product = {
        "id": row.id,
        "product_type_id": row.product_type_id,
        "brand_id": row.brand_id,
        "model_id": row.model_id,
        "cost_of_goods": row.cost_of_goods,
        "store_price": row.store_price,
        "route_price": row.route_price,
    }
    percentages = resolve_percentages(db, pid, row.product_type_id)
    cost, source = derive_cost(db, product, percentages)

    reason = _skip_reason(cost)
    if reason is not None:
        logger.info("backfill skip product=%s name=%s: %s", pid, name, reason)
        report.skipped.append(SkippedProduct(pid, name, reason))
        return

    apply_pricing(db, pid, cost)
    report.updated += 1
    report.sources[source] += 1

# 价格应用引擎：成本 × (1 + 百分比/100) → 门店价 / 线路价
# 唯一允许写 products.store_price / route_price 的地方

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from backoffice.core.errors import PricingValidationError, ProductNotFoundError
from backoffice.repository.product_repo import lock_product_for_pricing, write_product_pricing
from backoffice.services.pricing.percentages import (
    MarkupPercentages,
    OverrideTier,
    resolve_percentages,
)


logger = logging.getLogger(__name__)

_Q_CENTS = Decimal("0.01")
_HUNDRED = Decimal("100")


class ExecutionMode(str, Enum):
    """
    STRICT   第一个异常直接抛出，由调用方回滚整个事务（设置/覆盖变更 + 批量重算）
    TOLERANT 每个商品一个 SAVEPOINT，失败只回滚该商品并记录原因，继续下一个（回填）
    """
    STRICT = "strict"
    TOLERANT = "tolerant"


# --------- 计算 ----------
def round2(val: Decimal) -> Decimal:
    """保留两位小数，固定 ROUND_HALF_UP（.005 进位）。"""
    return val.quantize(_Q_CENTS, rounding=ROUND_HALF_UP)


def apply_markup(cost: Decimal, percent: Decimal) -> Decimal:
    return round2(cost * (1 + percent / _HUNDRED))


def remove_markup(price: Decimal, percent: Decimal) -> Decimal:
    """反推成本：price / (1 + percent/100)，两位小数。"""
    return round2(price / (1 + percent / _HUNDRED))


def compute_prices(cost: Decimal, percentages: MarkupPercentages) -> Tuple[Decimal, Decimal]:
    return apply_markup(cost, percentages.store), apply_markup(cost, percentages.route)



# --------- 输出模型 ----------
@dataclass(frozen=True)
class AppliedPricing:
    product_id: int
    cost_of_goods: Optional[Decimal]
    store_price: Decimal
    route_price: Decimal
    percentages: MarkupPercentages
    repriced: bool      # False = 没有可用成本，价格保持原样


@dataclass(frozen=True)
class PricingFailure:
    product_id: int
    reason: str


@dataclass
class BatchOutcome:
    applied: List[AppliedPricing] = field(default_factory=list)
    failures: List[PricingFailure] = field(default_factory=list)

    @property
    def repriced_count(self) -> int:
        return sum(1 for a in self.applied if a.repriced)



'''
单个商品应用定价（在调用方管理的事务内执行）
    1) FOR UPDATE 锁住商品行，读取成本/价格/类型
    2) 成本：显式传入优先；否则用已存成本；都没有则价格保持不变
    3) 解析百分比（商品 id + 类型 id）
    4) 有成本则按 round2 计算两个价格
    5) 成本 + 价格写回同一行
商品不存在 → ProductNotFoundError，整个事务应中止
'''
def apply_pricing(
    db: Session,
    product_id: int,
    explicit_cost: Optional[Decimal] = None,
    *,
    global_settings: Optional[OverrideTier] = None,
) -> AppliedPricing:

    if explicit_cost is not None:
        explicit_cost = _check_cost(explicit_cost)

    product = lock_product_for_pricing(db, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    cost = explicit_cost if explicit_cost is not None else product.cost_of_goods

    percentages = resolve_percentages(
        db, product.id, product.product_type_id, global_settings=global_settings,
    )

    store_price, route_price = product.store_price, product.route_price
    if cost is not None:
        store_price, route_price = compute_prices(Decimal(cost), percentages)

    write_product_pricing(
        db, product,
        cost_of_goods=cost,
        store_price=store_price,
        route_price=route_price,
    )

    logger.debug(
        "apply_pricing product=%s cost=%s store%%=%s route%%=%s store=%s route=%s",
        product_id, cost, percentages.store, percentages.route, store_price, route_price,
    )
    return AppliedPricing(
        product_id=product_id,
        cost_of_goods=cost,
        store_price=store_price,
        route_price=route_price,
        percentages=percentages,
        repriced=cost is not None,
    )



"""
批量应用：同一个单商品核心，按 mode 决定失败策略
    - costs: 可选 {product_id: 显式成本}，未出现的商品沿用已存成本
    - 顺序无关：每个商品的重算互相独立
"""
def apply_pricing_many(
    db: Session,
    product_ids: Iterable[int],
    *,
    mode: ExecutionMode = ExecutionMode.STRICT,
    costs: Optional[Mapping[int, Decimal]] = None,
    global_settings: Optional[OverrideTier] = None,
) -> BatchOutcome:

    outcome = BatchOutcome()
    costs = costs or {}

    for pid in product_ids:
        if mode is ExecutionMode.STRICT:
            outcome.applied.append(
                apply_pricing(db, pid, costs.get(pid), global_settings=global_settings)
            )
            continue

        try:
            with db.begin_nested():
                applied = apply_pricing(db, pid, costs.get(pid), global_settings=global_settings)
        except Exception as exc:
            logger.exception("apply_pricing failed product=%s (tolerant, skipped)", pid)
            outcome.failures.append(PricingFailure(product_id=pid, reason=f"error: {exc}"))
            continue
        outcome.applied.append(applied)

    return outcome


def _check_cost(cost: Decimal) -> Decimal:
    try:
        value = Decimal(str(cost)) if not isinstance(cost, Decimal) else cost
    except Exception as exc:
        raise PricingValidationError(f"invalid cost {cost!r}") from exc
    if not value.is_finite() or value < 0:
        raise PricingValidationError(f"invalid cost {cost!r}")
    return value

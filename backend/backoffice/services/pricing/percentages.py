# 加价百分比解析：全局 → 商品类型 → 商品，逐字段覆盖

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional
import math

from sqlalchemy.orm import Session

from backoffice.core.config import settings as app_settings
from backoffice.core.errors import PricingValidationError
from backoffice.db.model.pricing import PricingSettings
from backoffice.repository import pricing_repo


_ZERO = Decimal("0")
_Q_PERCENT = Decimal("0.01")


@dataclass(frozen=True)
class MarkupPercentages:
    """解析后的生效百分比（两个渠道都一定有值）。"""
    store: Decimal = _ZERO
    route: Decimal = _ZERO


@dataclass(frozen=True)
class OverrideTier:
    """
    一级覆盖：每个字段独立可选，None 表示“继承下一级”。
    全局设置也用同一结构表示（两个字段都有值）。
    """
    store: Optional[Decimal] = None
    route: Optional[Decimal] = None

    @classmethod
    def from_row(cls, row: Any) -> "OverrideTier":
        if row is None:
            return cls()
        return cls(
            store=_as_decimal(row.store_markup_percent),
            route=_as_decimal(row.route_markup_percent),
        )


'''
左到右折叠：后面的层只覆盖它明确设置了的字段
    fold_tiers([global, type, product]) → 商品层 > 类型层 > 全局
'''
def fold_tiers(tiers: Iterable[OverrideTier], base: MarkupPercentages = MarkupPercentages()) -> MarkupPercentages:
    store, route = base.store, base.route
    for tier in tiers:
        if tier.store is not None:
            store = tier.store
        if tier.route is not None:
            route = tier.route
    return MarkupPercentages(store=store, route=route)


def global_tier(row: Optional[PricingSettings]) -> OverrideTier:
    """没有设置行时等价于 0/0。"""
    if row is None:
        return OverrideTier(store=_ZERO, route=_ZERO)
    return OverrideTier.from_row(row)


def load_global_tier(db: Session) -> OverrideTier:
    return global_tier(pricing_repo.get_current_settings(db))



"""
解析某个商品（或某个类型）的生效百分比
    - global_settings 可由调用方显式传入（批量重算时只读一次）；不传则现读
    - 没有任何覆盖行是正常情况，不报错；纯读，无副作用
"""
def resolve_percentages(
    db: Session,
    product_id: Optional[int] = None,
    product_type_id: Optional[int] = None,
    *,
    global_settings: Optional[OverrideTier] = None,
) -> MarkupPercentages:

    tiers = [global_settings if global_settings is not None else load_global_tier(db)]

    if product_type_id is not None:
        tiers.append(OverrideTier.from_row(pricing_repo.get_type_override(db, product_type_id)))

    if product_id is not None:
        tiers.append(OverrideTier.from_row(pricing_repo.get_product_override(db, product_id)))

    return fold_tiers(tiers)



# ---------- 输入校验（在开任何事务之前调用） ----------
def validate_percentage(value: Any, field: str, *, allow_none: bool = False) -> Optional[Decimal]:
    """有限数字、最多两位小数、且在 [PRICING_MARKUP_MIN, PRICING_MARKUP_MAX] 内；返回 Decimal。"""
    if value is None:
        if allow_none:
            return None
        raise PricingValidationError(f"{field} is required")

    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise PricingValidationError(f"{field} must be a number")

    if isinstance(value, float) and not math.isfinite(value):
        raise PricingValidationError(f"{field} must be a finite number")

    dec = _as_decimal(value)
    if dec is None or not dec.is_finite():
        raise PricingValidationError(f"{field} must be a finite number")

    lo = Decimal(str(app_settings.PRICING_MARKUP_MIN))
    hi = Decimal(str(app_settings.PRICING_MARKUP_MAX))
    if dec < lo or dec > hi:
        raise PricingValidationError(f"{field} must be between {lo} and {hi}")
    # 列是 Numeric(7,2)，多余的小数位不能静默舍掉
    if dec != dec.quantize(_Q_PERCENT):
        raise PricingValidationError(f"{field} must have at most 2 decimal places")
    return dec


def _as_decimal(val: Any) -> Optional[Decimal]:
    if val is None:
        return None
    if isinstance(val, Decimal):
        return val
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError):
        return None

# 批量重算编排：某一级加价配置变更 → 找出受影响商品 → 逐个重算 → 一次提交
#
# 每个对外操作 = 一个 transaction()：
#   配置行 + 所有受影响商品的价格 要么一起落库，要么一起回滚

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from backoffice.core.errors import ProductNotFoundError, ProductTypeNotFoundError
from backoffice.db.session import transaction
from backoffice.repository import pricing_repo, product_repo
from backoffice.services.pricing.percentages import (
    OverrideTier,
    global_tier,
    validate_percentage,
)
from backoffice.services.pricing.price_engine import (
    BatchOutcome,
    ExecutionMode,
    apply_pricing_many,
)


logger = logging.getLogger(__name__)


# ---------- 受影响范围 ----------
@dataclass(frozen=True)
class RepricingScope:
    """all = 全部商品；type = 某类型下全部商品；product = 单个商品。"""
    kind: str
    target_id: Optional[int] = None

    @classmethod
    def all_products(cls) -> "RepricingScope":
        return cls("all")

    @classmethod
    def product_type(cls, product_type_id: int) -> "RepricingScope":
        return cls("type", product_type_id)

    @classmethod
    def product(cls, product_id: int) -> "RepricingScope":
        return cls("product", product_id)


def collect_affected_ids(db: Session, scope: RepricingScope) -> List[int]:
    if scope.kind == "all":
        return product_repo.list_all_product_ids(db)
    if scope.kind == "type":
        return product_repo.list_product_ids_by_type(db, scope.target_id)
    if scope.kind == "product":
        return [scope.target_id]
    raise ValueError(f"unknown repricing scope: {scope.kind!r}")



'''
重算单元：先把受影响 id 全部收集好，再逐个用“已存成本”重算
    - 不开新事务，调用方负责 commit / rollback
    - global_settings 只有持有设置行锁的调用方（update_global_settings）才传；
      不传时每个商品在 FOR UPDATE 锁住之后才现读全局设置，
      排队等锁的事务会看到前一个事务提交后的百分比
'''
def reprice(
    db: Session,
    scope: RepricingScope,
    *,
    mode: ExecutionMode = ExecutionMode.STRICT,
    global_settings: Optional[OverrideTier] = None,
) -> BatchOutcome:

    ids = collect_affected_ids(db, scope)
    outcome = apply_pricing_many(db, ids, mode=mode, global_settings=global_settings)
    logger.info(
        "reprice scope=%s target=%s products=%d repriced=%d failed=%d",
        scope.kind, scope.target_id, len(ids), outcome.repriced_count, len(outcome.failures),
    )
    return outcome



# ---------- 变更结果 ----------
@dataclass
class MutationResult:
    view: Optional[Dict[str, Any]]   # 刷新后的配置/覆盖视图；清除覆盖后为 None
    repriced: int


def settings_view(db: Session) -> Dict[str, Any]:
    """当前全局设置（没有行时按 0/0 返回）。"""
    row = pricing_repo.get_current_settings(db)
    if row is None:
        return {
            "id": None,
            "store_markup_percent": Decimal("0"),
            "route_markup_percent": Decimal("0"),
            "updated_at": None,
            "updated_by": None,
        }
    return {
        "id": row.id,
        "store_markup_percent": row.store_markup_percent,
        "route_markup_percent": row.route_markup_percent,
        "updated_at": row.updated_at,
        "updated_by": row.updated_by,
    }



# ---------- 全局设置 ----------
'''
更新全局加价并重算整个目录
    1) 参数校验（不开事务）
    2) FOR UPDATE 锁设置行 → 更新或插入第一行
    3) 用刚写入的值重算所有商品
    4) 一次提交；任何商品失败 → 设置行和所有价格一起回滚
'''
def update_global_settings(
    db: Session,
    store_markup_percent: Any,
    route_markup_percent: Any,
    actor_id: Optional[int] = None,
) -> MutationResult:

    store = validate_percentage(store_markup_percent, "store_markup_percent")
    route = validate_percentage(route_markup_percent, "route_markup_percent")

    with transaction(db):
        row = pricing_repo.save_settings(
            db,
            store_markup_percent=store,
            route_markup_percent=route,
            actor_id=actor_id,
        )
        outcome = reprice(db, RepricingScope.all_products(), global_settings=global_tier(row))

    logger.info("global pricing settings updated store=%s route=%s by=%s repriced=%d",
                store, route, actor_id, outcome.repriced_count)
    return MutationResult(view=settings_view(db), repriced=outcome.repriced_count)



# ---------- 类型级覆盖 ----------
def upsert_type_override(
    db: Session,
    product_type_id: int,
    store_markup_percent: Any = None,
    route_markup_percent: Any = None,
    actor_id: Optional[int] = None,
) -> MutationResult:

    store = validate_percentage(store_markup_percent, "store_markup_percent", allow_none=True)
    route = validate_percentage(route_markup_percent, "route_markup_percent", allow_none=True)

    with transaction(db):
        if not product_repo.product_type_exists(db, product_type_id):
            raise ProductTypeNotFoundError(product_type_id)
        pricing_repo.upsert_type_override(
            db, product_type_id,
            store_markup_percent=store,
            route_markup_percent=route,
            actor_id=actor_id,
        )
        outcome = reprice(db, RepricingScope.product_type(product_type_id))

    logger.info("type override saved type=%s store=%s route=%s by=%s repriced=%d",
                product_type_id, store, route, actor_id, outcome.repriced_count)
    return MutationResult(
        view=pricing_repo.get_type_override_view(db, product_type_id),
        repriced=outcome.repriced_count,
    )


def clear_type_override(db: Session, product_type_id: int) -> MutationResult:
    with transaction(db):
        if not product_repo.product_type_exists(db, product_type_id):
            raise ProductTypeNotFoundError(product_type_id)
        removed = pricing_repo.delete_type_override(db, product_type_id)
        outcome = reprice(db, RepricingScope.product_type(product_type_id))

    logger.info("type override cleared type=%s removed=%d repriced=%d",
                product_type_id, removed, outcome.repriced_count)
    return MutationResult(view=None, repriced=outcome.repriced_count)



# ---------- 商品级覆盖 ----------
def upsert_product_override(
    db: Session,
    product_id: int,
    store_markup_percent: Any = None,
    route_markup_percent: Any = None,
    actor_id: Optional[int] = None,
) -> MutationResult:

    store = validate_percentage(store_markup_percent, "store_markup_percent", allow_none=True)
    route = validate_percentage(route_markup_percent, "route_markup_percent", allow_none=True)

    with transaction(db):
        if not product_repo.product_exists(db, product_id):
            raise ProductNotFoundError(product_id)
        pricing_repo.upsert_product_override(
            db, product_id,
            store_markup_percent=store,
            route_markup_percent=route,
            actor_id=actor_id,
        )
        outcome = reprice(db, RepricingScope.product(product_id))

    logger.info("product override saved product=%s store=%s route=%s by=%s",
                product_id, store, route, actor_id)
    return MutationResult(
        view=pricing_repo.get_product_override_view(db, product_id),
        repriced=outcome.repriced_count,
    )


def clear_product_override(db: Session, product_id: int) -> MutationResult:
    with transaction(db):
        if not product_repo.product_exists(db, product_id):
            raise ProductNotFoundError(product_id)
        removed = pricing_repo.delete_product_override(db, product_id)
        outcome = reprice(db, RepricingScope.product(product_id))

    logger.info("product override cleared product=%s removed=%d", product_id, removed)
    return MutationResult(view=None, repriced=outcome.repriced_count)

# purchase order repository（只读：作为成本历史来源）

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, case, or_, select
from sqlalchemy.orm import Session

from backoffice.db.model.purchase_order import PurchaseOrder


'''
最近一次有成本的采购单成本
    - 优先：product_id 精确等于目标商品
    - 其次：product_id 为空的“泛型”单，类型相等 + 品牌/型号 null-safe 相等（NULL 匹配 NULL）
    - 同一优先级内按 order_date 最新（再按 id 最大）取第一条
找不到返回 None（与“找到 0”区分开）
'''
def find_latest_cost(
    db: Session,
    *,
    product_id: int,
    product_type_id: Optional[int],
    brand_id: Optional[int],
    model_id: Optional[int],
) -> Optional[Decimal]:

    by_product = PurchaseOrder.product_id == product_id
    matchers = [by_product]

    # 类型为空时泛型单不可能匹配（类型是普通等值比较）
    if product_type_id is not None:
        matchers.append(
            and_(
                PurchaseOrder.product_id.is_(None),
                PurchaseOrder.product_type_id == product_type_id,
                PurchaseOrder.brand_id.is_not_distinct_from(brand_id),
                PurchaseOrder.model_id.is_not_distinct_from(model_id),
            )
        )

    stmt = (
        select(PurchaseOrder.cost_of_goods)
        .where(PurchaseOrder.cost_of_goods.is_not(None), or_(*matchers))
        .order_by(
            case((by_product, 0), else_=1),
            PurchaseOrder.order_date.desc(),
            PurchaseOrder.id.desc(),
        )
        .limit(1)
    )
    value = db.execute(stmt).scalar_one_or_none()
    return Decimal(value) if value is not None else None

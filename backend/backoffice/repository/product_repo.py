# product database repository（定价相关的读取 / 加锁 / 写回）

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.db.model.product import Product, ProductType


# ---------- 存在性检查 ----------
def product_exists(db: Session, product_id: int) -> bool:
    stmt = select(Product.id).where(Product.id == product_id)
    return db.execute(stmt).first() is not None


def product_type_exists(db: Session, product_type_id: int) -> bool:
    stmt = select(ProductType.id).where(ProductType.id == product_type_id)
    return db.execute(stmt).first() is not None


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.get(Product, product_id)



'''
  锁住单个商品行：SELECT ... FOR UPDATE
    - 同一商品的并发重算会在这里排队，后来者读到的是前一个事务提交后的成本/价格
    - populate_existing：即使对象已在 identity map 里，也用锁住那一刻的数据库值覆盖
'''
def lock_product_for_pricing(db: Session, product_id: int) -> Optional[Product]:
    stmt = (
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def write_product_pricing(
    db: Session,
    product: Product,
    *,
    cost_of_goods: Optional[Decimal],
    store_price: Decimal,
    route_price: Decimal,
) -> None:
    """仅供 price_engine 调用：成本 + 两个派生价格一起写回。"""
    product.cost_of_goods = cost_of_goods
    product.store_price = store_price
    product.route_price = route_price
    db.flush()



# ---------- 批量重算的受影响集合 ----------
def list_all_product_ids(db: Session) -> List[int]:
    stmt = select(Product.id).order_by(Product.id.asc())
    return list(db.scalars(stmt))


def list_product_ids_by_type(db: Session, product_type_id: int) -> List[int]:
    stmt = (
        select(Product.id)
        .where(Product.product_type_id == product_type_id)
        .order_by(Product.id.asc())
    )
    return list(db.scalars(stmt))



"""
为回填准备的商品快照（按名称排序，方便运维对照报告）
仅选必要列，减少 IO。
"""
def load_products_for_backfill(db: Session) -> List[Dict[str, Any]]:
    stmt = select(
        Product.id,
        Product.name,
        Product.product_type_id,
        Product.brand_id,
        Product.model_id,
        Product.cost_of_goods,
        Product.store_price,
        Product.route_price,
    ).order_by(Product.name.asc(), Product.id.asc())
    return [dict(r) for r in db.execute(stmt).mappings().all()]

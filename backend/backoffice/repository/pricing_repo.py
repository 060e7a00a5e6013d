# pricing settings / override database repository
# 只 flush 不 commit：事务边界由 service 层 transaction() 控制

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from backoffice.db.model.pricing import (
    PricingSettings,
    ProductPricingOverride,
    ProductTypePricingOverride,
)
from backoffice.db.model.product import Product, ProductType
from backoffice.db.model.user import User


# ---------- 全局设置 ----------
'''
当前生效的全局设置：updated_at 最新的一行（并列时取 id 最大）
没有任何行时返回 None，由调用方按 0/0 处理
'''
def get_current_settings(db: Session) -> Optional[PricingSettings]:
    stmt = (
        select(PricingSettings)
        .order_by(PricingSettings.updated_at.desc(), PricingSettings.id.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def lock_settings_row(db: Session) -> Optional[PricingSettings]:
    """SELECT ... FOR UPDATE 锁住设置行，防止两个管理员同时改造成丢失更新。"""
    stmt = (
        select(PricingSettings)
        .order_by(PricingSettings.id.asc())
        .limit(1)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def save_settings(
    db: Session,
    *,
    store_markup_percent: Decimal,
    route_markup_percent: Decimal,
    actor_id: Optional[int],
) -> PricingSettings:
    """有则更新（先加锁），无则插入第一行。"""
    row = lock_settings_row(db)
    if row is None:
        row = PricingSettings(
            store_markup_percent=store_markup_percent,
            route_markup_percent=route_markup_percent,
            updated_by=actor_id,
        )
        db.add(row)
    else:
        row.store_markup_percent = store_markup_percent
        row.route_markup_percent = route_markup_percent
        row.updated_by = actor_id
        row.updated_at = func.now()
    db.flush()
    db.refresh(row)
    return row



# ---------- 覆盖行：读取 ----------
def get_type_override(db: Session, product_type_id: int) -> Optional[ProductTypePricingOverride]:
    stmt = select(ProductTypePricingOverride).where(
        ProductTypePricingOverride.product_type_id == product_type_id
    ).execution_options(populate_existing=True)
    return db.scalars(stmt).first()


def get_product_override(db: Session, product_id: int) -> Optional[ProductPricingOverride]:
    stmt = select(ProductPricingOverride).where(
        ProductPricingOverride.product_id == product_id
    ).execution_options(populate_existing=True)
    return db.scalars(stmt).first()



# ---------- 覆盖行：upsert / delete ----------
def _insert_for(db: Session):
    """按方言选 INSERT 构造器；两者都支持 on_conflict_do_update。"""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert


'''
类型级覆盖 upsert：INSERT ... ON CONFLICT (product_type_id) DO UPDATE
    - 两个字段整体覆盖（传 None 即“继承全局”）
'''
def upsert_type_override(
    db: Session,
    product_type_id: int,
    *,
    store_markup_percent: Optional[Decimal],
    route_markup_percent: Optional[Decimal],
    actor_id: Optional[int],
) -> None:
    stmt = _insert_for(db)(ProductTypePricingOverride).values(
        product_type_id=product_type_id,
        store_markup_percent=store_markup_percent,
        route_markup_percent=route_markup_percent,
        updated_by=actor_id,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[ProductTypePricingOverride.product_type_id],
        set_={
            "store_markup_percent": stmt.excluded.store_markup_percent,
            "route_markup_percent": stmt.excluded.route_markup_percent,
            "updated_by": stmt.excluded.updated_by,
            "updated_at": func.now(),
        },
    )
    db.execute(stmt)
    db.expire_all()


def delete_type_override(db: Session, product_type_id: int) -> int:
    res = db.execute(
        delete(ProductTypePricingOverride).where(
            ProductTypePricingOverride.product_type_id == product_type_id
        )
    )
    return int(res.rowcount or 0)


def upsert_product_override(
    db: Session,
    product_id: int,
    *,
    store_markup_percent: Optional[Decimal],
    route_markup_percent: Optional[Decimal],
    actor_id: Optional[int],
) -> None:
    stmt = _insert_for(db)(ProductPricingOverride).values(
        product_id=product_id,
        store_markup_percent=store_markup_percent,
        route_markup_percent=route_markup_percent,
        updated_by=actor_id,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[ProductPricingOverride.product_id],
        set_={
            "store_markup_percent": stmt.excluded.store_markup_percent,
            "route_markup_percent": stmt.excluded.route_markup_percent,
            "updated_by": stmt.excluded.updated_by,
            "updated_at": func.now(),
        },
    )
    db.execute(stmt)
    db.expire_all()


def delete_product_override(db: Session, product_id: int) -> int:
    res = db.execute(
        delete(ProductPricingOverride).where(ProductPricingOverride.product_id == product_id)
    )
    return int(res.rowcount or 0)



# ---------- 列表（带商品名/类型名/修改人显示名） ----------
def _actor_name():
    return func.coalesce(User.full_name, User.username).label("updated_by_name")


def _product_override_select():
    return (
        select(
            ProductPricingOverride.id,
            ProductPricingOverride.product_id,
            Product.name.label("product_name"),
            ProductPricingOverride.store_markup_percent,
            ProductPricingOverride.route_markup_percent,
            ProductPricingOverride.updated_at,
            ProductPricingOverride.updated_by,
            _actor_name(),
        )
        .join(Product, Product.id == ProductPricingOverride.product_id)
        .outerjoin(User, User.id == ProductPricingOverride.updated_by)
    )


def _type_override_select():
    return (
        select(
            ProductTypePricingOverride.id,
            ProductTypePricingOverride.product_type_id,
            ProductType.name.label("product_type_name"),
            ProductTypePricingOverride.store_markup_percent,
            ProductTypePricingOverride.route_markup_percent,
            ProductTypePricingOverride.updated_at,
            ProductTypePricingOverride.updated_by,
            _actor_name(),
        )
        .join(ProductType, ProductType.id == ProductTypePricingOverride.product_type_id)
        .outerjoin(User, User.id == ProductTypePricingOverride.updated_by)
    )


def list_product_overrides(db: Session, *, search: Optional[str] = None) -> List[Dict[str, Any]]:
    """商品级覆盖列表；search 按商品名模糊匹配（不区分大小写）。"""
    stmt = _product_override_select()
    term = (search or "").strip()
    if term:
        stmt = stmt.where(sa.func.lower(Product.name).like(f"%{term.lower()}%"))
    stmt = stmt.order_by(Product.name.asc())
    return [dict(r) for r in db.execute(stmt).mappings().all()]


def get_product_override_view(db: Session, product_id: int) -> Optional[Dict[str, Any]]:
    stmt = _product_override_select().where(ProductPricingOverride.product_id == product_id)
    row = db.execute(stmt).mappings().first()
    return dict(row) if row else None


def list_type_overrides(db: Session) -> List[Dict[str, Any]]:
    stmt = _type_override_select().order_by(ProductType.name.asc())
    return [dict(r) for r in db.execute(stmt).mappings().all()]


def get_type_override_view(db: Session, product_type_id: int) -> Optional[Dict[str, Any]]:
    stmt = _type_override_select().where(ProductTypePricingOverride.product_type_id == product_type_id)
    row = db.execute(stmt).mappings().first()
    return dict(row) if row else None

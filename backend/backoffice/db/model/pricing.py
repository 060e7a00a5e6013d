# 定价百分比配置：全局 / 商品类型 / 商品 三级

from __future__ import annotations
from decimal import Decimal
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, func, text
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.base import Base



"""
   全局默认加价百分比（逻辑上只有一行）
   - 当前值 = updated_at 最新的一行；没有任何行时按 0/0 处理
   - 只由管理员修改，不删除
"""
class PricingSettings(Base):

    __tablename__ = "pricing_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    store_markup_percent: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False, server_default=text("0"))
    route_markup_percent: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False, server_default=text("0"))

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    updated_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)



"""
   商品类型级覆盖：每个类型最多一行（upsert）
   - 任一字段为 NULL = 继承下一级（全局）
"""
class ProductTypePricingOverride(Base):

    __tablename__ = "product_type_pricing_overrides"

    id:              Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_type_id: Mapped[int] = mapped_column(ForeignKey("product_types.id", ondelete="CASCADE"), unique=True, nullable=False)

    store_markup_percent: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 2), nullable=True)
    route_markup_percent: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 2), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    updated_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)



"""
   商品级覆盖：每个商品最多一行（upsert）
   - 有这一行不代表两个字段都设置了，每个字段独立覆盖或穿透
"""
class ProductPricingOverride(Base):

    __tablename__ = "product_pricing_overrides"

    id:         Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False)

    store_markup_percent: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 2), nullable=True)
    route_markup_percent: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 2), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    updated_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

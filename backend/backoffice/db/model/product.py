from __future__ import annotations
from decimal import Decimal
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, func, text
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.base import Base



"""
  商品类型 / 品牌 / 型号 目录表
  - 类型用于“类型级”定价覆盖
  - 类型+品牌+型号 用于匹配未指定具体商品的采购单
"""
class ProductType(Base):

    __tablename__ = "product_types"

    id:   Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Brand(Base):

    __tablename__ = "brands"

    id:   Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ProductModel(Base):

    __tablename__ = "product_models"

    id:       Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name:     Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    brand_id: Mapped[Optional[int]] = mapped_column(ForeignKey("brands.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)



"""
  商品表
  - store_price / route_price 是“派生缓存值”：只允许 price_engine 写入
  - cost_of_goods 可以为空（从未记录过成本）
"""
class Product(Base):

    __tablename__ = "products"

    id:   Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku:  Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)

    product_type_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_types.id"), nullable=True)
    brand_id:        Mapped[Optional[int]] = mapped_column(ForeignKey("brands.id"), nullable=True)
    model_id:        Mapped[Optional[int]] = mapped_column(ForeignKey("product_models.id"), nullable=True)

    # 价格信息
    cost_of_goods: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)                       # 成本（保留 4 位，避免重算时二次舍入）
    store_price:   Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))     # 门店价
    route_price:   Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))     # 线路（配送）价

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_products_type", "product_type_id"),
        Index("idx_products_name", "name"),
    )

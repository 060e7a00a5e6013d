from __future__ import annotations
from decimal import Decimal
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.base import Base



"""
  供应商采购单（由订单子系统写入，定价这边只读）
  - product_id 为空：按 类型+品牌+型号 下的“泛型”单
  - cost_of_goods 是回填成本的历史来源
"""
class PurchaseOrder(Base):

    __tablename__ = "purchase_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    product_id:      Mapped[Optional[int]] = mapped_column(ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_type_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_types.id"), nullable=True)
    brand_id:        Mapped[Optional[int]] = mapped_column(ForeignKey("brands.id"), nullable=True)
    model_id:        Mapped[Optional[int]] = mapped_column(ForeignKey("product_models.id"), nullable=True)

    cost_of_goods: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    order_date:    Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status:        Mapped[str] = mapped_column(String(32), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_purchase_orders_product_date", "product_id", "order_date"),
        Index("idx_purchase_orders_generic", "product_type_id", "brand_id", "model_id"),
    )

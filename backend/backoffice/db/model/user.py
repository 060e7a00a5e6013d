from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column
from backoffice.db.base import Base



# 用户由外部鉴权服务维护；这里只用到身份、角色和显示名（审计字段 updated_by）
class User(Base):

    __tablename__ = "users"

    id:        Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, index=True)
    username:  Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    role:      Mapped[str] = mapped_column(String(32), nullable=False, server_default=text("'staff'"))

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

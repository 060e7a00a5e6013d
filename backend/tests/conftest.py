# 测试公共夹具：SQLite 内存库 + 造数据工厂
#
# pysqlite 默认不发 BEGIN，SAVEPOINT 也就用不了；
# 按 SQLAlchemy 文档的做法关掉驱动自己的事务管理，由 "begin" 事件显式发 BEGIN。

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional

import pytest
from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.db.base import Base
from backoffice.db.model import (
    Brand,
    Product,
    ProductModel,
    ProductType,
    PurchaseOrder,
    User,
)


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},   # TestClient 在线程池里跑同步接口
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=Session)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()



# ---------- 造数据 ----------
class Factory:
    """每个方法都直接 commit，方便被测代码的回滚不影响已造好的数据。"""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def user(self, username: str = "ada", *, full_name: Optional[str] = "Ada Admin", role: str = "admin") -> User:
        return self._save(User(username=username, full_name=full_name, role=role, is_active=True))

    def product_type(self, name: str = "Beverages") -> ProductType:
        return self._save(ProductType(name=name))

    def brand(self, name: str = "Acme") -> Brand:
        return self._save(Brand(name=name))

    def model(self, name: str = "Classic", brand: Optional[Brand] = None) -> ProductModel:
        return self._save(ProductModel(name=name, brand_id=brand.id if brand else None))

    def product(
        self,
        name: str = "Cola 355ml",
        *,
        cost: Optional[str] = None,
        product_type: Optional[ProductType] = None,
        brand: Optional[Brand] = None,
        model: Optional[ProductModel] = None,
        store_price: str = "0",
        route_price: str = "0",
    ) -> Product:
        return self._save(Product(
            name=name,
            cost_of_goods=Decimal(cost) if cost is not None else None,
            product_type_id=product_type.id if product_type else None,
            brand_id=brand.id if brand else None,
            model_id=model.id if model else None,
            store_price=Decimal(store_price),
            route_price=Decimal(route_price),
        ))

    def purchase_order(
        self,
        *,
        cost: Optional[str],
        order_date: datetime,
        product: Optional[Product] = None,
        product_type: Optional[ProductType] = None,
        brand: Optional[Brand] = None,
        model: Optional[ProductModel] = None,
        status: str = "received",
    ) -> PurchaseOrder:
        return self._save(PurchaseOrder(
            product_id=product.id if product else None,
            product_type_id=product_type.id if product_type else None,
            brand_id=brand.id if brand else None,
            model_id=model.id if model else None,
            cost_of_goods=Decimal(cost) if cost is not None else None,
            order_date=order_date,
            status=status,
        ))


@pytest.fixture()
def factory(db_session) -> Factory:
    return Factory(db_session)


@pytest.fixture()
def prices(db_session):
    """直接查列值（绕开 identity map）：prices(product_id) → (cost, store, route)"""
    def _read(product_id: int):
        row = db_session.execute(
            select(Product.cost_of_goods, Product.store_price, Product.route_price)
            .where(Product.id == product_id)
        ).one()
        return row.cost_of_goods, row.store_price, row.route_price
    return _read

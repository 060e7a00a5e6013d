from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.errors import ProductNotFoundError
from backoffice.db.model.user import User
from backoffice.db.session import get_db, transaction
from backoffice.repository import pricing_repo
from backoffice.repository.product_repo import get_product
from backoffice.services.auth_service import require_admin
from backoffice.services.pricing import repricing
from backoffice.services.pricing.backfill import run_backfill
from backoffice.services.pricing.percentages import resolve_percentages


router = APIRouter(
    prefix="/pricing",
    tags=["pricing"],
    dependencies=[Depends(require_admin)],
)


_LO = Decimal(str(settings.PRICING_MARKUP_MIN))
_HI = Decimal(str(settings.PRICING_MARKUP_MAX))


# ---------- 入参 ----------
class SettingsIn(BaseModel):
    store_markup_percent: Decimal = Field(..., ge=_LO, le=_HI, decimal_places=2, allow_inf_nan=False)
    route_markup_percent: Decimal = Field(..., ge=_LO, le=_HI, decimal_places=2, allow_inf_nan=False)


class OverrideIn(BaseModel):
    # null = 该字段不覆盖，继承上一级
    store_markup_percent: Optional[Decimal] = Field(None, ge=_LO, le=_HI, decimal_places=2, allow_inf_nan=False)
    route_markup_percent: Optional[Decimal] = Field(None, ge=_LO, le=_HI, decimal_places=2, allow_inf_nan=False)


# ---------- 出参 ----------
class SettingsOut(BaseModel):
    id: Optional[int] = None
    store_markup_percent: float
    route_markup_percent: float
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    repriced: Optional[int] = None


class ProductOverrideOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    store_markup_percent: Optional[float] = None
    route_markup_percent: Optional[float] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    updated_by_name: Optional[str] = None
    repriced: Optional[int] = None


class TypeOverrideOut(BaseModel):
    id: int
    product_type_id: int
    product_type_name: str
    store_markup_percent: Optional[float] = None
    route_markup_percent: Optional[float] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    updated_by_name: Optional[str] = None
    repriced: Optional[int] = None


class SkippedOut(BaseModel):
    product_id: int
    product_name: str
    reason: str


class BackfillOut(BaseModel):
    updated: int
    skipped: List[SkippedOut]
    sources: Dict[str, int]


class ResolvedOut(BaseModel):
    product_id: int
    product_type_id: Optional[int] = None
    store_markup_percent: float
    route_markup_percent: float
    cost_of_goods: Optional[float] = None
    store_price: float
    route_price: float



# ---------- 全局设置 ----------
@router.get("/settings", response_model=SettingsOut)
def get_settings(response: Response, db: Session = Depends(get_db)):
    response.headers["Cache-Control"] = "no-store"
    return repricing.settings_view(db)


@router.put("/settings", response_model=SettingsOut)
def put_settings(
    payload: SettingsIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    result = repricing.update_global_settings(
        db, payload.store_markup_percent, payload.route_markup_percent, actor_id=user.id,
    )
    return {**result.view, "repriced": result.repriced}



# ---------- 商品级覆盖 ----------
@router.get("/overrides", response_model=List[ProductOverrideOut])
def list_overrides(
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
):
    return pricing_repo.list_product_overrides(db, search=search)


@router.put("/overrides/{product_id}", response_model=ProductOverrideOut)
def put_override(
    product_id: int,
    payload: OverrideIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    result = repricing.upsert_product_override(
        db, product_id,
        payload.store_markup_percent, payload.route_markup_percent,
        actor_id=user.id,
    )
    return {**result.view, "repriced": result.repriced}


@router.delete("/overrides/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_override(product_id: int, db: Session = Depends(get_db)):
    repricing.clear_product_override(db, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)



# ---------- 类型级覆盖 ----------
@router.get("/type-overrides", response_model=List[TypeOverrideOut])
def list_type_overrides(db: Session = Depends(get_db)):
    return pricing_repo.list_type_overrides(db)


@router.put("/type-overrides/{type_id}", response_model=TypeOverrideOut)
def put_type_override(
    type_id: int,
    payload: OverrideIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    result = repricing.upsert_type_override(
        db, type_id,
        payload.store_markup_percent, payload.route_markup_percent,
        actor_id=user.id,
    )
    return {**result.view, "repriced": result.repriced}


@router.delete("/type-overrides/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_type_override(type_id: int, db: Session = Depends(get_db)):
    repricing.clear_type_override(db, type_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)



# ---------- 回填 / 诊断 ----------
@router.post("/backfill", response_model=BackfillOut)
def backfill(
    mode: Optional[Literal["tolerant", "strict"]] = Query(None),
    db: Session = Depends(get_db),
):
    # mode 不传时取 PRICING_BACKFILL_MODE
    with transaction(db):
        report = run_backfill(db, mode=mode)
    return report.to_dict()


@router.get("/products/{product_id}/resolved", response_model=ResolvedOut)
def resolved_for_product(product_id: int, db: Session = Depends(get_db)):
    product = get_product(db, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    pct = resolve_percentages(db, product.id, product.product_type_id)
    return {
        "product_id": product.id,
        "product_type_id": product.product_type_id,
        "store_markup_percent": pct.store,
        "route_markup_percent": pct.route,
        "cost_of_goods": product.cost_of_goods,
        "store_price": product.store_price,
        "route_price": product.route_price,
    }

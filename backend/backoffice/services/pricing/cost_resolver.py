# 成本来源查找：采购单历史

from __future__ import annotations
from decimal import Decimal
from typing import Optional
import logging

from sqlalchemy.orm import Session

from backoffice.repository.purchase_order_repo import find_latest_cost


logger = logging.getLogger(__name__)


def find_cost(
    db: Session,
    product_id: int,
    product_type_id: Optional[int],
    brand_id: Optional[int],
    model_id: Optional[int],
) -> Optional[Decimal]:
    """
    Return the authoritative cost-of-goods from purchase history, or None.

    First hit wins: the most recent order recorded against this exact product, else
    the most recent generic order (no product id) for the same type/brand/model.
    None means "no cost found" and is distinct from a found Decimal("0").
    Never mutates state.
    """
    cost = find_latest_cost(
        db,
        product_id=product_id,
        product_type_id=product_type_id,
        brand_id=brand_id,
        model_id=model_id,
    )
    if cost is None:
        logger.debug("no purchase-order cost for product=%s type=%s brand=%s model=%s",
                     product_id, product_type_id, brand_id, model_id)
    return cost

# 聚合导入所有模型，供 Alembic 发现

from .product import (
    ProductType,
    Brand,
    ProductModel,
    Product,
)

from .pricing import (
    PricingSettings,
    ProductTypePricingOverride,
    ProductPricingOverride,
)

from .purchase_order import PurchaseOrder
from .user import User

__all__ = [
    # catalog
    "ProductType", "Brand", "ProductModel", "Product",
    # pricing
    "PricingSettings", "ProductTypePricingOverride", "ProductPricingOverride",
    # others
    "PurchaseOrder", "User",
]

"""
   定价核心的异常类型。
   与 HTTP 层解耦：main.py 里统一把这些异常映射成状态码。
"""

class PricingError(Exception):
    """Base for all pricing/core errors."""

class PricingValidationError(PricingError):
    """Malformed or out-of-range input; raised before any store access."""

class NotFoundError(PricingError):
    """A referenced row does not exist; aborts the enclosing transaction."""

class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"product {product_id} not found")
        self.product_id = product_id

class ProductTypeNotFoundError(NotFoundError):
    def __init__(self, product_type_id: int):
        super().__init__(f"product type {product_type_id} not found")
        self.product_type_id = product_type_id

class ConflictError(PricingError):
    """Duplicate unique key (e.g. re-creating an existing named catalog entry)."""

from app.crud.base import CRUDBase
from .tenant import tenant
from .user import user
from .price_plan import price_plan
from .product import product, product_variant
from .inventory_history import inventory_history
from .order import order
from .support_ticket import support_ticket, landlord_support_ticket

__all__ = [
    "CRUDBase",
    "tenant",
    "user",
    "price_plan",
    "product",
    "product_variant",
    "inventory_history",
    "order",
    "support_ticket",
    "landlord_support_ticket",
]

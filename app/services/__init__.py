from app.services.tenant import tenant_service
from app.services.user import user_service
from app.services.price_plan import price_plan_service
from app.services.subscription import subscription_service
from app.services.plan_limits import plan_limit_service
from app.services.product import product_service
from app.services.inventory import inventory_service
from app.services.cart import cart_service
from app.services.order import order_service
from app.services.support import support_service
from app.services.landlord_support import landlord_support_service
from app.services.notification import notification_service
from app.services.domain import domain_service
from app.services.email import email_service

__all__ = [
    "tenant_service",
    "user_service",
    "price_plan_service",
    "subscription_service",
    "plan_limit_service",
    "product_service",
    "inventory_service",
    "cart_service",
    "order_service",
    "support_service",
    "landlord_support_service",
    "notification_service",
    "domain_service",
    "email_service",
]

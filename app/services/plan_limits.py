from typing import Dict, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.crud.order import order as order_crud
from app.crud.product import product as product_crud
from app.crud.user import user as user_crud
from app.models.price_plan import PricePlan
from app.models.tenant import Tenant
from app.models.user import UserRole

LIMIT_KEYS = ("max_products", "max_orders", "max_customers", "max_staff_users")

STAFF_ROLES = [UserRole.tenant_admin, UserRole.tenant_staff]


def get_limit(plan: Optional[PricePlan], key: str) -> Optional[int]:
    """A plan limit, or None when unlimited (missing or -1)."""
    features = (plan.features or {}) if plan else {}
    value = features.get(key)
    if value is None or value == -1:
        return None
    return int(value)


class PlanLimitService:
    """Enforces the per-plan resource limits stored in PricePlan.features."""

    def _require_plan(self, tenant: Tenant) -> PricePlan:
        if not tenant.plan_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No active subscription plan"
            )
        if tenant.plan is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Subscription plan not found"
            )
        return tenant.plan

    def _check(self, tenant: Tenant, key: str, used: int, label: str, action: str) -> None:
        plan = self._require_plan(tenant)
        limit = get_limit(plan, key)
        if limit is not None and used >= limit:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{label} limit reached ({used}/{limit}). Please upgrade your plan to {action}."
            )

    def check_can_create_product(self, db: Session, tenant: Tenant) -> None:
        used = product_crud.count(db, tenant_id=tenant.id)
        self._check(tenant, "max_products", used, "Product", "add more products")

    def check_can_create_order(self, db: Session, tenant: Tenant) -> None:
        used = order_crud.count(db, tenant_id=tenant.id)
        self._check(tenant, "max_orders", used, "Order", "process more orders")

    def check_can_add_customer(self, db: Session, tenant: Tenant) -> None:
        used = user_crud.count_by_role(db, tenant.id, [UserRole.customer])
        self._check(tenant, "max_customers", used, "Customer", "add more customers")

    def check_can_add_staff(self, db: Session, tenant: Tenant) -> None:
        used = user_crud.count_by_role(db, tenant.id, STAFF_ROLES)
        self._check(tenant, "max_staff_users", used, "Staff user", "add more staff users")

    def get_usage(self, db: Session, tenant: Tenant) -> Dict[str, Dict[str, Optional[int]]]:
        """Current usage against each limit, keyed by resource name."""
        plan = tenant.plan
        return {
            "products": {
                "used": product_crud.count(db, tenant_id=tenant.id),
                "limit": get_limit(plan, "max_products"),
            },
            "orders": {
                "used": order_crud.count(db, tenant_id=tenant.id),
                "limit": get_limit(plan, "max_orders"),
            },
            "customers": {
                "used": user_crud.count_by_role(db, tenant.id, [UserRole.customer]),
                "limit": get_limit(plan, "max_customers"),
            },
            "staff_users": {
                "used": user_crud.count_by_role(db, tenant.id, STAFF_ROLES),
                "limit": get_limit(plan, "max_staff_users"),
            },
        }


# Create a singleton instance
plan_limit_service = PlanLimitService()

from typing import Dict, List, Optional
import pandas as pd
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.crud.order import order as order_crud
from app.crud.support_ticket import support_ticket as ticket_crud
from app.crud.user import user as user_crud
from app.models.user import User, UserRole
from app.schemas.common import Pagination
from app.schemas.customer import CustomerResponse, CustomerStats, CustomerUpdate
from app.services.order import order_service

EXPORT_COLUMNS = ["ID", "Name", "Email", "Active", "Total Orders", "Total Spent", "Created At"]


class CustomerService:
    """
    Store-side view of the shoppers registered on a storefront.

    Customers are users with the customer role. Their order count covers
    every order they placed. The amount spent only counts paid orders.
    """

    def _not_found(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    def _with_stats(self, db: Session, tenant_id: int, customers: List[User]) -> List[CustomerResponse]:
        totals = order_crud.customer_totals(db, tenant_id=tenant_id, user_ids=[c.id for c in customers])
        results = []
        for customer in customers:
            orders, spent = totals.get(customer.id, (0, 0.0))
            results.append(CustomerResponse(
                id=customer.id,
                email=customer.email,
                name=customer.name,
                is_active=bool(customer.is_active),
                created_at=customer.created_at,
                updated_at=customer.updated_at,
                stats=CustomerStats(orders=orders, total_spent=spent),
            ))
        return results

    def _get(self, db: Session, customer_id: int, tenant_id: int) -> User:
        customer = user_crud.get_for_tenant(db, customer_id, tenant_id)
        if not customer or customer.role != UserRole.customer:
            raise self._not_found()
        return customer

    def list_customers(
        self,
        db: Session,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Dict:
        customers, total = user_crud.search_customers(
            db,
            tenant_id=tenant_id,
            search=search,
            is_active=is_active,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {
            "customers": self._with_stats(db, tenant_id, customers),
            "pagination": Pagination.build(page, limit, total),
        }

    def get_customer(self, db: Session, customer_id: int, tenant_id: int) -> CustomerResponse:
        customer = self._get(db, customer_id, tenant_id)
        result = self._with_stats(db, tenant_id, [customer])[0]
        _, tickets = ticket_crud.get_filtered(db, tenant_id=tenant_id, user_id=customer.id, limit=1)
        result.stats.support_tickets = tickets
        return result

    def list_customer_orders(
        self, db: Session, customer_id: int, tenant_id: int, page: int = 1, limit: int = 20
    ) -> Dict:
        customer = self._get(db, customer_id, tenant_id)
        return order_service.list_orders(db, tenant_id, page=page, limit=limit, user_id=customer.id)

    def update_customer(self, db: Session, customer_id: int, tenant_id: int, data: CustomerUpdate) -> CustomerResponse:
        customer = self._get(db, customer_id, tenant_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if fields:
            user_crud.update(db, db_obj=customer, fields=fields)
            logger.info(f"Customer updated: customer_id={customer.id}, tenant_id={tenant_id}, fields={sorted(fields)}")
        return self.get_customer(db, customer_id, tenant_id)

    def deactivate_customer(self, db: Session, customer_id: int, tenant_id: int) -> None:
        """The account is kept so the customer's orders and tickets stay linked. It can no longer log in."""
        customer = self._get(db, customer_id, tenant_id)
        user_crud.update(db, db_obj=customer, fields={"is_active": False})
        logger.info(f"Customer deactivated: customer_id={customer.id}, tenant_id={tenant_id}")

    def export_csv(
        self,
        db: Session,
        tenant_id: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> str:
        """Every matching customer, newest first, as CSV."""
        customers, _ = user_crud.search_customers(db, tenant_id=tenant_id, search=search, is_active=is_active)
        rows = [
            [
                c.id,
                c.name or "",
                c.email,
                "Yes" if c.is_active else "No",
                c.stats.orders,
                c.stats.total_spent,
                c.created_at.isoformat() if c.created_at else "",
            ]
            for c in self._with_stats(db, tenant_id, customers)
        ]
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        logger.info(f"Customers exported: tenant_id={tenant_id}, rows={len(df)}")
        return df.to_csv(index=False, float_format="%.2f")


# Create a singleton instance
customer_service = CustomerService()

from datetime import datetime
from typing import Dict, Optional, List, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func, or_, case
from app.crud.base import CRUDBase
from app.models.order import Order, OrderStatus, PaymentStatus
from pydantic import BaseModel

SORTABLE_FIELDS = {
    "created_at": Order.created_at,
    "total_amount": Order.total_amount,
    "order_number": Order.order_number,
}


class CRUDOrder(CRUDBase[Order, BaseModel, BaseModel]):
    """CRUD operations for Order model. Line items are always loaded."""

    def get(self, db: Session, id: int, tenant_id: int) -> Optional[Order]:
        stmt = (
            select(Order)
            .where(Order.id == id, Order.tenant_id == tenant_id)
            .options(selectinload(Order.items))
        )
        return db.execute(stmt).scalar_one_or_none()

    def order_number_exists(self, db: Session, order_number: str) -> bool:
        return db.execute(select(Order.id).where(Order.order_number == order_number)).first() is not None

    def get_filtered(
        self,
        db: Session,
        *,
        tenant_id: int,
        user_id: Optional[int] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        order_number: Optional[str] = None,
        customer_email: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Order], int]:
        conditions = [Order.tenant_id == tenant_id]
        if user_id is not None:
            conditions.append(Order.user_id == user_id)
        if status:
            conditions.append(Order.status == status)
        if payment_status:
            conditions.append(Order.payment_status == payment_status)
        if order_number:
            conditions.append(Order.order_number.ilike(f"%{order_number}%"))
        if customer_email:
            conditions.append(Order.email.ilike(f"%{customer_email}%"))
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Order.order_number.ilike(pattern),
                Order.email.ilike(pattern),
                Order.name.ilike(pattern),
            ))
        if start_date:
            conditions.append(Order.created_at >= start_date)
        if end_date:
            conditions.append(Order.created_at <= end_date)

        column = SORTABLE_FIELDS.get(sort_by, Order.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()

        total = db.execute(select(func.count()).select_from(Order).where(*conditions)).scalar_one()
        stmt = (
            select(Order)
            .where(*conditions)
            .options(selectinload(Order.items))
            .order_by(ordering, Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all()), total

    def get_recent(
        self,
        db: Session,
        *,
        tenant_id: int,
        statuses: Optional[List[OrderStatus]] = None,
        payment_status: Optional[PaymentStatus] = None,
        exclude_cancelled: bool = False,
        limit: int = 10
    ) -> List[Order]:
        """Newest orders matching a status filter, used to build notifications."""
        stmt = select(Order).where(Order.tenant_id == tenant_id)
        if statuses:
            stmt = stmt.where(Order.status.in_(statuses))
        if payment_status:
            stmt = stmt.where(Order.payment_status == payment_status)
        if exclude_cancelled:
            stmt = stmt.where(Order.status != OrderStatus.cancelled)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        return list(db.execute(stmt).scalars().all())

    def customer_totals(self, db: Session, *, tenant_id: int, user_ids: List[int]) -> Dict[int, Tuple[int, float]]:
        """(order count, amount paid) per customer. Only paid orders count towards the amount."""
        if not user_ids:
            return {}
        paid = case((Order.payment_status == PaymentStatus.paid, Order.total_amount), else_=0)
        stmt = (
            select(Order.user_id, func.count(Order.id), func.coalesce(func.sum(paid), 0))
            .where(Order.tenant_id == tenant_id, Order.user_id.in_(user_ids))
            .group_by(Order.user_id)
        )
        return {user_id: (count, round(float(spent), 2)) for user_id, count, spent in db.execute(stmt).all()}

    def count_since(self, db: Session, *, tenant_id: int, since: Optional[datetime] = None) -> int:
        stmt = select(func.count()).select_from(Order).where(Order.tenant_id == tenant_id)
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        return db.execute(stmt).scalar_one()


# Create singleton instance
order = CRUDOrder(Order)

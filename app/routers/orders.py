from datetime import datetime
from typing import Literal, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.permissions import require_tenant_member
from app.core.tenant_context import get_current_tenant, get_tenant_id
from app.models.order import OrderStatus, PaymentStatus
from app.models.tenant import Tenant
from app.schemas.order import (
    OrderCancelRequest,
    OrderListResponse,
    OrderResponse,
    OrderUpdateRequest,
    PaymentUpdateRequest,
)
from app.services.order import order_service

router = APIRouter(dependencies=[Depends(require_tenant_member)])


@router.get("", response_model=OrderListResponse)
def get_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = None,
    order_number: Optional[str] = None,
    customer_email: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    sort_by: Literal["created_at", "total_amount", "order_number"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """
    List the store's orders.

    Args:
        page: Page number, starting at 1
        limit: Page size (max 100)
        status_filter: Only orders in this status
        payment_status: Only orders with this payment status
        order_number: Partial order number match
        customer_email: Partial customer email match
        search: Matches order number, email or customer name
        start_date: Created at or after
        end_date: Created at or before
        sort_by: Sort column
        sort_order: asc or desc
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)

    Returns:
        Orders and pagination info
    """
    return order_service.list_orders(
        db,
        _tenant_id,
        page=page,
        limit=limit,
        status=status_filter,
        payment_status=payment_status,
        order_number=order_number,
        customer_email=customer_email,
        search=search,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return order_service.get_order(db, order_id, _tenant_id)


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: int,
    data: OrderUpdateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    """
    Update status, tracking or payment details.

    Status changes must follow the order workflow; shipping and delivery
    notify the customer by email.
    """
    return order_service.update_order(db, tenant, order_id, data, background_tasks)


@router.patch("/{order_id}/payment", response_model=OrderResponse)
def update_payment_status(
    order_id: int,
    data: PaymentUpdateRequest,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return order_service.update_payment_status(
        db,
        _tenant_id,
        order_id,
        data.payment_status,
        transaction_id=data.transaction_id,
        payment_gateway=data.payment_gateway,
    )


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    data: OrderCancelRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    return order_service.cancel_order(db, tenant, order_id, data, background_tasks)

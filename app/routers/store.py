"""Customer-facing storefront endpoints. The store comes from the request host."""

from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pydantic import EmailStr
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.tenant_context import get_storefront_tenant, require_storefront_user
from app.models.order import OrderStatus
from app.models.support_ticket import TicketStatus, TicketPriority
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.order import CheckoutRequest, OrderListResponse, OrderResponse, OrderTrackResponse
from app.schemas.support import (
    MessageCreate,
    SortField,
    SupportMessageResponse,
    SupportTicketListResponse,
    SupportTicketResponse,
    TicketCreate,
)
from app.services.order import order_service
from app.services.support import support_service

router = APIRouter()


@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    data: CheckoutRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    """
    Place an order.

    Stock is checked and taken, the customer's cart is emptied and the
    confirmation emails go out in the background.

    Args:
        data: Items, addresses and payment method
        background_tasks: FastAPI background task queue
        db: Database session
        tenant: Store resolved from the host
        user: Signed-in customer

    Returns:
        The new order
    """
    try:
        logger.info(f"Checkout: tenant_id={tenant.id}, user_id={user.id}, items={len(data.items)}")
        return order_service.checkout(db, tenant, user, data, background_tasks)
    except Exception as e:
        logger.error(f"Error during checkout: {type(e).__name__}: {str(e)}")
        raise


@router.get("/orders", response_model=OrderListResponse)
def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return order_service.list_orders(db, tenant.id, page=page, limit=limit, user_id=user.id, status=status_filter)


@router.get("/orders/track", response_model=OrderTrackResponse)
def track_order(
    order_number: str = Query(..., min_length=1),
    email: EmailStr = Query(...),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant)
):
    """Guest order lookup by order number and checkout email."""
    return order_service.track_order(db, tenant.id, order_number, email)


@router.get("/orders/{order_id}", response_model=OrderResponse)
def my_order(
    order_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return order_service.get_order(db, order_id, tenant.id, user_id=user.id)


# Support tickets

@router.post("/support/tickets", response_model=SupportTicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    data: TicketCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return support_service.create_ticket(db, tenant, user, data, background_tasks)


@router.get("/support/tickets", response_model=SupportTicketListResponse)
def my_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = None,
    search: Optional[str] = None,
    sort_by: SortField = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return support_service.list_tickets(
        db,
        tenant.id,
        page=page,
        limit=limit,
        user_id=user.id,
        status_filter=status_filter,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/support/tickets/{ticket_id}", response_model=SupportTicketResponse)
def my_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return support_service.get_ticket(db, ticket_id, tenant.id, user_id=user.id)


@router.get("/support/tickets/{ticket_id}/messages", response_model=List[SupportMessageResponse])
def my_ticket_messages(
    ticket_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return support_service.list_messages(db, ticket_id, tenant.id, user_id=user.id)


@router.post(
    "/support/tickets/{ticket_id}/messages",
    response_model=SupportMessageResponse,
    status_code=status.HTTP_201_CREATED
)
def reply_to_my_ticket(
    ticket_id: int,
    data: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user)
):
    return support_service.add_message(db, tenant, ticket_id, user, data, background_tasks, user_id=user.id)

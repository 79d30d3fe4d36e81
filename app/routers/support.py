from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.permissions import require_tenant_member
from app.core.tenant_context import get_current_tenant, get_tenant_id
from app.models.support_ticket import TicketStatus, TicketPriority
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.support import (
    MessageCreate,
    SortField,
    SupportMessageResponse,
    SupportTicketListResponse,
    SupportTicketResponse,
    TicketUpdate,
)
from app.services.support import support_service

# Store staff side of customer tickets; customers use /api/store/support
router = APIRouter(dependencies=[Depends(require_tenant_member)])


@router.get("/tickets", response_model=SupportTicketListResponse)
def list_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = None,
    search: Optional[str] = None,
    sort_by: SortField = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """
    List the customer tickets of your store.

    Args:
        page: Page number, starting at 1
        limit: Page size (max 100)
        status_filter: Only tickets in this status
        priority: Only tickets with this priority
        search: Matches subject or description
        sort_by: created_at, updated_at, priority or status
        sort_order: asc or desc
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)

    Returns:
        Tickets with their messages, and pagination info
    """
    return support_service.list_tickets(
        db,
        _tenant_id,
        page=page,
        limit=limit,
        status_filter=status_filter,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/tickets/{ticket_id}", response_model=SupportTicketResponse)
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return support_service.get_ticket(db, ticket_id, _tenant_id)


@router.patch("/tickets/{ticket_id}", response_model=SupportTicketResponse)
def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    """Update a ticket. The customer is emailed when its status changes."""
    return support_service.update_ticket(db, tenant, ticket_id, data, background_tasks)


@router.delete("/tickets/{ticket_id}", response_model=SupportTicketResponse)
def close_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """Tickets are closed, not deleted."""
    return support_service.close_ticket(db, ticket_id, _tenant_id)


@router.get("/tickets/{ticket_id}/messages", response_model=List[SupportMessageResponse])
def list_messages(
    ticket_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return support_service.list_messages(db, ticket_id, _tenant_id)


@router.post("/tickets/{ticket_id}/messages", response_model=SupportMessageResponse, status_code=status.HTTP_201_CREATED)
def add_message(
    ticket_id: int,
    data: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant),
    current_user: User = Depends(require_tenant_member)
):
    return support_service.add_message(db, tenant, ticket_id, current_user, data, background_tasks)

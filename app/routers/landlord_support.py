from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_member
from app.core.tenant_context import get_current_tenant, get_tenant_id
from app.models.landlord_support_ticket import TicketCategory
from app.models.support_ticket import TicketStatus, TicketPriority
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.support import (
    LandlordMessageResponse,
    LandlordTicketCreate,
    LandlordTicketListResponse,
    LandlordTicketResponse,
    MessageCreate,
    SortField,
)
from app.services.landlord_support import landlord_support_service

# Store side of tickets addressed to the platform; the landlord side lives in admin
router = APIRouter()


@router.post("/tickets", response_model=LandlordTicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    data: LandlordTicketCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant),
    current_user: User = Depends(require_tenant_member)
):
    try:
        logger.info(f"Creating landlord ticket: tenant_id={tenant.id}, category={data.category.value}")
        return landlord_support_service.create_ticket(db, tenant, current_user, data, background_tasks)
    except Exception as e:
        logger.error(f"Error creating landlord ticket: {type(e).__name__}: {str(e)}")
        raise


@router.get("/tickets", response_model=LandlordTicketListResponse, dependencies=[Depends(require_tenant_member)])
def list_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = None,
    category: Optional[TicketCategory] = None,
    search: Optional[str] = None,
    sort_by: SortField = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return landlord_support_service.list_tickets(
        db,
        page=page,
        limit=limit,
        tenant_id=_tenant_id,
        status_filter=status_filter,
        priority=priority,
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/tickets/{ticket_id}", response_model=LandlordTicketResponse, dependencies=[Depends(require_tenant_member)])
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return landlord_support_service.get_ticket(db, ticket_id, _tenant_id)


@router.get(
    "/tickets/{ticket_id}/messages",
    response_model=List[LandlordMessageResponse],
    dependencies=[Depends(require_tenant_member)]
)
def list_messages(
    ticket_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return landlord_support_service.list_messages(db, ticket_id, _tenant_id)


@router.post("/tickets/{ticket_id}/messages", response_model=LandlordMessageResponse, status_code=status.HTTP_201_CREATED)
def add_message(
    ticket_id: int,
    data: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    current_user: User = Depends(require_tenant_member)
):
    return landlord_support_service.add_message(
        db, ticket_id, current_user, data, background_tasks, tenant_id=_tenant_id
    )

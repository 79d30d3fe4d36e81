from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_landlord
from app.models.landlord_support_ticket import TicketCategory
from app.models.support_ticket import TicketStatus, TicketPriority
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.inventory import SyncStockResponse
from app.schemas.notification import NotificationListResponse
from app.schemas.price_plan import PricePlanCreate, PricePlanUpdate, PricePlanResponse
from app.schemas.support import (
    LandlordTicketUpdate,
    LandlordTicketResponse,
    LandlordTicketListResponse,
    LandlordMessageResponse,
    MessageCreate,
    SortField,
)
from app.schemas.tenant import (
    TenantCreate,
    TenantUpdate,
    TenantResponse,
    TenantCreateResponse,
    SubdomainChange,
    SubdomainChangeResponse,
)
from app.services.inventory import inventory_service
from app.services.landlord_support import landlord_support_service
from app.services.notification import notification_service
from app.services.price_plan import price_plan_service
from app.services.tenant import tenant_service

# Everything here is landlord-only
router = APIRouter(dependencies=[Depends(require_landlord)])


# Tenants

@router.get("/tenants", response_model=List[TenantResponse])
def list_tenants(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    List every store on the platform, newest first.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100)
        db: Database session

    Returns:
        List of tenants, including soft-deleted ones
    """
    return tenant_service.list_tenants(db, skip=skip, limit=limit)


@router.post("/tenants", response_model=TenantCreateResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    tenant_data: TenantCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Provision a new store and its tenant_admin account.

    The welcome email and the Vercel domain registration run after the
    response is sent.

    Args:
        tenant_data: Store details and admin credentials
        background_tasks: FastAPI background task queue
        db: Database session

    Returns:
        Created tenant and admin user
    """
    try:
        logger.info(f"Creating tenant: subdomain={tenant_data.subdomain}")
        tenant, admin = tenant_service.create_tenant(db, tenant_data, background_tasks)
        return TenantCreateResponse(tenant=tenant, admin_user=admin)
    except Exception as e:
        logger.error(f"Error creating tenant: {type(e).__name__}: {str(e)}")
        raise


@router.get("/tenants/{tenant_id}", response_model=TenantResponse)
def get_tenant(tenant_id: int, db: Session = Depends(get_db)):
    return tenant_service.get_tenant(db, tenant_id)


@router.patch("/tenants/{tenant_id}", response_model=TenantResponse)
def update_tenant(tenant_id: int, tenant_data: TenantUpdate, db: Session = Depends(get_db)):
    return tenant_service.update_tenant(db, tenant_id, tenant_data)


@router.delete("/tenants/{tenant_id}", response_model=MessageResponse)
def delete_tenant(
    tenant_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Soft delete a store. Its data stays, with status=deleted."""
    tenant_service.delete_tenant(db, tenant_id, background_tasks)
    return MessageResponse(message="Tenant deleted successfully")


@router.patch("/tenants/{tenant_id}/subdomain", response_model=SubdomainChangeResponse)
def change_subdomain(
    tenant_id: int,
    data: SubdomainChange,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    tenant, old_subdomain = tenant_service.change_subdomain(db, tenant_id, data.subdomain, background_tasks)
    return SubdomainChangeResponse(
        message="Subdomain updated successfully",
        tenant=tenant,
        old_subdomain=old_subdomain,
    )


# Price plans

@router.get("/plans", response_model=List[PricePlanResponse])
def list_plans(include_inactive: bool = False, db: Session = Depends(get_db)):
    return price_plan_service.list_plans(db, active_only=not include_inactive)


@router.post("/plans", response_model=PricePlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(plan_data: PricePlanCreate, db: Session = Depends(get_db)):
    try:
        logger.info(f"Creating price plan: name={plan_data.name}")
        return price_plan_service.create_plan(db, plan_data)
    except Exception as e:
        logger.error(f"Error creating price plan: {type(e).__name__}: {str(e)}")
        raise


@router.get("/plans/{plan_id}", response_model=PricePlanResponse)
def get_plan(plan_id: int, db: Session = Depends(get_db)):
    return price_plan_service.get_plan(db, plan_id)


@router.patch("/plans/{plan_id}", response_model=PricePlanResponse)
def update_plan(plan_id: int, plan_data: PricePlanUpdate, db: Session = Depends(get_db)):
    return price_plan_service.update_plan(db, plan_id, plan_data)


@router.delete("/plans/{plan_id}", response_model=PricePlanResponse)
def deactivate_plan(plan_id: int, db: Session = Depends(get_db)):
    """Plans are never removed, only marked inactive."""
    return price_plan_service.deactivate_plan(db, plan_id)


# Maintenance

@router.post("/inventory/sync-product-stocks", response_model=SyncStockResponse)
def sync_all_product_stocks(tenant_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Recompute the stock of every product with variants, across all stores or one."""
    synced = inventory_service.sync_all_product_stocks(db, tenant_id=tenant_id)
    return SyncStockResponse(message=f"Synced {synced} products", synced=synced)


# Support tickets raised by stores

@router.get("/support/tickets", response_model=LandlordTicketListResponse)
def list_support_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tenant_id: Optional[int] = None,
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = None,
    category: Optional[TicketCategory] = None,
    search: Optional[str] = None,
    sort_by: SortField = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db)
):
    return landlord_support_service.list_tickets(
        db,
        page=page,
        limit=limit,
        tenant_id=tenant_id,
        status_filter=status_filter,
        priority=priority,
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/support/tickets/{ticket_id}", response_model=LandlordTicketResponse)
def get_support_ticket(ticket_id: int, db: Session = Depends(get_db)):
    return landlord_support_service.get_ticket(db, ticket_id)


@router.patch("/support/tickets/{ticket_id}", response_model=LandlordTicketResponse)
def update_support_ticket(
    ticket_id: int,
    data: LandlordTicketUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    return landlord_support_service.update_ticket(db, ticket_id, data, background_tasks)


@router.get("/support/tickets/{ticket_id}/messages", response_model=List[LandlordMessageResponse])
def list_support_messages(ticket_id: int, db: Session = Depends(get_db)):
    return landlord_support_service.list_messages(db, ticket_id)


@router.post(
    "/support/tickets/{ticket_id}/messages",
    response_model=LandlordMessageResponse,
    status_code=status.HTTP_201_CREATED
)
def reply_to_support_ticket(
    ticket_id: int,
    data: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_landlord)
):
    return landlord_support_service.add_message(db, ticket_id, current_user, data, background_tasks)


# Notifications

@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(unread_only: bool = False, db: Session = Depends(get_db)):
    return notification_service.get_landlord_notifications(db, unread_only=unread_only)


@router.post("/notifications/clear", response_model=MessageResponse)
def clear_notifications():
    # Nothing is stored, so there is nothing to mark
    return MessageResponse(message="All notifications marked as read")

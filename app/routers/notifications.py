from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.permissions import require_tenant_member
from app.core.tenant_context import get_current_tenant
from app.models.tenant import Tenant
from app.schemas.common import MessageResponse
from app.schemas.notification import NotificationListResponse
from app.services.notification import notification_service

router = APIRouter(dependencies=[Depends(require_tenant_member)])


@router.get("", response_model=NotificationListResponse)
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    """
    Current alerts for the store: new orders, payment problems and low stock.

    Args:
        unread_only: Only return unread notifications
        db: Database session
        tenant: Current store (auto-set from JWT)

    Returns:
        Up to 20 notifications, newest first, with unread and total counts
    """
    return notification_service.get_tenant_notifications(db, tenant, unread_only=unread_only)


@router.post("/clear", response_model=MessageResponse)
def clear_notifications():
    return MessageResponse(message="All notifications marked as read")

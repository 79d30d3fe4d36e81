from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_admin, require_tenant_member
from app.core.tenant_context import get_tenant_id
from app.schemas.common import MessageResponse
from app.schemas.customer import CustomerListResponse, CustomerResponse, CustomerSortField, CustomerUpdate
from app.schemas.order import OrderListResponse
from app.services.customer import customer_service
from app.utils.dates import utcnow

router = APIRouter(dependencies=[Depends(require_tenant_member)])


@router.get("", response_model=CustomerListResponse)
def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    sort_by: CustomerSortField = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """
    List the customers registered on your storefront.

    Args:
        page: Page number, starting at 1
        limit: Page size (max 100)
        search: Matches name or email
        is_active: Only active or only deactivated accounts
        sort_by: created_at, name or email
        sort_order: asc or desc
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)

    Returns:
        Customers with their order count and amount spent, and pagination info
    """
    return customer_service.list_customers(
        db,
        _tenant_id,
        page=page,
        limit=limit,
        search=search,
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/export")
def export_customers(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    try:
        content = customer_service.export_csv(db, _tenant_id, search=search, is_active=is_active)
    except Exception as e:
        logger.error(f"Error exporting customers: tenant_id={_tenant_id}, {type(e).__name__}: {str(e)}")
        raise
    filename = f"customers-{utcnow().date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return customer_service.get_customer(db, customer_id, _tenant_id)


@router.get("/{customer_id}/orders", response_model=OrderListResponse)
def list_customer_orders(
    customer_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return customer_service.list_customer_orders(db, customer_id, _tenant_id, page=page, limit=limit)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return customer_service.update_customer(db, customer_id, _tenant_id, data)


@router.delete("/{customer_id}", response_model=MessageResponse, dependencies=[Depends(require_tenant_admin)])
def deactivate_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """Deactivate a customer account. Only store admins can do this."""
    customer_service.deactivate_customer(db, customer_id, _tenant_id)
    return MessageResponse(message="Customer deactivated successfully")

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_admin
from app.core.tenant_context import get_current_tenant, get_tenant_id
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.user import TenantUserCreate, TenantUserUpdate, UserResponse
from app.services.user import user_service

router = APIRouter(dependencies=[Depends(require_tenant_admin)])


@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """
    List the dashboard users (admins and staff) of your store.

    Args:
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)

    Returns:
        Users with role tenant_admin or tenant_staff
    """
    return user_service.list_tenant_users(db, _tenant_id)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: TenantUserCreate,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    try:
        logger.info(f"Creating tenant user: email={user_data.email}, tenant_id={tenant.id}")
        result = user_service.create_tenant_user(db, tenant, user_data)
        logger.info(f"Tenant user created successfully: id={result.id}")
        return result
    except Exception as e:
        logger.error(f"Error creating tenant user: {type(e).__name__}: {str(e)}")
        raise


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return user_service.get_tenant_user(db, user_id, _tenant_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: TenantUserUpdate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return user_service.update_tenant_user(db, user_id, _tenant_id, user_data)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    current_user: User = Depends(require_tenant_admin)
):
    """You cannot delete your own account."""
    user_service.delete_tenant_user(db, user_id, _tenant_id, current_user)
    return MessageResponse(message="User deleted successfully")

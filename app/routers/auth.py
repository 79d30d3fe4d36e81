from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_current_user
from app.core.tenant_context import get_storefront_tenant
from app.core.logging_config import logger
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.user import LoginRequest, CustomerRegister, TokenResponse, UserResponse
from app.services.user import user_service, issue_token

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Exchange email and password for a bearer token.

    Works for every role: the landlord, store staff and customers.

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        Access token and the user it belongs to

    Raises:
        HTTPException 401: If the credentials are wrong
        HTTPException 403: If the user is inactive
    """
    user = user_service.authenticate(db, credentials.email, credentials.password)
    logger.info(f"User logged in: id={user.id}, role={user.role.value}")
    return TokenResponse(access_token=issue_token(user), user=user)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register_customer(
    data: CustomerRegister,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant)
):
    """
    Create a customer account on a storefront.

    The store is resolved from the request host or the X-Tenant-Subdomain header.
    """
    try:
        user = user_service.register_customer(db, tenant, data)
        return TokenResponse(access_token=issue_token(user), user=user)
    except Exception as e:
        logger.error(f"Error registering customer: tenant_id={tenant.id}, {type(e).__name__}: {str(e)}")
        raise

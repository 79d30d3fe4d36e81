from typing import Optional
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.crud.tenant import tenant as tenant_crud
from app.database import get_db
from app.dependencies import get_current_user, get_optional_user
from app.models.tenant import Tenant, TenantStatus
from app.models.user import User, UserRole


def get_tenant_id(current_user: User = Depends(get_current_user)) -> int:
    """
    FastAPI dependency that extracts tenant_id from the authenticated user.

    The tenant_id is then passed explicitly through service and CRUD layers.

    Raises:
        HTTPException 403: If the user belongs to no tenant (the landlord)
    """
    if current_user.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant context required"
        )
    return current_user.tenant_id


def get_current_tenant(
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db)
) -> Tenant:
    """Load the authenticated user's tenant."""
    tenant = tenant_crud.get(db, tenant_id)
    if not tenant or tenant.status == TenantStatus.deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found"
        )
    return tenant


def _subdomain_from_host(host: Optional[str]) -> Optional[str]:
    if not host:
        return None
    hostname = host.split(":")[0].lower()
    suffix = f".{settings.ROOT_DOMAIN}"
    if hostname.endswith(suffix):
        return hostname[: -len(suffix)] or None
    return None


def get_storefront_tenant(
    request: Request,
    x_tenant_subdomain: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> Tenant:
    """
    Resolve the store a storefront request is aimed at.

    Lookup order: the X-Tenant-Subdomain header, the subdomain of the Host
    header under ROOT_DOMAIN, then the Host as a custom domain.

    Raises:
        HTTPException 404: If no live store matches
        HTTPException 403: If the store is suspended
    """
    host = request.headers.get("host")
    subdomain = x_tenant_subdomain or _subdomain_from_host(host)

    tenant = None
    if subdomain:
        tenant = tenant_crud.get_by_subdomain(db, subdomain.strip().lower())
    elif host:
        tenant = tenant_crud.get_by_custom_domain(db, host.split(":")[0].lower())

    if not tenant or tenant.status == TenantStatus.deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Store not found"
        )
    if tenant.status == TenantStatus.suspended:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Store is suspended"
        )
    return tenant


def get_storefront_user(
    tenant: Tenant = Depends(get_storefront_tenant),
    current_user: Optional[User] = Depends(get_optional_user)
) -> Optional[User]:
    """The signed-in shopper, if any. Tokens from other stores are refused."""
    if current_user is None:
        return None
    if current_user.role != UserRole.landlord and current_user.tenant_id != tenant.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not belong to this store"
        )
    return current_user


def require_storefront_user(
    current_user: Optional[User] = Depends(get_storefront_user)
) -> User:
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user

from typing import Callable, Dict, FrozenSet
from fastapi import Depends, HTTPException, status
from app.models.user import User, UserRole
from app.dependencies import get_current_user

_CRUD = ("create", "read", "update", "delete")


def _all(resource: str) -> set:
    return {f"{resource}.{action}" for action in _CRUD}


ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.landlord: frozenset(
        _all("products") | _all("orders") | _all("customers") | _all("users") | _all("tenants")
        | {"settings.read", "settings.update", "analytics.read"}
    ),
    UserRole.tenant_admin: frozenset(
        _all("products") | _all("orders") | _all("customers") | _all("users")
        | {"settings.read", "settings.update", "analytics.read"}
    ),
    UserRole.tenant_staff: frozenset({
        "products.read", "products.update",
        "orders.read", "orders.update",
        "customers.read", "customers.update",
        "settings.read",
    }),
    UserRole.customer: frozenset({"products.read", "orders.create", "orders.read"}),
}


def has_permission(role: UserRole, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """
    Build a dependency that only lets the given roles through.

    Usage:
        current_user: User = Depends(require_roles(UserRole.tenant_admin))
    """
    allowed = set(roles)

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user

    return dependency


def require_permission(permission: str) -> Callable[..., User]:
    """Dependency that checks a single permission against ROLE_PERMISSIONS."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}"
            )
        return current_user

    return dependency


require_landlord = require_roles(UserRole.landlord)
require_tenant_admin = require_roles(UserRole.tenant_admin)
require_tenant_member = require_roles(UserRole.tenant_admin, UserRole.tenant_staff)

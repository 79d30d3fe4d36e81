from typing import List
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.core.security import verify_password, create_access_token
from app.crud.user import user as user_crud
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.schemas.user import CustomerRegister, TenantUserCreate, TenantUserUpdate
from app.services.plan_limits import plan_limit_service

STAFF_ROLES = [UserRole.tenant_admin, UserRole.tenant_staff]


def issue_token(user: User) -> str:
    return create_access_token(
        data={
            "id": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "tenant_id": user.tenant_id,
        }
    )


class UserService:
    """Authentication and management of dashboard users and customers."""

    def __init__(self):
        self.crud = user_crud

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            HTTPException 401: Unknown email or wrong password
            HTTPException 403: Inactive user
        """
        user = self.crud.get_by_email(db, email=email)

        if not user or not verify_password(password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Inactive user"
            )

        return user

    def register_customer(self, db: Session, tenant: Tenant, data: CustomerRegister) -> User:
        if self.crud.get_by_email(db, data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        if tenant.plan_id:
            plan_limit_service.check_can_add_customer(db, tenant)

        try:
            user = self.crud.create(
                db,
                email=data.email,
                password=data.password,
                name=data.name,
                role=UserRole.customer,
                tenant_id=tenant.id,
            )
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        logger.info(f"Customer registered: id={user.id}, tenant_id={tenant.id}")
        return user

    def get_tenant_user(self, db: Session, user_id: int, tenant_id: int) -> User:
        user = self.crud.get_for_tenant(db, user_id, tenant_id)
        if not user or user.role not in STAFF_ROLES:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return user

    def list_tenant_users(self, db: Session, tenant_id: int) -> List[User]:
        return self.crud.get_by_tenant(db, tenant_id, roles=STAFF_ROLES)

    def create_tenant_user(self, db: Session, tenant: Tenant, data: TenantUserCreate) -> User:
        """
        Add a dashboard user to a store.

        Raises:
            HTTPException 403: Staff limit of the plan reached
            HTTPException 409: Email already registered
        """
        if self.crud.get_by_email(db, data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        if tenant.plan_id:
            plan_limit_service.check_can_add_staff(db, tenant)

        try:
            user = self.crud.create(
                db,
                email=data.email,
                password=data.password,
                name=data.name,
                role=UserRole(data.role),
                tenant_id=tenant.id,
            )
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        logger.info(f"Tenant user created: id={user.id}, tenant_id={tenant.id}, role={user.role.value}")
        return user

    def update_tenant_user(self, db: Session, user_id: int, tenant_id: int, data: TenantUserUpdate) -> User:
        user = self.get_tenant_user(db, user_id, tenant_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "role" in fields:
            fields["role"] = UserRole(fields["role"])
        return self.crud.update(db, db_obj=user, fields=fields)

    def delete_tenant_user(self, db: Session, user_id: int, tenant_id: int, current_user: User) -> None:
        if user_id == current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete your own account"
            )
        user = self.get_tenant_user(db, user_id, tenant_id)
        self.crud.delete(db, db_obj=user)
        logger.info(f"Tenant user deleted: id={user_id}, tenant_id={tenant_id}")


# Create a singleton instance
user_service = UserService()

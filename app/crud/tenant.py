from datetime import datetime
from typing import Tuple, Optional, List
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, func
from app.models.tenant import Tenant, TenantStatus
from app.models.user import User, UserRole
from app.crud.user import user as user_crud


class CRUDTenant:
    """
    CRUD operations for Tenant model.

    Note: Tenant model doesn't have tenant_id (it IS the tenant),
    so we don't inherit from CRUDBase.
    """

    def __init__(self):
        self.model = Tenant

    def get(self, db: Session, tenant_id: int) -> Optional[Tenant]:
        return db.execute(select(Tenant).where(Tenant.id == tenant_id)).scalar_one_or_none()

    def get_by_subdomain(self, db: Session, subdomain: str) -> Optional[Tenant]:
        return db.execute(select(Tenant).where(Tenant.subdomain == subdomain)).scalar_one_or_none()

    def get_by_custom_domain(self, db: Session, domain: str) -> Optional[Tenant]:
        stmt = select(Tenant).where(func.lower(Tenant.custom_domain) == domain.lower())
        return db.execute(stmt).scalar_one_or_none()

    def subdomain_taken(self, db: Session, subdomain: str, exclude_id: Optional[int] = None) -> bool:
        """
        Whether any tenant already holds this subdomain.

        Deleted tenants keep theirs, so they count as well.
        """
        stmt = select(Tenant.id).where(Tenant.subdomain == subdomain)
        if exclude_id is not None:
            stmt = stmt.where(Tenant.id != exclude_id)
        return db.execute(stmt).first() is not None

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[Tenant]:
        stmt = (
            select(Tenant)
            .order_by(Tenant.created_at.desc(), Tenant.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all())

    def get_expired(self, db: Session, now: datetime) -> List[Tenant]:
        """Tenants on a plan whose expire_date has passed, deleted ones excluded."""
        stmt = select(Tenant).where(
            Tenant.expire_date <= now,
            Tenant.status != TenantStatus.deleted,
            Tenant.plan_id.is_not(None)
        )
        return list(db.execute(stmt).scalars().all())

    def get_expiring_between(self, db: Session, start: datetime, end: datetime) -> List[Tenant]:
        stmt = select(Tenant).where(
            Tenant.expire_date >= start,
            Tenant.expire_date <= end,
            Tenant.status.in_([TenantStatus.active, TenantStatus.expired]),
            Tenant.plan_id.is_not(None)
        )
        return list(db.execute(stmt).scalars().all())

    def create_with_user(
        self,
        db: Session,
        *,
        name: str,
        subdomain: str,
        contact_email: Optional[str],
        admin_email: str,
        admin_password: str,
        admin_name: Optional[str],
        plan_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        expire_date: Optional[datetime] = None
    ) -> Tuple[Tenant, User]:
        """
        Create a tenant and its tenant_admin user atomically.

        Returns:
            Tuple of (created Tenant, created User)

        Raises:
            ValueError: If the admin email or the subdomain is already taken
        """
        try:
            tenant = Tenant(
                name=name,
                subdomain=subdomain,
                contact_email=contact_email,
                status=TenantStatus.active,
                plan_id=plan_id,
                start_date=start_date,
                expire_date=expire_date,
                settings={"theme": "light"},
            )
            db.add(tenant)
            db.flush()  # Get tenant.id without committing

            user = user_crud.create(
                db=db,
                email=admin_email,
                password=admin_password,
                name=admin_name,
                role=UserRole.tenant_admin,
                tenant_id=tenant.id,
                commit=False  # Commit tenant and user together
            )

            db.commit()
            db.refresh(tenant)
            db.refresh(user)

            return tenant, user

        except IntegrityError as e:
            db.rollback()
            if "subdomain" in str(e).lower():
                raise ValueError(f"Subdomain {subdomain} is already taken")
            if "email" in str(e).lower() or "unique" in str(e).lower():
                raise ValueError(f"User with email {admin_email} already exists")
            raise e

    def update(self, db: Session, *, db_obj: Tenant, fields: dict, commit: bool = True) -> Tenant:
        for field, value in fields.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        if commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj


# Create singleton instance
tenant = CRUDTenant()

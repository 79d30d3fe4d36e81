from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, func, or_
from app.models.user import User, UserRole
from app.core.security import get_password_hash

CUSTOMER_SORT_FIELDS = {
    "created_at": User.created_at,
    "name": User.name,
    "email": User.email,
}


class CRUDUser:
    """
    CRUD operations for User model.

    Note: While User model has tenant_id, we don't inherit from CRUDBase
    because login and the landlord need global lookups, and landlord users
    have no tenant at all.
    """

    def __init__(self):
        self.model = User

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return db.execute(stmt).scalar_one_or_none()

    def get(self, db: Session, user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return db.execute(stmt).scalar_one_or_none()

    def get_for_tenant(self, db: Session, user_id: int, tenant_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id, User.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one_or_none()

    def get_by_tenant(
        self,
        db: Session,
        tenant_id: int,
        roles: Optional[List[UserRole]] = None
    ) -> List[User]:
        """Users of a tenant, newest first, optionally limited to some roles."""
        stmt = select(User).where(User.tenant_id == tenant_id)
        if roles:
            stmt = stmt.where(User.role.in_(roles))
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
        return list(db.execute(stmt).scalars().all())

    def count_by_role(self, db: Session, tenant_id: int, roles: List[UserRole]) -> int:
        stmt = select(func.count()).select_from(User).where(
            User.tenant_id == tenant_id,
            User.role.in_(roles)
        )
        return db.execute(stmt).scalar_one()

    def search_customers(
        self,
        db: Session,
        *,
        tenant_id: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[User], int]:
        """Customers of a tenant and their total count. Without a limit every match is returned."""
        conditions = [User.tenant_id == tenant_id, User.role == UserRole.customer]
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if is_active is not None:
            conditions.append(User.is_active == is_active)

        column = CUSTOMER_SORT_FIELDS.get(sort_by, User.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()

        total = db.execute(select(func.count()).select_from(User).where(*conditions)).scalar_one()
        stmt = select(User).where(*conditions).order_by(ordering, User.id.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).scalars().all()), total

    def create(
        self,
        db: Session,
        *,
        email: str,
        password: str,
        tenant_id: Optional[int],
        role: UserRole = UserRole.customer,
        name: Optional[str] = None,
        is_active: bool = True,
        commit: bool = True
    ) -> User:
        """
        Create a new user with hashed password.

        Args:
            db: Database session
            email: User email (stored lowercased)
            password: Plain text password (will be hashed)
            tenant_id: Tenant the user belongs to, None for the landlord
            role: User role
            name: Display name
            is_active: Whether user is active
            commit: Whether to commit immediately

        Returns:
            Created User instance

        Raises:
            ValueError: If a user with this email already exists
        """
        db_user = User(
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            name=name,
            role=role,
            tenant_id=tenant_id,
            is_active=is_active
        )
        db.add(db_user)

        try:
            if commit:
                db.commit()
                db.refresh(db_user)
            else:
                db.flush()  # Get ID without committing
        except IntegrityError as e:
            db.rollback()
            if "unique" in str(e).lower() or "user_email_key" in str(e):
                raise ValueError(f"User with email {email} already exists")
            raise e

        return db_user

    def update(self, db: Session, *, db_obj: User, fields: dict) -> User:
        for field, value in fields.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: User) -> None:
        db.delete(db_obj)
        db.commit()


# Create singleton instance
user = CRUDUser()

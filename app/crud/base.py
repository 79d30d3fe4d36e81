from typing import Generic, TypeVar, Type, Optional, List, Any, Dict
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from pydantic import BaseModel
from app.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Generic CRUD class with tenant isolation via explicit tenant_id.

    Every read filters on tenant_id, which is always passed explicitly from
    the router layer. Writes take a ``commit`` flag so services can group
    several writes into one transaction and commit once.

    Type Parameters:
        ModelType: SQLAlchemy model class
        CreateSchemaType: Pydantic schema for creating records
        UpdateSchemaType: Pydantic schema for updating records
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: int, tenant_id: int) -> Optional[ModelType]:
        """
        Retrieve a single record by ID with tenant filtering.

        Returns:
            Model instance or None if not found or doesn't belong to tenant
        """
        stmt = select(self.model).where(
            self.model.id == id,
            self.model.tenant_id == tenant_id
        )
        return db.execute(stmt).scalar_one_or_none()

    def get_multi(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        tenant_id: int
    ) -> List[ModelType]:
        """Retrieve records for a tenant, newest first."""
        stmt = (
            select(self.model)
            .where(self.model.tenant_id == tenant_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all())

    def count(self, db: Session, *, tenant_id: int) -> int:
        stmt = select(func.count()).select_from(self.model).where(self.model.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one()

    def create(
        self,
        db: Session,
        *,
        obj_in: CreateSchemaType | Dict[str, Any],
        tenant_id: int,
        commit: bool = True
    ) -> ModelType:
        """
        Create a new record with tenant association.

        Args:
            db: Database session
            obj_in: Pydantic schema or dict with creation data
            tenant_id: Tenant ID for isolation
            commit: Commit immediately, or only flush to get the ID

        Returns:
            Created model instance
        """
        obj_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        db_obj = self.model(tenant_id=tenant_id, **obj_data)
        db.add(db_obj)
        self._save(db, db_obj, commit)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | Dict[str, Any],
        commit: bool = True
    ) -> ModelType:
        """
        Update an existing record.

        Note: This method assumes the db_obj was already retrieved using
        get() or similar method, which ensures tenant isolation.
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        self._save(db, db_obj, commit)
        return db_obj

    def delete(self, db: Session, *, id: int, tenant_id: int) -> Optional[ModelType]:
        """Hard delete a record by ID with tenant filtering."""
        obj = self.get(db=db, id=id, tenant_id=tenant_id)
        if obj:
            db.delete(obj)
            db.commit()
        return obj

    @staticmethod
    def _save(db: Session, db_obj: ModelType, commit: bool) -> None:
        if commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()

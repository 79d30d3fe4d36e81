from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.models.price_plan import PricePlan, PlanStatus
from app.schemas.price_plan import PricePlanCreate, PricePlanUpdate


class CRUDPricePlan:
    """
    CRUD operations for PricePlan model.

    Plans are global to the platform, so there is no tenant filter.
    """

    def __init__(self):
        self.model = PricePlan

    def get(self, db: Session, plan_id: int) -> Optional[PricePlan]:
        return db.execute(select(PricePlan).where(PricePlan.id == plan_id)).scalar_one_or_none()

    def get_multi(self, db: Session, *, active_only: bool = True) -> List[PricePlan]:
        """Plans ordered by price, cheapest first."""
        stmt = select(PricePlan)
        if active_only:
            stmt = stmt.where(PricePlan.status == PlanStatus.active)
        stmt = stmt.order_by(PricePlan.price.asc(), PricePlan.id.asc())
        return list(db.execute(stmt).scalars().all())

    def create(self, db: Session, *, obj_in: PricePlanCreate) -> PricePlan:
        db_obj = PricePlan(**obj_in.model_dump())
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: PricePlan, obj_in: PricePlanUpdate | dict) -> PricePlan:
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj


# Create singleton instance
price_plan = CRUDPricePlan()

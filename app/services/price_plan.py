from typing import List
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.crud.price_plan import price_plan as price_plan_crud
from app.models.price_plan import PricePlan, PlanStatus
from app.schemas.price_plan import PricePlanCreate, PricePlanUpdate
from app.core.logging_config import logger


class PricePlanService:
    """Landlord management of subscription tiers."""

    def __init__(self):
        self.crud = price_plan_crud

    def get_plan(self, db: Session, plan_id: int) -> PricePlan:
        plan = self.crud.get(db, plan_id)
        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Price plan not found"
            )
        return plan

    def get_active_plan(self, db: Session, plan_id: int) -> PricePlan:
        """
        Fetch a plan a tenant may subscribe to.

        Raises:
            HTTPException 404: If the plan does not exist
            HTTPException 400: If the plan is inactive
        """
        plan = self.get_plan(db, plan_id)
        if plan.status != PlanStatus.active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Price plan is not active"
            )
        return plan

    def list_plans(self, db: Session, active_only: bool = True) -> List[PricePlan]:
        return self.crud.get_multi(db, active_only=active_only)

    def create_plan(self, db: Session, plan_data: PricePlanCreate) -> PricePlan:
        plan = self.crud.create(db, obj_in=plan_data)
        logger.info(f"Price plan created: id={plan.id}, name={plan.name}, price={plan.price}")
        return plan

    def update_plan(self, db: Session, plan_id: int, plan_data: PricePlanUpdate) -> PricePlan:
        plan = self.get_plan(db, plan_id)
        return self.crud.update(db, db_obj=plan, obj_in=plan_data)

    def deactivate_plan(self, db: Session, plan_id: int) -> PricePlan:
        """Plans are never deleted since tenants may still reference them."""
        plan = self.get_plan(db, plan_id)
        logger.info(f"Deactivating price plan: id={plan_id}")
        return self.crud.update(db, db_obj=plan, obj_in={"status": PlanStatus.inactive})


# Create a singleton instance
price_plan_service = PricePlanService()

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.price_plan import PricePlanResponse
from app.services.price_plan import price_plan_service

router = APIRouter()


@router.get("", response_model=List[PricePlanResponse])
def list_public_plans(db: Session = Depends(get_db)):
    """Active plans, cheapest first. No authentication."""
    return price_plan_service.list_plans(db, active_only=True)

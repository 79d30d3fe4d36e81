from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from app.models.price_plan import PlanStatus


class PricePlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., gt=0)
    duration_months: int = Field(..., gt=0)
    trial_days: int = Field(0, ge=0)
    # max_products, max_orders, max_customers, max_staff_users; -1 means unlimited
    features: Dict[str, Any] = Field(default_factory=dict)
    status: PlanStatus = PlanStatus.active


class PricePlanCreate(PricePlanBase):
    pass


class PricePlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, gt=0)
    duration_months: Optional[int] = Field(None, gt=0)
    trial_days: Optional[int] = Field(None, ge=0)
    features: Optional[Dict[str, Any]] = None
    status: Optional[PlanStatus] = None


class PricePlanResponse(PricePlanBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True

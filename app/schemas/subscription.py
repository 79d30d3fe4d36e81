from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel
from app.models.tenant import TenantStatus
from app.schemas.price_plan import PricePlanResponse


class ActivateSubscriptionRequest(BaseModel):
    plan_id: int


class SubscriptionTenant(BaseModel):
    id: int
    plan_id: Optional[int] = None
    expire_date: Optional[datetime] = None
    status: TenantStatus

    class Config:
        from_attributes = True


class ActivateSubscriptionResponse(BaseModel):
    message: str
    tenant: SubscriptionTenant
    plan: PricePlanResponse


class UsageMetric(BaseModel):
    used: int
    limit: Optional[int] = None  # None means unlimited


class BillingResponse(BaseModel):
    plan: Optional[PricePlanResponse] = None
    status: TenantStatus
    start_date: Optional[datetime] = None
    expire_date: Optional[datetime] = None
    days_remaining: Optional[int] = None
    usage: Dict[str, UsageMetric]


class ExpiryCheckResults(BaseModel):
    checked: int = 0
    expired: int = 0
    grace_period: int = 0
    suspended: int = 0
    errors: List[str] = []


class ExpiryCheckResponse(BaseModel):
    message: str
    results: ExpiryCheckResults
    timestamp: datetime


class ReminderResults(BaseModel):
    checked: int = 0
    renewal_reminders_sent: int = 0
    payment_reminders_sent: int = 0
    errors: List[str] = []


class ReminderResponse(BaseModel):
    message: str
    results: ReminderResults
    timestamp: datetime

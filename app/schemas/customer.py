from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from app.schemas.common import Pagination

CustomerSortField = Literal["created_at", "name", "email"]


class CustomerStats(BaseModel):
    orders: int = 0
    total_spent: float = 0.0
    support_tickets: Optional[int] = None


class CustomerResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    stats: CustomerStats


class CustomerListResponse(BaseModel):
    customers: List[CustomerResponse]
    pagination: Pagination


class CustomerUpdate(BaseModel):
    """The email is the login and cannot be changed here."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_active: Optional[bool] = None

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, HttpUrl
from app.models.support_ticket import TicketStatus, TicketPriority
from app.models.landlord_support_ticket import TicketCategory
from app.schemas.common import Pagination

SortField = Literal["created_at", "updated_at", "priority", "status"]


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    priority: TicketPriority = TicketPriority.medium


class TicketUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None


class LandlordTicketCreate(TicketCreate):
    category: TicketCategory = TicketCategory.other


class LandlordTicketUpdate(TicketUpdate):
    category: Optional[TicketCategory] = None


class MessageCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
    attachments: List[HttpUrl] = Field(default_factory=list)


class TicketMessageResponse(BaseModel):
    id: int
    ticket_id: int
    user_id: Optional[int] = None
    message: str
    attachments: Optional[List[str]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SupportMessageResponse(TicketMessageResponse):
    is_staff: bool


class LandlordMessageResponse(TicketMessageResponse):
    is_landlord: bool


class TicketResponse(BaseModel):
    id: int
    tenant_id: int
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SupportTicketResponse(TicketResponse):
    user_id: Optional[int] = None
    messages: List[SupportMessageResponse] = []


class LandlordTicketResponse(TicketResponse):
    created_by: Optional[int] = None
    category: TicketCategory
    messages: List[LandlordMessageResponse] = []


class SupportTicketListResponse(BaseModel):
    success: bool = True
    tickets: List[SupportTicketResponse]
    pagination: Pagination


class LandlordTicketListResponse(BaseModel):
    success: bool = True
    tickets: List[LandlordTicketResponse]
    pagination: Pagination

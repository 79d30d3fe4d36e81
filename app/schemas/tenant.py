from datetime import datetime
from typing import Optional, Dict, Any, Literal
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.tenant import TenantStatus
from app.schemas.user import UserResponse


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    subdomain: str
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=8)
    admin_name: str = Field(..., min_length=1, max_length=255)
    contact_email: EmailStr
    plan_id: Optional[int] = None

    @field_validator("subdomain")
    @classmethod
    def normalize_subdomain(cls, v: str) -> str:
        return v.strip().lower()


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    custom_domain: Optional[str] = None
    # "deleted" only happens through DELETE
    status: Optional[Literal["active", "suspended", "expired"]] = None
    plan_id: Optional[int] = None
    expire_date: Optional[datetime] = None


class SubdomainChange(BaseModel):
    subdomain: str


class TenantResponse(BaseModel):
    id: int
    name: str
    subdomain: str
    custom_domain: Optional[str] = None
    contact_email: Optional[str] = None
    status: TenantStatus
    plan_id: Optional[int] = None
    start_date: Optional[datetime] = None
    expire_date: Optional[datetime] = None
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TenantCreateResponse(BaseModel):
    tenant: TenantResponse
    admin_user: UserResponse


class SubdomainChangeResponse(BaseModel):
    message: str
    tenant: TenantResponse
    old_subdomain: str

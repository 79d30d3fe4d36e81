from typing import Optional, Dict, Any
from pydantic import BaseModel, field_validator


class DomainRequest(BaseModel):
    domain: str

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, v: str) -> str:
        return v.strip().lower()


class DomainVerification(BaseModel):
    verified: bool
    verification: Optional[Any] = None
    configuration_issue: Optional[Any] = None
    reason: Optional[str] = None


class DomainInfoResponse(BaseModel):
    domain: Optional[str] = None
    verified: bool = False
    info: Optional[Dict[str, Any]] = None
    verification: Optional[DomainVerification] = None
    dns_config: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class DomainMutationResponse(BaseModel):
    message: str
    domain: str
    vercel: Optional[Dict[str, Any]] = None

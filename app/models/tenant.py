import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin, JSONType

class TenantStatus(str, enum.Enum):
    active = "active"
    expired = "expired"
    suspended = "suspended"
    deleted = "deleted"

class Tenant(Base, TimestampMixin):
    __tablename__ = "tenant"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    subdomain = Column(String(63), unique=True, index=True, nullable=False)
    custom_domain = Column(String(255), unique=True, nullable=True)
    contact_email = Column(String(255), nullable=True)
    status = Column(Enum(TenantStatus), nullable=False, default=TenantStatus.active)
    plan_id = Column(Integer, ForeignKey("price_plan.id", ondelete="SET NULL"), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    expire_date = Column(DateTime(timezone=True), nullable=True)
    settings = Column(JSONType, nullable=True, default=dict)

    users = relationship("User", back_populates="tenant")
    plan = relationship("PricePlan")

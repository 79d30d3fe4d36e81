import enum
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin

class UserRole(str, enum.Enum):
    landlord = "landlord"
    tenant_admin = "tenant_admin"
    tenant_staff = "tenant_staff"
    customer = "customer"

class User(Base, TimestampMixin):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.customer)
    # Null for the landlord, who belongs to no tenant
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=True)
    is_active = Column(Boolean, default=True)

    tenant = relationship("Tenant", back_populates="users")

import enum
from sqlalchemy import Column, Integer, String, Numeric, Enum
from app.database import Base, TimestampMixin, JSONType

class PlanStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"

class PricePlan(Base, TimestampMixin):
    __tablename__ = "price_plan"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    duration_months = Column(Integer, nullable=False, default=1)
    trial_days = Column(Integer, nullable=False, default=0)
    features = Column(JSONType, nullable=True, default=dict)  # limits such as max_products
    status = Column(Enum(PlanStatus), nullable=False, default=PlanStatus.active)

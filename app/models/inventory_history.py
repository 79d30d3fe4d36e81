import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin

class AdjustmentType(str, enum.Enum):
    increase = "increase"
    decrease = "decrease"
    set = "set"
    sale = "sale"
    return_ = "return"
    damage = "damage"
    transfer = "transfer"

class InventoryHistory(Base, TimestampMixin):
    __tablename__ = "inventory_history"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("product.id", ondelete="SET NULL"), nullable=True, index=True)
    variant_id = Column(Integer, ForeignKey("product_variant.id", ondelete="SET NULL"), nullable=True, index=True)
    adjustment_type = Column(
        Enum(AdjustmentType, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
    )
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    quantity_change = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    adjusted_by = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    product = relationship("Product")
    variant = relationship("ProductVariant")

import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin

class ProductStatus(str, enum.Enum):
    active = "active"
    draft = "draft"
    archived = "archived"

class Product(Base, TimestampMixin):
    __tablename__ = "product"
    __table_args__ = (UniqueConstraint("tenant_id", "sku", name="uq_product_tenant_sku"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True)
    sku = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    sale_price = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    stock_quantity = Column(Integer, nullable=True, default=0)
    image_url = Column(String, nullable=True)
    status = Column(Enum(ProductStatus), nullable=False, default=ProductStatus.active)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )

    @property
    def effective_price(self) -> float:
        return self.sale_price or self.price

class ProductVariant(Base, TimestampMixin):
    __tablename__ = "product_variant"
    __table_args__ = (UniqueConstraint("tenant_id", "sku", name="uq_variant_tenant_sku"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    sku = Column(String(100), nullable=True)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=True)  # falls back to the product price
    stock_quantity = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")

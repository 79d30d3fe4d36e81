from typing import Optional, List, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func, or_
from app.crud.base import CRUDBase
from app.models.product import Product, ProductVariant, ProductStatus
from app.schemas.product import ProductCreate, ProductUpdate, VariantCreate, VariantUpdate


class CRUDProduct(CRUDBase[Product, ProductCreate, ProductUpdate]):
    """
    CRUD operations for Product model.

    Variants are loaded eagerly since stock and pricing depend on them.
    """

    def get(self, db: Session, id: int, tenant_id: int) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(Product.id == id, Product.tenant_id == tenant_id)
            .options(selectinload(Product.variants))
        )
        return db.execute(stmt).scalar_one_or_none()

    def get_by_sku(self, db: Session, sku: str, tenant_id: int) -> Optional[Product]:
        stmt = select(Product).where(Product.sku == sku, Product.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one_or_none()

    def get_filtered(
        self,
        db: Session,
        *,
        tenant_id: int,
        search: Optional[str] = None,
        status: Optional[ProductStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Product], int]:
        """Products matching the filters, newest first, plus the total count."""
        conditions = [Product.tenant_id == tenant_id]
        if status:
            conditions.append(Product.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))

        total = db.execute(select(func.count()).select_from(Product).where(*conditions)).scalar_one()
        stmt = (
            select(Product)
            .where(*conditions)
            .options(selectinload(Product.variants))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all()), total

    def get_all_with_variants(self, db: Session, tenant_id: Optional[int] = None) -> List[Product]:
        """Products that own at least one variant, across tenants when tenant_id is None."""
        stmt = select(Product).where(Product.variants.any()).options(selectinload(Product.variants))
        if tenant_id is not None:
            stmt = stmt.where(Product.tenant_id == tenant_id)
        return list(db.execute(stmt).scalars().all())

    def get_low_stock(self, db: Session, tenant_id: int, threshold: int) -> List[Product]:
        """Variant-less, stock-tracked products at or under the threshold."""
        stmt = (
            select(Product)
            .where(
                Product.tenant_id == tenant_id,
                ~Product.variants.any(),
                Product.stock_quantity.is_not(None),
                Product.stock_quantity <= threshold,
            )
            .order_by(Product.stock_quantity.asc())
        )
        return list(db.execute(stmt).scalars().all())


class CRUDProductVariant(CRUDBase[ProductVariant, VariantCreate, VariantUpdate]):
    """CRUD operations for ProductVariant model."""

    def get_by_sku(self, db: Session, sku: str, tenant_id: int) -> Optional[ProductVariant]:
        stmt = select(ProductVariant).where(ProductVariant.sku == sku, ProductVariant.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one_or_none()

    def get_for_product(self, db: Session, product_id: int, tenant_id: int) -> List[ProductVariant]:
        stmt = select(ProductVariant).where(
            ProductVariant.product_id == product_id,
            ProductVariant.tenant_id == tenant_id
        ).order_by(ProductVariant.id)
        return list(db.execute(stmt).scalars().all())

    def get_low_stock(self, db: Session, tenant_id: int, threshold: int) -> List[ProductVariant]:
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.tenant_id == tenant_id, ProductVariant.stock_quantity <= threshold)
            .options(selectinload(ProductVariant.product))
            .order_by(ProductVariant.stock_quantity.asc())
        )
        return list(db.execute(stmt).scalars().all())


# Create singleton instances
product = CRUDProduct(Product)
product_variant = CRUDProductVariant(ProductVariant)

from typing import Dict, Optional
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.crud.product import product as product_crud, product_variant as variant_crud
from app.models.product import Product, ProductStatus, ProductVariant
from app.models.tenant import Tenant
from app.schemas.common import Pagination
from app.schemas.product import ProductCreate, ProductUpdate, VariantCreate, VariantUpdate
from app.services.inventory import inventory_service
from app.services.plan_limits import plan_limit_service


class ProductService:
    """
    Service layer for the product catalogue.

    Variant writes keep the parent's stock_quantity equal to the sum of its
    variants.
    """

    def __init__(self):
        self.crud = product_crud
        self.variant_crud = variant_crud

    def get_product(self, db: Session, product_id: int, tenant_id: int) -> Product:
        product = self.crud.get(db=db, id=product_id, tenant_id=tenant_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )
        return product

    def get_products(
        self,
        db: Session,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        product_status: Optional[ProductStatus] = None
    ) -> Dict:
        products, total = self.crud.get_filtered(
            db,
            tenant_id=tenant_id,
            search=search,
            status=product_status,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {"products": products, "pagination": Pagination.build(page, limit, total)}

    @staticmethod
    def _sku_conflict() -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="SKU already exists"
        )

    def create_product(self, db: Session, tenant: Tenant, product_data: ProductCreate) -> Product:
        """
        Create a product and any variants given inline.

        Raises:
            HTTPException 403: No plan or product limit reached
            HTTPException 409: Duplicate SKU
        """
        plan_limit_service.check_can_create_product(db, tenant)

        data = product_data.model_dump(exclude={"variants"})
        try:
            product = self.crud.create(db, obj_in=data, tenant_id=tenant.id, commit=False)
            for variant_data in product_data.variants:
                self.variant_crud.create(
                    db,
                    obj_in={"product_id": product.id, **variant_data.model_dump()},
                    tenant_id=tenant.id,
                    commit=False,
                )
            if product_data.variants:
                inventory_service.sync_product_stock(db, product.id)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise self._sku_conflict()

        logger.info(f"Product created: id={product.id}, tenant_id={tenant.id}, variants={len(product_data.variants)}")
        return self.get_product(db, product.id, tenant.id)

    def update_product(self, db: Session, product_id: int, tenant_id: int, product_data: ProductUpdate) -> Product:
        product = self.get_product(db, product_id, tenant_id)
        try:
            self.crud.update(db=db, db_obj=product, obj_in=product_data, commit=False)
            # Stock of a product with variants is derived, not edited
            if product.variants:
                inventory_service.sync_product_stock(db, product.id)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise self._sku_conflict()
        db.refresh(product)
        return product

    def delete_product(self, db: Session, product_id: int, tenant_id: int) -> None:
        deleted = self.crud.delete(db=db, id=product_id, tenant_id=tenant_id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )
        logger.info(f"Product deleted: id={product_id}, tenant_id={tenant_id}")

    def get_variant(self, db: Session, product_id: int, variant_id: int, tenant_id: int) -> ProductVariant:
        variant = self.variant_crud.get(db=db, id=variant_id, tenant_id=tenant_id)
        if not variant or variant.product_id != product_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Variant not found"
            )
        return variant

    def create_variant(self, db: Session, product_id: int, tenant_id: int, variant_data: VariantCreate) -> ProductVariant:
        self.get_product(db, product_id, tenant_id)
        try:
            variant = self.variant_crud.create(
                db,
                obj_in={"product_id": product_id, **variant_data.model_dump()},
                tenant_id=tenant_id,
                commit=False,
            )
            inventory_service.sync_product_stock(db, product_id)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise self._sku_conflict()
        db.refresh(variant)
        return variant

    def update_variant(
        self,
        db: Session,
        product_id: int,
        variant_id: int,
        tenant_id: int,
        variant_data: VariantUpdate
    ) -> ProductVariant:
        variant = self.get_variant(db, product_id, variant_id, tenant_id)
        try:
            self.variant_crud.update(db, db_obj=variant, obj_in=variant_data, commit=False)
            inventory_service.sync_product_stock(db, product_id)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise self._sku_conflict()
        db.refresh(variant)
        return variant

    def delete_variant(self, db: Session, product_id: int, variant_id: int, tenant_id: int) -> None:
        variant = self.get_variant(db, product_id, variant_id, tenant_id)
        db.delete(variant)
        inventory_service.sync_product_stock(db, product_id)
        db.commit()


# Create a singleton instance
product_service = ProductService()

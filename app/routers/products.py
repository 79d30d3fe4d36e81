from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_member
from app.core.tenant_context import get_current_tenant, get_tenant_id
from app.models.product import ProductStatus
from app.models.tenant import Tenant
from app.schemas.common import MessageResponse
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    VariantCreate,
    VariantUpdate,
    VariantResponse,
)
from app.services.product import product_service

router = APIRouter(dependencies=[Depends(require_tenant_member)])


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    """
    Create a new product, optionally with variants.

    Args:
        product_data: Product fields and inline variants
        db: Database session
        tenant: Current store (auto-set from JWT)

    Returns:
        Created product with its variants
    """
    try:
        logger.info(f"Creating product: name={product_data.name}, tenant_id={tenant.id}")
        result = product_service.create_product(db, tenant, product_data)
        logger.info(f"Product created successfully: id={result.id}")
        return result
    except Exception as e:
        logger.error(f"Error creating product: {type(e).__name__}: {str(e)}")
        raise


@router.get("", response_model=ProductListResponse)
def get_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return product_service.get_products(
        db, _tenant_id, page=page, limit=limit, search=search, product_status=status_filter
    )


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return product_service.get_product(db, product_id, _tenant_id)


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return product_service.update_product(db, product_id, _tenant_id, product_data)


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    product_service.delete_product(db, product_id, _tenant_id)
    return MessageResponse(message="Product deleted successfully")


# Variants

@router.post("/{product_id}/variants", response_model=VariantResponse, status_code=status.HTTP_201_CREATED)
def create_variant(
    product_id: int,
    variant_data: VariantCreate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """Add a variant. The product's stock becomes the sum of its variants."""
    return product_service.create_variant(db, product_id, _tenant_id, variant_data)


@router.patch("/{product_id}/variants/{variant_id}", response_model=VariantResponse)
def update_variant(
    product_id: int,
    variant_id: int,
    variant_data: VariantUpdate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return product_service.update_variant(db, product_id, variant_id, _tenant_id, variant_data)


@router.delete("/{product_id}/variants/{variant_id}", response_model=MessageResponse)
def delete_variant(
    product_id: int,
    variant_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    product_service.delete_variant(db, product_id, variant_id, _tenant_id)
    return MessageResponse(message="Variant deleted successfully")

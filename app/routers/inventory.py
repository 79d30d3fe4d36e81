from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_admin, require_tenant_member
from app.core.tenant_context import get_current_tenant, get_tenant_id
from app.models.inventory_history import AdjustmentType
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.inventory import (
    AdjustmentResult,
    BulkUpdateRequest,
    BulkUpdateResponse,
    InventoryAdjustRequest,
    InventoryAdjustResponse,
    InventoryHistoryListResponse,
    InventoryImportResponse,
    InventorySettings,
    LowStockResponse,
    SyncStockResponse,
)
from app.services.inventory import inventory_service, IMPORT_TEMPLATE_CSV

router = APIRouter()


@router.post("/adjust", response_model=InventoryAdjustResponse)
def adjust_inventory(
    data: InventoryAdjustRequest,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    current_user: User = Depends(require_tenant_member)
):
    """
    Adjust the stock of a single product or variant.

    Exactly one of product_id and variant_id must be given. The change is
    recorded in the inventory history.

    Args:
        data: Target, adjustment type, quantity and reason
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)
        current_user: The member making the adjustment

    Returns:
        Stock before and after the adjustment
    """
    try:
        entry = inventory_service.adjust(db, _tenant_id, current_user.id, data)
        return InventoryAdjustResponse(
            message="Inventory adjusted successfully",
            adjustment=AdjustmentResult(
                id=entry.id,
                quantity_before=entry.quantity_before,
                quantity_after=entry.quantity_after,
                quantity_change=entry.quantity_change,
            ),
        )
    except Exception as e:
        logger.error(f"Error adjusting inventory: {type(e).__name__}: {str(e)}")
        raise


@router.post("/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_inventory(
    data: BulkUpdateRequest,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    current_user: User = Depends(require_tenant_member)
):
    """
    Apply many adjustments at once.

    Items that fail are reported in ``errors``; the others are still applied.
    """
    return inventory_service.bulk_update(db, _tenant_id, current_user.id, data.updates)


@router.get("/history", response_model=InventoryHistoryListResponse, dependencies=[Depends(require_tenant_member)])
def get_inventory_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    product_id: Optional[int] = None,
    variant_id: Optional[int] = None,
    adjustment_type: Optional[AdjustmentType] = None,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    return inventory_service.get_history(
        db,
        _tenant_id,
        page=page,
        limit=limit,
        product_id=product_id,
        variant_id=variant_id,
        adjustment_type=adjustment_type,
    )


@router.get("/alerts", response_model=LowStockResponse, dependencies=[Depends(require_tenant_member)])
def get_low_stock_alerts(
    threshold: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    """Items at or below the threshold (the store setting unless one is passed)."""
    return inventory_service.get_low_stock(db, tenant, threshold)


@router.get("/settings", response_model=InventorySettings, dependencies=[Depends(require_tenant_member)])
def get_inventory_settings(tenant: Tenant = Depends(get_current_tenant)):
    return InventorySettings(low_stock_threshold=inventory_service.get_threshold(tenant))


@router.put("/settings", response_model=InventorySettings, dependencies=[Depends(require_tenant_admin)])
def update_inventory_settings(
    data: InventorySettings,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    threshold = inventory_service.set_threshold(db, tenant, data.low_stock_threshold)
    return InventorySettings(low_stock_threshold=threshold)


@router.post("/import", response_model=InventoryImportResponse)
async def import_inventory(
    file: UploadFile = File(...),
    apply: bool = Form(False),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    current_user: User = Depends(require_tenant_member)
):
    """
    Import adjustments from a CSV or Excel sheet.

    Without ``apply`` the parsed updates are only previewed. With ``apply``
    the valid rows are run as one bulk update.
    """
    df = await inventory_service.parse_import_file(file)
    updates, errors = inventory_service.build_import_updates(db, _tenant_id, df)

    result = None
    if apply and updates:
        result = inventory_service.bulk_update(db, _tenant_id, current_user.id, updates)
    logger.info(
        f"Inventory import: tenant_id={_tenant_id}, rows_ok={len(updates)}, "
        f"row_errors={len(errors)}, applied={bool(result)}"
    )
    return InventoryImportResponse(applied=result is not None, updates=updates, errors=errors, result=result)


@router.get("/import/template", dependencies=[Depends(require_tenant_member)])
def download_import_template():
    return Response(
        content=IMPORT_TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="inventory-import-template.csv"'},
    )


@router.post("/sync", response_model=SyncStockResponse, dependencies=[Depends(require_tenant_member)])
def sync_product_stocks(
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id)
):
    """Recompute the stock of this store's products from their variants."""
    synced = inventory_service.sync_all_product_stocks(db, tenant_id=_tenant_id)
    return SyncStockResponse(message=f"Synced {synced} products", synced=synced)

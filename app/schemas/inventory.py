from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from app.models.inventory_history import AdjustmentType
from app.schemas.common import Pagination


class InventoryAdjustRequest(BaseModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    adjustment_type: AdjustmentType
    quantity: int = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class AdjustmentResult(BaseModel):
    id: int
    quantity_before: int
    quantity_after: int
    quantity_change: int


class InventoryAdjustResponse(BaseModel):
    message: str
    adjustment: AdjustmentResult


class BulkUpdateItem(BaseModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    adjustment_type: Literal["increase", "decrease", "set"]
    quantity: int = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=255)


class BulkUpdateRequest(BaseModel):
    updates: List[BulkUpdateItem] = Field(..., min_length=1)


class BulkUpdateResult(BaseModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    adjustment_type: str
    quantity_before: int
    quantity_after: int
    quantity_change: int
    history_id: int


class BulkUpdateError(BaseModel):
    index: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    error: str


class BulkUpdateResponse(BaseModel):
    message: str
    results: List[BulkUpdateResult]
    errors: Optional[List[BulkUpdateError]] = None


class InventoryHistoryResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    adjustment_type: AdjustmentType
    quantity_before: int
    quantity_after: int
    quantity_change: int
    reason: Optional[str] = None
    notes: Optional[str] = None
    adjusted_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InventoryHistoryListResponse(BaseModel):
    history: List[InventoryHistoryResponse]
    pagination: Pagination


class LowStockItem(BaseModel):
    id: int
    type: Literal["product", "variant"]
    product_id: int
    name: str
    sku: Optional[str] = None
    stock_quantity: Optional[int] = None


class LowStockResponse(BaseModel):
    threshold: int
    items: List[LowStockItem]
    total: int


class InventorySettings(BaseModel):
    low_stock_threshold: int = Field(..., ge=0)


class ImportRowError(BaseModel):
    row: int
    error: str


class InventoryImportResponse(BaseModel):
    applied: bool
    updates: List[BulkUpdateItem]
    errors: List[ImportRowError]
    result: Optional[BulkUpdateResponse] = None


class SyncStockResponse(BaseModel):
    message: str
    synced: int

from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from app.crud.base import CRUDBase
from app.models.inventory_history import InventoryHistory, AdjustmentType
from pydantic import BaseModel


class CRUDInventoryHistory(CRUDBase[InventoryHistory, BaseModel, BaseModel]):
    """
    Append-only audit log of stock adjustments.

    Rows are written by the inventory service with commit=False so they land
    in the same transaction as the stock change they describe.
    """

    def get_filtered(
        self,
        db: Session,
        *,
        tenant_id: int,
        product_id: Optional[int] = None,
        variant_id: Optional[int] = None,
        adjustment_type: Optional[AdjustmentType] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[InventoryHistory], int]:
        conditions = [InventoryHistory.tenant_id == tenant_id]
        if product_id is not None:
            conditions.append(InventoryHistory.product_id == product_id)
        if variant_id is not None:
            conditions.append(InventoryHistory.variant_id == variant_id)
        if adjustment_type is not None:
            conditions.append(InventoryHistory.adjustment_type == adjustment_type)

        total = db.execute(
            select(func.count()).select_from(InventoryHistory).where(*conditions)
        ).scalar_one()
        stmt = (
            select(InventoryHistory)
            .where(*conditions)
            .order_by(InventoryHistory.created_at.desc(), InventoryHistory.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all()), total


# Create singleton instance
inventory_history = CRUDInventoryHistory(InventoryHistory)

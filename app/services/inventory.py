import io
from typing import Dict, List, Optional, Set, Tuple
import pandas as pd
from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import logger
from app.crud.inventory_history import inventory_history as history_crud
from app.crud.product import product as product_crud, product_variant as variant_crud
from app.crud.tenant import tenant as tenant_crud
from app.models.inventory_history import AdjustmentType, InventoryHistory
from app.models.product import Product, ProductVariant
from app.models.tenant import Tenant
from app.schemas.common import Pagination
from app.schemas.inventory import (
    BulkUpdateItem,
    BulkUpdateError,
    BulkUpdateResult,
    InventoryAdjustRequest,
    ImportRowError,
    LowStockItem,
)

INCREASING_TYPES = {AdjustmentType.increase, AdjustmentType.return_}

IMPORT_TEMPLATE_CSV = (
    "Type,SKU,Adjustment Type,Quantity,Reason\n"
    "product,PROD-001,increase,10,Restock from supplier\n"
    "variant,VAR-001,decrease,2,Damaged in storage\n"
    "product,PROD-002,set,50,Stock count\n"
)

IMPORT_ADJUSTMENT_ALIASES = {"increase": "increase", "decrease": "decrease", "set": "set", "reduce": "decrease"}


def apply_adjustment(before: Optional[int], adjustment_type: AdjustmentType, quantity: int) -> Tuple[int, int]:
    """
    Stock arithmetic for one adjustment.

    set replaces the level. increase and return add. Every other type
    removes stock, floored at zero, while the recorded change stays -quantity.

    Returns:
        (quantity_after, quantity_change)
    """
    before = before or 0
    if adjustment_type == AdjustmentType.set:
        return quantity, quantity - before
    if adjustment_type in INCREASING_TYPES:
        return before + quantity, quantity
    return max(0, before - quantity), -quantity


class InventoryService:
    """
    Stock adjustments with an audit trail.

    Every change to a product or variant stock level writes one
    InventoryHistory row in the same transaction. Products that have
    variants carry the sum of their variants' stock.
    """

    def sync_product_stock(self, db: Session, product_id: int) -> None:
        """
        Set a product's stock to the sum of its variants' stock.

        Products without variants are left untouched. Flushes but does not commit.
        """
        db.flush()
        total, count = db.execute(
            select(func.coalesce(func.sum(ProductVariant.stock_quantity), 0), func.count(ProductVariant.id))
            .where(ProductVariant.product_id == product_id)
        ).one()
        if not count:
            return
        product = db.get(Product, product_id)
        if product is not None:
            product.stock_quantity = int(total)
            db.flush()

    def sync_all_product_stocks(self, db: Session, tenant_id: Optional[int] = None) -> int:
        """Re-sync every product that has variants. Returns how many were synced."""
        products = product_crud.get_all_with_variants(db, tenant_id=tenant_id)
        for product in products:
            self.sync_product_stock(db, product.id)
        db.commit()
        logger.info(f"Synced product stock from variants: count={len(products)}, tenant_id={tenant_id}")
        return len(products)

    def _record(
        self,
        db: Session,
        *,
        tenant_id: int,
        user_id: Optional[int],
        target,
        is_variant: bool,
        adjustment_type: AdjustmentType,
        quantity: int,
        reason: Optional[str],
        notes: Optional[str] = None,
    ) -> InventoryHistory:
        before = target.stock_quantity or 0
        after, change = apply_adjustment(before, adjustment_type, quantity)
        target.stock_quantity = after

        return history_crud.create(
            db,
            obj_in={
                "product_id": target.product_id if is_variant else target.id,
                "variant_id": target.id if is_variant else None,
                "adjustment_type": adjustment_type,
                "quantity_before": before,
                "quantity_after": after,
                "quantity_change": change,
                "reason": reason,
                "notes": notes,
                "adjusted_by": user_id,
            },
            tenant_id=tenant_id,
            commit=False,
        )

    @staticmethod
    def _target_error(product_id: Optional[int], variant_id: Optional[int]) -> Optional[str]:
        if product_id is None and variant_id is None:
            return "Either product_id or variant_id must be provided"
        if product_id is not None and variant_id is not None:
            return "Provide either product_id or variant_id, not both"
        return None

    def adjust(
        self,
        db: Session,
        tenant_id: int,
        user_id: Optional[int],
        data: InventoryAdjustRequest
    ) -> InventoryHistory:
        """
        Adjust the stock of one product or variant.

        Raises:
            HTTPException 400: Neither or both targets given
            HTTPException 404: Target not found in this tenant
        """
        error = self._target_error(data.product_id, data.variant_id)
        if error:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error
            )

        if data.variant_id is not None:
            target = variant_crud.get(db, id=data.variant_id, tenant_id=tenant_id)
            if not target:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Variant not found"
                )
        else:
            target = product_crud.get(db, id=data.product_id, tenant_id=tenant_id)
            if not target:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Product not found"
                )

        is_variant = data.variant_id is not None
        entry = self._record(
            db,
            tenant_id=tenant_id,
            user_id=user_id,
            target=target,
            is_variant=is_variant,
            adjustment_type=data.adjustment_type,
            quantity=data.quantity,
            reason=data.reason,
            notes=data.notes,
        )
        if is_variant:
            self.sync_product_stock(db, target.product_id)

        db.commit()
        db.refresh(entry)
        logger.info(
            f"Inventory adjusted: tenant_id={tenant_id}, product_id={entry.product_id}, "
            f"variant_id={entry.variant_id}, type={entry.adjustment_type.value}, "
            f"{entry.quantity_before} -> {entry.quantity_after}"
        )
        return entry

    def bulk_update(
        self,
        db: Session,
        tenant_id: int,
        user_id: Optional[int],
        updates: List[BulkUpdateItem]
    ) -> Dict:
        """
        Apply a batch of adjustments in order.

        An item that fails (bad target, not found) is reported in ``errors``
        and the rest of the batch still runs. Parent products of every touched
        variant are re-synced once at the end and the batch commits once.

        Returns:
            Dict with message, results and errors (None when there are none)
        """
        results: List[BulkUpdateResult] = []
        errors: List[BulkUpdateError] = []
        touched_products: Set[int] = set()

        for index, item in enumerate(updates):
            error = self._target_error(item.product_id, item.variant_id)
            target = None
            if not error and item.variant_id is not None:
                target = variant_crud.get(db, id=item.variant_id, tenant_id=tenant_id)
                error = None if target else "Variant not found"
            elif not error:
                target = product_crud.get(db, id=item.product_id, tenant_id=tenant_id)
                error = None if target else "Product not found"

            if error:
                errors.append(BulkUpdateError(
                    index=index,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    error=error,
                ))
                continue

            is_variant = item.variant_id is not None
            entry = self._record(
                db,
                tenant_id=tenant_id,
                user_id=user_id,
                target=target,
                is_variant=is_variant,
                adjustment_type=AdjustmentType(item.adjustment_type),
                quantity=item.quantity,
                reason=item.reason,
            )
            if is_variant:
                touched_products.add(target.product_id)

            results.append(BulkUpdateResult(
                product_id=entry.product_id,
                variant_id=entry.variant_id,
                adjustment_type=item.adjustment_type,
                quantity_before=entry.quantity_before,
                quantity_after=entry.quantity_after,
                quantity_change=entry.quantity_change,
                history_id=entry.id,
            ))

        for product_id in touched_products:
            self.sync_product_stock(db, product_id)

        db.commit()

        message = f"Processed {len(results)} updates"
        if errors:
            message += f", {len(errors)} errors"
        logger.info(f"Bulk inventory update: tenant_id={tenant_id}, {message}")

        return {"message": message, "results": results, "errors": errors or None}

    def get_history(
        self,
        db: Session,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        product_id: Optional[int] = None,
        variant_id: Optional[int] = None,
        adjustment_type: Optional[AdjustmentType] = None
    ) -> Dict:
        entries, total = history_crud.get_filtered(
            db,
            tenant_id=tenant_id,
            product_id=product_id,
            variant_id=variant_id,
            adjustment_type=adjustment_type,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {"history": entries, "pagination": Pagination.build(page, limit, total)}

    def get_threshold(self, tenant: Tenant) -> int:
        value = (tenant.settings or {}).get("low_stock_threshold")
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return settings.DEFAULT_LOW_STOCK_THRESHOLD

    def set_threshold(self, db: Session, tenant: Tenant, threshold: int) -> int:
        # JSON columns don't track in-place mutation; assign a new dict
        new_settings = dict(tenant.settings or {})
        new_settings["low_stock_threshold"] = threshold
        tenant_crud.update(db, db_obj=tenant, fields={"settings": new_settings})
        logger.info(f"Low stock threshold set: tenant_id={tenant.id}, threshold={threshold}")
        return threshold

    def get_low_stock(self, db: Session, tenant: Tenant, threshold: Optional[int] = None) -> Dict:
        """Variant-less products and variants at or below the threshold, lowest stock first."""
        threshold = self.get_threshold(tenant) if threshold is None else threshold
        items: List[LowStockItem] = []

        for product in product_crud.get_low_stock(db, tenant.id, threshold):
            items.append(LowStockItem(
                id=product.id,
                type="product",
                product_id=product.id,
                name=product.name,
                sku=product.sku,
                stock_quantity=product.stock_quantity,
            ))
        for variant in variant_crud.get_low_stock(db, tenant.id, threshold):
            label = f"{variant.product.name} - {variant.name}" if variant.name else variant.product.name
            items.append(LowStockItem(
                id=variant.id,
                type="variant",
                product_id=variant.product_id,
                name=label,
                sku=variant.sku,
                stock_quantity=variant.stock_quantity,
            ))

        items.sort(key=lambda item: item.stock_quantity or 0)
        return {"threshold": threshold, "items": items, "total": len(items)}

    async def parse_import_file(self, file: UploadFile) -> pd.DataFrame:
        """
        Read an uploaded CSV or Excel sheet into a DataFrame of strings.

        Raises:
            HTTPException 400: Unsupported or unreadable file
        """
        content = await file.read()
        filename = (file.filename or "").lower()

        try:
            if filename.endswith(".csv") or "csv" in (file.content_type or ""):
                df = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False, encoding="utf-8-sig")
            elif filename.endswith((".xlsx", ".xls")):
                df = pd.read_excel(io.BytesIO(content), dtype=str, keep_default_na=False)
            else:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid file type. Please upload a CSV file."
                )
        except (ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Error parsing inventory import '{file.filename}': {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Could not read the uploaded file"
            )

        logger.info(f"Parsed inventory import '{file.filename}': {len(df)} rows")
        return df

    @staticmethod
    def _import_columns(df: pd.DataFrame) -> Dict[str, Optional[str]]:
        headers = {str(col): str(col).strip().lower() for col in df.columns}

        def find(predicate) -> Optional[str]:
            return next((col for col, name in headers.items() if predicate(name)), None)

        columns = {
            "type": find(lambda h: "type" in h and "adjustment" not in h),
            "sku": find(lambda h: "sku" in h),
            "adjustment type": find(lambda h: "adjustment" in h),
            "quantity": find(lambda h: "quantity" in h),
            "reason": find(lambda h: "reason" in h),
        }
        missing = [name for name in ("type", "sku", "adjustment type", "quantity") if columns[name] is None]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Missing required columns: {', '.join(missing)}"
            )
        return columns

    def build_import_updates(
        self,
        db: Session,
        tenant_id: int,
        df: pd.DataFrame
    ) -> Tuple[List[BulkUpdateItem], List[ImportRowError]]:
        """
        Turn import rows into bulk update items, resolving SKUs to IDs.

        Row numbers in errors are spreadsheet rows: the header is row 1.
        """
        if df.empty:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="File must contain at least a header row and one data row"
            )

        columns = self._import_columns(df)
        updates: List[BulkUpdateItem] = []
        errors: List[ImportRowError] = []

        for position, (_, row) in enumerate(df.iterrows()):
            row_number = position + 2

            def cell(name: str) -> str:
                column = columns[name]
                return str(row[column]).strip() if column is not None else ""

            kind = cell("type").lower()
            sku = cell("sku")
            adjustment = IMPORT_ADJUSTMENT_ALIASES.get(cell("adjustment type").lower())
            raw_quantity = cell("quantity")
            reason = cell("reason") or None

            if not any([kind, sku, raw_quantity]):
                continue
            if kind not in ("product", "variant"):
                errors.append(ImportRowError(row=row_number, error="Type must be 'product' or 'variant'"))
                continue
            if not sku:
                errors.append(ImportRowError(row=row_number, error="SKU is required"))
                continue
            if adjustment is None:
                errors.append(ImportRowError(
                    row=row_number,
                    error="Adjustment type must be one of increase, decrease, set, reduce"
                ))
                continue
            try:
                quantity = int(float(raw_quantity))
                if quantity < 0 or float(raw_quantity) != quantity:
                    raise ValueError(raw_quantity)
            except (ValueError, OverflowError):
                errors.append(ImportRowError(row=row_number, error="Quantity must be a non-negative integer"))
                continue

            if kind == "product":
                product = product_crud.get_by_sku(db, sku, tenant_id)
                if not product:
                    errors.append(ImportRowError(row=row_number, error=f"Product not found: {sku}"))
                    continue
                target = {"product_id": product.id}
            else:
                variant = variant_crud.get_by_sku(db, sku, tenant_id)
                if not variant:
                    errors.append(ImportRowError(row=row_number, error=f"Variant not found: {sku}"))
                    continue
                target = {"variant_id": variant.id}

            updates.append(BulkUpdateItem(
                adjustment_type=adjustment,
                quantity=quantity,
                reason=reason[:255] if reason else None,
                **target,
            ))

        return updates, errors


# Create a singleton instance
inventory_service = InventoryService()

from typing import Dict, Optional, Set, Tuple
from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.crud.order import order as order_crud
from app.crud.product import product as product_crud, product_variant as variant_crud
from app.models.order import Order, OrderProduct, OrderStatus, PaymentStatus
from app.models.product import Product, ProductVariant
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.common import Pagination
from app.schemas.order import CheckoutItem, CheckoutRequest, OrderCancelRequest, OrderUpdateRequest
from app.services.cart import cart_service
from app.services.email import email_service, order_snapshot, tenant_snapshot
from app.services.inventory import inventory_service
from app.services.plan_limits import plan_limit_service
from app.utils.dates import utcnow
from app.utils.orders import can_transition, generate_order_number

MAX_ORDER_NUMBER_ATTEMPTS = 10


class OrderService:
    """
    Checkout and order management.

    Stock is taken at checkout and given back on cancellation. A null
    stock_quantity means the item is not stock-tracked and is never touched.
    """

    def _not_found(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found"
        )

    def _resolve_line(
        self, db: Session, tenant_id: int, item: CheckoutItem, requested: int
    ) -> Tuple[Product, Optional[ProductVariant], float]:
        """requested is the quantity of this product or variant across the whole order."""
        product = product_crud.get(db, id=item.product_id, tenant_id=tenant_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Product {item.product_id} not found"
            )

        variant = None
        if item.variant_id is not None:
            variant = variant_crud.get(db, id=item.variant_id, tenant_id=tenant_id)
            if not variant or variant.product_id != product.id:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Variant {item.variant_id} not found"
                )

        available = variant.stock_quantity if variant else product.stock_quantity
        if available is not None and available < requested:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient stock for {product.name}. Available: {available}"
            )

        if variant and variant.price is not None:
            price = float(variant.price)
        else:
            price = float(product.effective_price)
        return product, variant, price

    def _new_order_number(self, db: Session) -> str:
        for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
            number = generate_order_number()
            if not order_crud.order_number_exists(db, number):
                return number
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not generate a unique order number"
        )

    def _restock(self, db: Session, order: Order, sign: int) -> None:
        """Move each line's quantity into (sign=1) or out of (sign=-1) stock, then re-sync parents."""
        parents: Set[int] = set()
        for line in order.items:
            if line.variant_id is not None:
                variant = db.get(ProductVariant, line.variant_id)
                if variant is not None and variant.stock_quantity is not None:
                    variant.stock_quantity = max(0, variant.stock_quantity + sign * line.quantity)
                    parents.add(variant.product_id)
            elif line.product_id is not None:
                product = db.get(Product, line.product_id)
                if product is not None and product.stock_quantity is not None:
                    product.stock_quantity = max(0, product.stock_quantity + sign * line.quantity)

        for product_id in parents:
            inventory_service.sync_product_stock(db, product_id)

    def checkout(
        self,
        db: Session,
        tenant: Tenant,
        user: User,
        data: CheckoutRequest,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Order:
        """
        Turn a list of items into an order.

        Args:
            db: Database session
            tenant: Store the order is placed in
            user: Authenticated customer
            data: Items, addresses and payment method
            background_tasks: Where to queue the confirmation emails

        Returns:
            The created order with its lines

        Raises:
            HTTPException 403: Order limit of the tenant's plan reached
            HTTPException 404: Unknown product or variant
            HTTPException 400: Not enough stock
        """
        plan_limit_service.check_can_create_order(db, tenant)

        requested: Dict[Tuple[int, Optional[int]], int] = {}
        for item in data.items:
            key = (item.product_id, item.variant_id)
            requested[key] = requested.get(key, 0) + item.quantity

        lines = [
            (item, *self._resolve_line(db, tenant.id, item, requested[(item.product_id, item.variant_id)]))
            for item in data.items
        ]
        total_amount = round(sum(price * item.quantity for item, _, _, price in lines), 2)

        shipping = data.shipping_address
        order = Order(
            tenant_id=tenant.id,
            order_number=self._new_order_number(db),
            user_id=user.id,
            name=shipping.name,
            email=shipping.email,
            phone=shipping.phone,
            total_amount=total_amount,
            status=OrderStatus.pending,
            payment_status=PaymentStatus.pending,
            payment_method=data.payment_method,
            shipping_address=shipping.model_dump(),
            billing_address=(data.billing_address or shipping).model_dump(),
            coupon_code=data.coupon_code,
            notes=data.notes,
        )
        for item, product, variant, price in lines:
            name = f"{product.name} - {variant.name}" if variant and variant.name else product.name
            order.items.append(OrderProduct(
                tenant_id=tenant.id,
                product_id=product.id,
                variant_id=variant.id if variant else None,
                name=name,
                sku=(variant.sku if variant else None) or product.sku,
                quantity=item.quantity,
                price=price,
                total=round(price * item.quantity, 2),
            ))
        db.add(order)
        db.flush()

        self._restock(db, order, sign=-1)
        db.commit()
        db.refresh(order)

        cart_service.clear(tenant.id, f"user:{user.id}")
        logger.info(
            f"Order placed: tenant_id={tenant.id}, order={order.order_number}, "
            f"user_id={user.id}, total={order.total_amount}"
        )

        if background_tasks is not None:
            tenant_data = tenant_snapshot(tenant)
            order_data = order_snapshot(order)
            background_tasks.add_task(email_service.send_order_confirmation_email, tenant_data, order_data)
            background_tasks.add_task(email_service.send_new_order_alert_email, tenant_data, order_data)

        return order

    def list_orders(
        self,
        db: Session,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[int] = None,
        **filters
    ) -> Dict:
        orders, total = order_crud.get_filtered(
            db,
            tenant_id=tenant_id,
            user_id=user_id,
            skip=(page - 1) * limit,
            limit=limit,
            **filters
        )
        return {"orders": orders, "pagination": Pagination.build(page, limit, total)}

    def get_order(self, db: Session, order_id: int, tenant_id: int, user_id: Optional[int] = None) -> Order:
        """An order of this tenant. With user_id set, only that customer's orders are visible."""
        order = order_crud.get(db, id=order_id, tenant_id=tenant_id)
        if not order or (user_id is not None and order.user_id != user_id):
            raise self._not_found()
        return order

    def track_order(self, db: Session, tenant_id: int, order_number: str, email: str) -> Order:
        """Guest lookup by order number and the email used at checkout."""
        stmt = select(Order).where(
            Order.tenant_id == tenant_id,
            Order.order_number == order_number,
            func.lower(Order.email) == email.strip().lower(),
        )
        order = db.execute(stmt).scalar_one_or_none()
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found. Please check your order number and email address."
            )
        return order

    def update_order(
        self,
        db: Session,
        tenant: Tenant,
        order_id: int,
        data: OrderUpdateRequest,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Order:
        """
        Move an order along its status workflow and/or record payment details.

        Raises:
            HTTPException 400: If the status change is not an allowed transition
        """
        order = self.get_order(db, order_id, tenant.id)
        old_status = order.status
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        new_status = fields.pop("status", None)

        if new_status is not None and new_status != old_status:
            if not can_transition(old_status, new_status):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Cannot change order status from {old_status.value} to {new_status.value}"
                )
            fields["status"] = new_status
            if new_status == OrderStatus.cancelled:
                fields["cancelled_at"] = utcnow()
                self._restock(db, order, sign=1)

        order = order_crud.update(db, db_obj=order, obj_in=fields)
        logger.info(
            f"Order updated: tenant_id={tenant.id}, order={order.order_number}, "
            f"status={old_status.value}->{order.status.value}, payment_status={order.payment_status.value}"
        )

        if background_tasks is not None and order.status != old_status:
            if order.status == OrderStatus.shipped:
                background_tasks.add_task(
                    email_service.send_order_shipped_email, tenant_snapshot(tenant), order_snapshot(order)
                )
            elif order.status == OrderStatus.delivered:
                background_tasks.add_task(
                    email_service.send_order_delivered_email, tenant_snapshot(tenant), order_snapshot(order)
                )
        return order

    def update_payment_status(
        self,
        db: Session,
        tenant_id: int,
        order_id: int,
        payment_status: PaymentStatus,
        transaction_id: Optional[str] = None,
        payment_gateway: Optional[str] = None
    ) -> Order:
        order = self.get_order(db, order_id, tenant_id)
        fields = {"payment_status": payment_status}
        if transaction_id:
            fields["transaction_id"] = transaction_id
        if payment_gateway:
            fields["payment_gateway"] = payment_gateway
        order = order_crud.update(db, db_obj=order, obj_in=fields)
        logger.info(f"Payment status updated: order={order.order_number}, payment_status={payment_status.value}")
        return order

    def cancel_order(
        self,
        db: Session,
        tenant: Tenant,
        order_id: int,
        data: OrderCancelRequest,
        background_tasks: Optional[BackgroundTasks] = None,
        user_id: Optional[int] = None
    ) -> Order:
        """
        Cancel an order and put its items back in stock.

        Raises:
            HTTPException 400: Order already cancelled, delivered or refunded
        """
        order = self.get_order(db, order_id, tenant.id, user_id=user_id)

        if order.status == OrderStatus.cancelled:
            detail = "Order is already cancelled"
        elif order.status == OrderStatus.delivered:
            detail = "Cannot cancel a delivered order"
        elif order.status == OrderStatus.refunded or order.payment_status == PaymentStatus.refunded:
            detail = "Order has already been refunded"
        else:
            detail = None
        if detail:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=detail
            )

        was_paid = order.payment_status == PaymentStatus.paid
        self._restock(db, order, sign=1)

        fields = {
            "status": OrderStatus.cancelled,
            "cancellation_reason": data.reason,
            "cancelled_at": utcnow(),
        }
        if data.refund:
            fields["payment_status"] = PaymentStatus.refunded
        if data.notes:
            fields["notes"] = f"{order.notes}\n{data.notes}" if order.notes else data.notes

        order = order_crud.update(db, db_obj=order, obj_in=fields)
        logger.info(f"Order cancelled: tenant_id={tenant.id}, order={order.order_number}, refund={data.refund}")

        if background_tasks is not None:
            refund_amount = float(order.total_amount) if data.refund and was_paid else None
            background_tasks.add_task(
                email_service.send_order_cancelled_email,
                tenant_snapshot(tenant), order_snapshot(order), refund_amount
            )
        return order


# Create a singleton instance
order_service = OrderService()

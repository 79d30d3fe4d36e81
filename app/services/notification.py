"""
Dashboard notifications.

Nothing is stored: every request aggregates the current state of orders,
stock and support tickets into a list of notification dicts, so there is no
read state and everything is reported as unread.
"""

from datetime import timedelta
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from app.crud.order import order as order_crud
from app.crud.support_ticket import get_recent_open_landlord_tickets, get_recent_tenant_replies
from app.models.order import OrderStatus, PaymentStatus
from app.models.tenant import Tenant
from app.services.inventory import inventory_service
from app.utils.dates import as_utc, utcnow

PER_SOURCE_LIMIT = 10
MAX_NOTIFICATIONS = 20


def _finish(notifications: List[Dict[str, Any]], unread_only: bool) -> Dict[str, Any]:
    notifications.sort(key=lambda n: n["created_at"], reverse=True)
    unread = [n for n in notifications if not n["read"]]
    visible = unread if unread_only else notifications
    return {
        "success": True,
        "notifications": visible[:MAX_NOTIFICATIONS],
        "unread_count": len(unread),
        "total": len(notifications),
    }


class NotificationService:

    def get_tenant_notifications(self, db: Session, tenant: Tenant, unread_only: bool = False) -> Dict[str, Any]:
        """New orders, pending and failed payments, and low stock for one store."""
        notifications: List[Dict[str, Any]] = []

        new_orders = order_crud.get_recent(
            db, tenant_id=tenant.id,
            statuses=[OrderStatus.pending, OrderStatus.processing],
            limit=PER_SOURCE_LIMIT,
        )
        for order in new_orders:
            notifications.append({
                "id": f"order-{order.id}",
                "type": "new_order",
                "title": "New Order",
                "message": f"Order {order.order_number} - ${float(order.total_amount):.2f}",
                "link": f"/dashboard/orders/{order.id}",
                "created_at": as_utc(order.created_at),
                "read": False,
                "metadata": {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "amount": float(order.total_amount),
                },
            })

        pending = order_crud.get_recent(
            db, tenant_id=tenant.id,
            payment_status=PaymentStatus.pending,
            exclude_cancelled=True,
            limit=PER_SOURCE_LIMIT,
        )
        for order in pending:
            notifications.append({
                "id": f"payment-pending-{order.id}",
                "type": "pending_payment",
                "title": "Pending Payment",
                "message": f"Order {order.order_number} is awaiting payment",
                "link": f"/dashboard/orders/{order.id}",
                "created_at": as_utc(order.created_at),
                "read": False,
                "metadata": {"order_id": order.id, "order_number": order.order_number},
            })

        failed = order_crud.get_recent(
            db, tenant_id=tenant.id,
            payment_status=PaymentStatus.failed,
            exclude_cancelled=True,
            limit=PER_SOURCE_LIMIT,
        )
        for order in failed:
            notifications.append({
                "id": f"payment-failed-{order.id}",
                "type": "failed_payment",
                "title": "Failed Payment",
                "message": f"Payment failed for order {order.order_number}",
                "link": f"/dashboard/orders/{order.id}",
                "created_at": as_utc(order.created_at),
                "read": False,
                "metadata": {"order_id": order.id, "order_number": order.order_number},
            })

        now = utcnow()
        low_stock = inventory_service.get_low_stock(db, tenant)["items"][:PER_SOURCE_LIMIT]
        for item in low_stock:
            is_variant = item.type == "variant"
            notifications.append({
                "id": f"low-stock-variant-{item.id}" if is_variant else f"low-stock-{item.id}",
                "type": "low_stock",
                "title": "Low Stock Alert",
                "message": f"{item.name} - {item.stock_quantity or 0} units remaining",
                "link": f"/dashboard/products?variant={item.id}" if is_variant else f"/dashboard/products/{item.id}",
                "created_at": now,
                "read": False,
                "metadata": {
                    "product_id": item.product_id,
                    "variant_id": item.id if is_variant else None,
                    "stock_quantity": item.stock_quantity or 0,
                },
            })

        return _finish(notifications, unread_only)

    def get_landlord_notifications(self, db: Session, unread_only: bool = False) -> Dict[str, Any]:
        """Open tenant tickets from the last 7 days and tenant replies from the last 24 hours."""
        now = utcnow()
        notifications: List[Dict[str, Any]] = []

        for ticket in get_recent_open_landlord_tickets(db, now - timedelta(days=7), PER_SOURCE_LIMIT):
            tenant_name = ticket.tenant.name if ticket.tenant else "Tenant"
            notifications.append({
                "id": f"landlord-ticket-new-{ticket.id}",
                "type": "new_support_ticket",
                "title": "New Support Ticket",
                "message": f"{ticket.subject} - {tenant_name}",
                "link": f"/admin/support/tickets/{ticket.id}",
                "created_at": as_utc(ticket.created_at),
                "read": False,
                "metadata": {
                    "ticket_id": ticket.id,
                    "priority": ticket.priority.value,
                    "tenant_id": ticket.tenant_id,
                },
            })

        seen_tickets = set()
        for message in get_recent_tenant_replies(db, now - timedelta(hours=24), PER_SOURCE_LIMIT):
            if message.ticket_id in seen_tickets:
                continue
            seen_tickets.add(message.ticket_id)
            ticket = message.ticket
            tenant_name = ticket.tenant.name if ticket.tenant else "Tenant"
            notifications.append({
                "id": f"landlord-ticket-reply-{message.ticket_id}",
                "type": "support_ticket_reply",
                "title": "New Ticket Reply",
                "message": f"{ticket.subject} - {tenant_name} replied",
                "link": f"/admin/support/tickets/{message.ticket_id}",
                "created_at": as_utc(message.created_at),
                "read": False,
                "metadata": {
                    "ticket_id": message.ticket_id,
                    "message_id": message.id,
                    "tenant_id": ticket.tenant_id,
                },
            })

        return _finish(notifications, unread_only)


notification_service = NotificationService()

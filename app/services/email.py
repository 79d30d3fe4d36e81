"""
Transactional email.

Templates live in ``app/templates/email`` and extend one base layout. Mail
goes out through the SendGrid v3 HTTP API. Every public ``send_*`` method is
meant to run as a FastAPI background task, so it only takes plain dicts (see
the ``*_snapshot`` helpers) and never raises: failures are logged.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape
from app.core.config import settings
from app.core.logging_config import logger

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def _money(value: Any) -> str:
    return f"{float(value or 0):.2f}"


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%B %d, %Y") if value else ""


_env.filters["money"] = _money
_env.filters["date"] = _date


def tenant_snapshot(tenant) -> Dict[str, Any]:
    return {
        "id": tenant.id,
        "name": tenant.name,
        "subdomain": tenant.subdomain,
        "contact_email": tenant.contact_email,
        "store_url": f"https://{tenant.subdomain}.{settings.ROOT_DOMAIN}",
    }


def plan_snapshot(plan) -> Optional[Dict[str, Any]]:
    if plan is None:
        return None
    return {
        "id": plan.id,
        "name": plan.name,
        "price": float(plan.price),
        "duration_months": plan.duration_months,
    }


def order_snapshot(order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "name": order.name,
        "email": order.email,
        "total_amount": float(order.total_amount or 0),
        "status": order.status.value if order.status else None,
        "payment_status": order.payment_status.value if order.payment_status else None,
        "payment_method": order.payment_method,
        "shipping_address": order.shipping_address or {},
        "tracking_number": order.tracking_number,
        "shipping_carrier": order.shipping_carrier,
        "cancellation_reason": order.cancellation_reason,
        "items": [
            {"name": item.name, "quantity": item.quantity, "price": float(item.price), "total": float(item.total)}
            for item in order.items
        ],
    }


def ticket_snapshot(ticket) -> Dict[str, Any]:
    return {
        "id": ticket.id,
        "subject": ticket.subject,
        "description": ticket.description,
        "status": ticket.status.value,
        "priority": ticket.priority.value,
        "category": ticket.category.value if getattr(ticket, "category", None) else None,
    }


class EmailService:
    """Render and send transactional email."""

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.transport = transport

    @staticmethod
    def sender_name(tenant: Optional[Dict[str, Any]]) -> str:
        """Tenant name, else the subdomain title-cased, else the platform name."""
        if tenant:
            if tenant.get("name"):
                return tenant["name"]
            if tenant.get("subdomain"):
                return tenant["subdomain"].replace("-", " ").title()
        return settings.SENDGRID_FROM_NAME

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        template = _env.get_template(template_name)
        return template.render(app_url=settings.APP_URL, platform_name=settings.SENDGRID_FROM_NAME, **context)

    def send(
        self,
        *,
        to: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        tenant: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Render a template and deliver it.

        Returns:
            True if SendGrid accepted the message, False otherwise
        """
        if not to:
            logger.warning(f"Email skipped, no recipient: subject={subject}")
            return False

        try:
            html = self.render(template_name, {"tenant": tenant, **context})
            message = {
                "personalizations": [{"to": [{"email": to}]}],
                "from": {"email": settings.SENDGRID_FROM_EMAIL, "name": self.sender_name(tenant)},
                "subject": subject,
                "content": [{"type": "text/html", "value": html}],
            }
            if tenant and tenant.get("contact_email"):
                message["reply_to"] = {"email": tenant["contact_email"]}
            return self._deliver(message)
        except Exception as e:
            logger.error(f"Failed to send email: to={to}, subject={subject}, error={type(e).__name__}: {e}")
            return False

    def _deliver(self, message: Dict[str, Any]) -> bool:
        if not self.api_key:
            logger.warning(f"SENDGRID_API_KEY not set, email not sent: subject={message['subject']}")
            return False

        with httpx.Client(transport=self.transport, timeout=15.0) as client:
            response = client.post(
                settings.SENDGRID_API_URL,
                json=message,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()

        logger.info(f"Email sent: subject={message['subject']}")
        return True

    # Tenant lifecycle

    def send_welcome_email(self, tenant: Dict[str, Any], admin_email: str, admin_name: str,
                           plan: Optional[Dict[str, Any]] = None) -> bool:
        return self.send(
            to=admin_email,
            subject=f"Welcome to StoreFlow - {tenant['name']} is Ready!",
            template_name="welcome.html",
            context={"admin_name": admin_name, "admin_email": admin_email, "plan": plan},
            tenant=tenant,
        )

    # Subscriptions

    def send_subscription_activated_email(self, tenant: Dict[str, Any], plan: Dict[str, Any],
                                          expire_date: Optional[datetime]) -> bool:
        return self.send(
            to=tenant.get("contact_email"),
            subject=f"Subscription Activated - {plan['name']}",
            template_name="subscription_activated.html",
            context={"plan": plan, "expire_date": expire_date},
            tenant=tenant,
        )

    def send_subscription_expired_email(self, tenant: Dict[str, Any], plan: Optional[Dict[str, Any]]) -> bool:
        return self.send(
            to=tenant.get("contact_email"),
            subject="Subscription Expired - Renew Now",
            template_name="subscription_expired.html",
            context={"plan": plan, "grace_days": settings.SUBSCRIPTION_GRACE_PERIOD_DAYS},
            tenant=tenant,
        )

    def send_renewal_reminder_email(self, tenant: Dict[str, Any], plan: Dict[str, Any],
                                    expire_date: datetime, days_left: int) -> bool:
        plural = "day" if days_left == 1 else "days"
        return self.send(
            to=tenant.get("contact_email"),
            subject=f"Subscription Renewal Reminder - Expires in {days_left} {plural}",
            template_name="renewal_reminder.html",
            context={"plan": plan, "expire_date": expire_date, "days_left": days_left},
            tenant=tenant,
        )

    def send_payment_due_email(self, tenant: Dict[str, Any], plan: Dict[str, Any],
                               amount: float, due_date: datetime) -> bool:
        return self.send(
            to=tenant.get("contact_email"),
            subject=f"Payment Due Reminder - ${amount:.2f}",
            template_name="payment_due.html",
            context={"plan": plan, "amount": amount, "due_date": due_date},
            tenant=tenant,
        )

    def send_plan_upgraded_email(self, tenant: Dict[str, Any], old_plan: Dict[str, Any],
                                 new_plan: Dict[str, Any], expire_date: Optional[datetime]) -> bool:
        return self.send(
            to=tenant.get("contact_email"),
            subject=f"Plan Upgraded to {new_plan['name']}",
            template_name="plan_upgraded.html",
            context={"old_plan": old_plan, "new_plan": new_plan, "expire_date": expire_date},
            tenant=tenant,
        )

    # Orders

    def send_order_confirmation_email(self, tenant: Dict[str, Any], order: Dict[str, Any]) -> bool:
        return self.send(
            to=order.get("email"),
            subject=f"Order Confirmation - {order['order_number']}",
            template_name="order_confirmation.html",
            context={"order": order},
            tenant=tenant,
        )

    def send_new_order_alert_email(self, tenant: Dict[str, Any], order: Dict[str, Any]) -> bool:
        return self.send(
            to=tenant.get("contact_email"),
            subject=f"New Order Alert - {order['order_number']}",
            template_name="new_order_alert.html",
            context={"order": order},
            tenant=tenant,
        )

    def send_order_shipped_email(self, tenant: Dict[str, Any], order: Dict[str, Any]) -> bool:
        return self.send(
            to=order.get("email"),
            subject=f"Your Order Has Shipped - {order['order_number']}",
            template_name="order_shipped.html",
            context={"order": order},
            tenant=tenant,
        )

    def send_order_delivered_email(self, tenant: Dict[str, Any], order: Dict[str, Any]) -> bool:
        return self.send(
            to=order.get("email"),
            subject=f"Order Delivered - {order['order_number']}",
            template_name="order_delivered.html",
            context={"order": order},
            tenant=tenant,
        )

    def send_order_cancelled_email(self, tenant: Dict[str, Any], order: Dict[str, Any],
                                   refund_amount: Optional[float] = None) -> bool:
        return self.send(
            to=order.get("email"),
            subject=f"Order Cancelled - {order['order_number']}",
            template_name="order_cancelled.html",
            context={"order": order, "refund_amount": refund_amount},
            tenant=tenant,
        )

    # Support tickets

    def send_ticket_created_email(self, to: str, tenant: Optional[Dict[str, Any]], ticket: Dict[str, Any],
                                  from_name: Optional[str] = None, subject: Optional[str] = None) -> bool:
        return self.send(
            to=to,
            subject=subject or f"New Support Ticket: {ticket['subject']}",
            template_name="ticket_created.html",
            context={"ticket": ticket, "from_name": from_name},
            tenant=tenant,
        )

    def send_ticket_reply_email(self, to: str, tenant: Optional[Dict[str, Any]], ticket: Dict[str, Any],
                                message: str, to_customer: bool, attachments: Optional[List[str]] = None) -> bool:
        if to_customer:
            subject = f"Reply to Your Support Ticket: {ticket['subject']}"
        else:
            subject = f"New Reply: {ticket['subject']}"
        return self.send(
            to=to,
            subject=subject,
            template_name="ticket_reply.html",
            context={"ticket": ticket, "message": message, "attachments": attachments or []},
            tenant=tenant,
        )

    def send_ticket_status_email(self, to: str, tenant: Optional[Dict[str, Any]], ticket: Dict[str, Any],
                                 old_status: str) -> bool:
        return self.send(
            to=to,
            subject=f"Support Ticket Status Updated: {ticket['subject']}",
            template_name="ticket_status.html",
            context={"ticket": ticket, "old_status": old_status},
            tenant=tenant,
        )


email_service = EmailService()

from typing import Dict, List, Optional
from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.crud.support_ticket import support_ticket as ticket_crud
from app.models.support_ticket import SupportTicket, SupportTicketMessage, TicketStatus, TicketPriority
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.common import Pagination
from app.schemas.support import MessageCreate, TicketCreate, TicketUpdate
from app.services.email import email_service, tenant_snapshot, ticket_snapshot
from app.utils.dates import utcnow


def ensure_open(ticket) -> None:
    if ticket.status == TicketStatus.closed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot add message to closed ticket"
        )


def touch_after_message(ticket) -> None:
    """A reply reopens a resolved ticket and bumps updated_at."""
    if ticket.status == TicketStatus.resolved:
        ticket.status = TicketStatus.in_progress
    ticket.updated_at = utcnow()


def attachment_urls(data: MessageCreate) -> List[str]:
    return [str(url) for url in data.attachments]


class SupportService:
    """
    Customer to store support tickets.

    Customers only ever see their own tickets, so most methods take an
    optional ``user_id`` that narrows the lookup. Store staff pass None.
    """

    def _not_found(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )

    def create_ticket(
        self,
        db: Session,
        tenant: Tenant,
        user: User,
        data: TicketCreate,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> SupportTicket:
        ticket = ticket_crud.create(
            db,
            obj_in={
                "user_id": user.id,
                "subject": data.subject,
                "description": data.description,
                "priority": data.priority,
                "status": TicketStatus.open,
            },
            tenant_id=tenant.id,
        )
        logger.info(f"Support ticket created: tenant_id={tenant.id}, ticket_id={ticket.id}, user_id={user.id}")

        if background_tasks is not None and tenant.contact_email:
            background_tasks.add_task(
                email_service.send_ticket_created_email,
                tenant.contact_email,
                tenant_snapshot(tenant),
                ticket_snapshot(ticket),
                user.name or user.email,
            )
        return ticket

    def list_tickets(
        self,
        db: Session,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[int] = None,
        status_filter: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Dict:
        tickets, total = ticket_crud.get_filtered(
            db,
            tenant_id=tenant_id,
            user_id=user_id,
            status=status_filter,
            priority=priority,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {"tickets": tickets, "pagination": Pagination.build(page, limit, total)}

    def get_ticket(self, db: Session, ticket_id: int, tenant_id: int, user_id: Optional[int] = None) -> SupportTicket:
        ticket = ticket_crud.get(db, id=ticket_id, tenant_id=tenant_id)
        if not ticket or (user_id is not None and ticket.user_id != user_id):
            raise self._not_found()
        return ticket

    def update_ticket(
        self,
        db: Session,
        tenant: Tenant,
        ticket_id: int,
        data: TicketUpdate,
        background_tasks: Optional[BackgroundTasks] = None,
        user_id: Optional[int] = None
    ) -> SupportTicket:
        """Update a ticket. A status change is emailed to the customer."""
        ticket = self.get_ticket(db, ticket_id, tenant.id, user_id=user_id)
        old_status = ticket.status
        ticket = ticket_crud.update(db, db_obj=ticket, obj_in=data.model_dump(exclude_unset=True, exclude_none=True))
        logger.info(f"Support ticket updated: ticket_id={ticket.id}, status={ticket.status.value}")

        if background_tasks is not None and ticket.status != old_status and ticket.user is not None:
            background_tasks.add_task(
                email_service.send_ticket_status_email,
                ticket.user.email,
                tenant_snapshot(tenant),
                ticket_snapshot(ticket),
                old_status.value,
            )
        return ticket

    def close_ticket(self, db: Session, ticket_id: int, tenant_id: int, user_id: Optional[int] = None) -> SupportTicket:
        ticket = self.get_ticket(db, ticket_id, tenant_id, user_id=user_id)
        ticket = ticket_crud.update(db, db_obj=ticket, obj_in={"status": TicketStatus.closed})
        logger.info(f"Support ticket closed: ticket_id={ticket.id}")
        return ticket

    def list_messages(
        self, db: Session, ticket_id: int, tenant_id: int, user_id: Optional[int] = None
    ) -> List[SupportTicketMessage]:
        return list(self.get_ticket(db, ticket_id, tenant_id, user_id=user_id).messages)

    def add_message(
        self,
        db: Session,
        tenant: Tenant,
        ticket_id: int,
        user: User,
        data: MessageCreate,
        background_tasks: Optional[BackgroundTasks] = None,
        user_id: Optional[int] = None
    ) -> SupportTicketMessage:
        """
        Post a reply on a ticket.

        A message from anyone other than the ticket's customer counts as a
        staff reply. The other party gets an email.

        Raises:
            HTTPException 400: If the ticket is closed
        """
        ticket = self.get_ticket(db, ticket_id, tenant.id, user_id=user_id)
        ensure_open(ticket)

        is_staff = ticket.user_id != user.id
        attachments = attachment_urls(data)
        message = ticket_crud.add_message(
            db,
            ticket=ticket,
            fields={
                "user_id": user.id,
                "message": data.message,
                "attachments": attachments,
                "is_staff": is_staff,
            },
        )
        touch_after_message(ticket)
        db.commit()
        db.refresh(message)
        logger.info(f"Support ticket message added: ticket_id={ticket.id}, is_staff={is_staff}")

        if background_tasks is not None:
            recipient = ticket.user.email if is_staff and ticket.user else tenant.contact_email
            background_tasks.add_task(
                email_service.send_ticket_reply_email,
                recipient,
                tenant_snapshot(tenant),
                ticket_snapshot(ticket),
                data.message,
                is_staff,
                attachments,
            )
        return message


# Create a singleton instance
support_service = SupportService()

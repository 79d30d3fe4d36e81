from typing import Dict, List, Optional
from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import logger
from app.crud.support_ticket import landlord_support_ticket as ticket_crud
from app.models.landlord_support_ticket import (
    LandlordSupportTicket,
    LandlordSupportTicketMessage,
    TicketCategory,
)
from app.models.support_ticket import TicketStatus, TicketPriority
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.schemas.common import Pagination
from app.schemas.support import LandlordTicketCreate, LandlordTicketUpdate, MessageCreate
from app.services.email import email_service, tenant_snapshot, ticket_snapshot
from app.services.support import attachment_urls, ensure_open, touch_after_message


class LandlordSupportService:
    """
    Tenant to platform support tickets.

    Tenants see their own tickets; the landlord sees all of them and is the
    only one who changes their status.
    """

    def create_ticket(
        self,
        db: Session,
        tenant: Tenant,
        user: User,
        data: LandlordTicketCreate,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> LandlordSupportTicket:
        ticket = ticket_crud.create(
            db,
            obj_in={
                "created_by": user.id,
                "subject": data.subject,
                "description": data.description,
                "priority": data.priority,
                "category": data.category,
                "status": TicketStatus.open,
            },
            tenant_id=tenant.id,
        )
        logger.info(f"Landlord ticket created: tenant_id={tenant.id}, ticket_id={ticket.id}")

        if background_tasks is not None and settings.LANDLORD_SUPPORT_EMAIL:
            background_tasks.add_task(
                email_service.send_ticket_created_email,
                settings.LANDLORD_SUPPORT_EMAIL,
                None,
                ticket_snapshot(ticket),
                tenant.name,
                f"New Support Ticket from {tenant.name}: {ticket.subject}",
            )
        return ticket

    def list_tickets(
        self,
        db: Session,
        page: int = 1,
        limit: int = 20,
        tenant_id: Optional[int] = None,
        status_filter: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        category: Optional[TicketCategory] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Dict:
        """Tickets of one tenant, or of every tenant when tenant_id is None."""
        tickets, total = ticket_crud.get_filtered(
            db,
            tenant_id=tenant_id,
            status=status_filter,
            priority=priority,
            category=category,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {"tickets": tickets, "pagination": Pagination.build(page, limit, total)}

    def get_ticket(self, db: Session, ticket_id: int, tenant_id: Optional[int] = None) -> LandlordSupportTicket:
        ticket = ticket_crud.get(db, id=ticket_id, tenant_id=tenant_id)
        if not ticket:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ticket not found"
            )
        return ticket

    def update_ticket(
        self,
        db: Session,
        ticket_id: int,
        data: LandlordTicketUpdate,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> LandlordSupportTicket:
        """Landlord-side update. A status change is emailed to the tenant contact."""
        ticket = self.get_ticket(db, ticket_id)
        old_status = ticket.status
        ticket = ticket_crud.update(db, db_obj=ticket, obj_in=data.model_dump(exclude_unset=True, exclude_none=True))
        logger.info(f"Landlord ticket updated: ticket_id={ticket.id}, status={ticket.status.value}")

        if background_tasks is not None and ticket.status != old_status and ticket.tenant is not None:
            background_tasks.add_task(
                email_service.send_ticket_status_email,
                ticket.tenant.contact_email,
                tenant_snapshot(ticket.tenant),
                ticket_snapshot(ticket),
                old_status.value,
            )
        return ticket

    def list_messages(
        self, db: Session, ticket_id: int, tenant_id: Optional[int] = None
    ) -> List[LandlordSupportTicketMessage]:
        return list(self.get_ticket(db, ticket_id, tenant_id).messages)

    def add_message(
        self,
        db: Session,
        ticket_id: int,
        user: User,
        data: MessageCreate,
        background_tasks: Optional[BackgroundTasks] = None,
        tenant_id: Optional[int] = None
    ) -> LandlordSupportTicketMessage:
        """
        Reply on a ticket, from the tenant side or the landlord side.

        Raises:
            HTTPException 400: If the ticket is closed
        """
        ticket = self.get_ticket(db, ticket_id, tenant_id)
        ensure_open(ticket)

        is_landlord = user.role == UserRole.landlord
        attachments = attachment_urls(data)
        message = ticket_crud.add_message(
            db,
            ticket=ticket,
            fields={
                "user_id": user.id,
                "message": data.message,
                "attachments": attachments,
                "is_landlord": is_landlord,
            },
        )
        touch_after_message(ticket)
        db.commit()
        db.refresh(message)
        logger.info(f"Landlord ticket message added: ticket_id={ticket.id}, is_landlord={is_landlord}")

        if background_tasks is not None:
            tenant_data = tenant_snapshot(ticket.tenant) if ticket.tenant else None
            if is_landlord:
                recipient = ticket.tenant.contact_email if ticket.tenant else None
            else:
                recipient = settings.LANDLORD_SUPPORT_EMAIL
            background_tasks.add_task(
                email_service.send_ticket_reply_email,
                recipient,
                tenant_data,
                ticket_snapshot(ticket),
                data.message,
                is_landlord,
                attachments,
            )
        return message


# Create a singleton instance
landlord_support_service = LandlordSupportService()

from typing import Optional, List, Tuple, Type
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func, or_
from app.crud.base import CRUDBase
from app.models.support_ticket import SupportTicket, SupportTicketMessage, TicketStatus, TicketPriority
from app.models.landlord_support_ticket import (
    LandlordSupportTicket,
    LandlordSupportTicketMessage,
    TicketCategory,
)

SORTABLE_FIELDS = ("created_at", "updated_at", "priority", "status")


class CRUDTicketBase(CRUDBase):
    """
    Shared queries for the two ticket tables.

    Both carry tenant_id, subject, description, status and priority, and
    own an ordered list of messages.
    """

    def __init__(self, model: Type, message_model: Type):
        super().__init__(model)
        self.message_model = message_model

    def get(self, db: Session, id: int, tenant_id: Optional[int] = None):
        """Fetch a ticket with its messages. tenant_id None skips the tenant filter (landlord)."""
        stmt = select(self.model).where(self.model.id == id).options(selectinload(self.model.messages))
        if tenant_id is not None:
            stmt = stmt.where(self.model.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one_or_none()

    def _filter_conditions(self, *, tenant_id, status, priority, search) -> list:
        conditions = []
        if tenant_id is not None:
            conditions.append(self.model.tenant_id == tenant_id)
        if status:
            conditions.append(self.model.status == status)
        if priority:
            conditions.append(self.model.priority == priority)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(self.model.subject.ilike(pattern), self.model.description.ilike(pattern)))
        return conditions

    def _page(self, db: Session, conditions: list, sort_by: str, sort_order: str, skip: int, limit: int):
        column = getattr(self.model, sort_by if sort_by in SORTABLE_FIELDS else "created_at")
        ordering = column.asc() if sort_order == "asc" else column.desc()
        total = db.execute(select(func.count()).select_from(self.model).where(*conditions)).scalar_one()
        stmt = (
            select(self.model)
            .where(*conditions)
            .options(selectinload(self.model.messages))
            .order_by(ordering, self.model.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all()), total

    def add_message(self, db: Session, *, ticket, fields: dict):
        message = self.message_model(ticket_id=ticket.id, **fields)
        db.add(message)
        db.flush()
        return message


class CRUDSupportTicket(CRUDTicketBase):
    def get_filtered(
        self,
        db: Session,
        *,
        tenant_id: int,
        user_id: Optional[int] = None,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[SupportTicket], int]:
        conditions = self._filter_conditions(tenant_id=tenant_id, status=status, priority=priority, search=search)
        if user_id is not None:
            conditions.append(SupportTicket.user_id == user_id)
        return self._page(db, conditions, sort_by, sort_order, skip, limit)


class CRUDLandlordSupportTicket(CRUDTicketBase):
    def get_filtered(
        self,
        db: Session,
        *,
        tenant_id: Optional[int] = None,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        category: Optional[TicketCategory] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[LandlordSupportTicket], int]:
        conditions = self._filter_conditions(tenant_id=tenant_id, status=status, priority=priority, search=search)
        if category:
            conditions.append(LandlordSupportTicket.category == category)
        return self._page(db, conditions, sort_by, sort_order, skip, limit)


# Create singleton instances
support_ticket = CRUDSupportTicket(SupportTicket, SupportTicketMessage)
landlord_support_ticket = CRUDLandlordSupportTicket(LandlordSupportTicket, LandlordSupportTicketMessage)


def get_recent_open_landlord_tickets(db: Session, since, limit: int = 10) -> List[LandlordSupportTicket]:
    stmt = (
        select(LandlordSupportTicket)
        .where(LandlordSupportTicket.status == TicketStatus.open, LandlordSupportTicket.created_at >= since)
        .options(selectinload(LandlordSupportTicket.tenant))
        .order_by(LandlordSupportTicket.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def get_recent_tenant_replies(db: Session, since, limit: int = 10) -> List[LandlordSupportTicketMessage]:
    """Messages posted by tenants (not the landlord) since the given time."""
    stmt = (
        select(LandlordSupportTicketMessage)
        .where(
            LandlordSupportTicketMessage.created_at >= since,
            LandlordSupportTicketMessage.is_landlord.is_(False),
        )
        .options(selectinload(LandlordSupportTicketMessage.ticket).selectinload(LandlordSupportTicket.tenant))
        .order_by(LandlordSupportTicketMessage.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())

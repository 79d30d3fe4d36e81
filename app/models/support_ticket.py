import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin, JSONType

class TicketStatus(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"

class TicketPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"

class SupportTicket(Base, TimestampMixin):
    """Customer -> store ticket."""
    __tablename__ = "support_ticket"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.open)
    priority = Column(Enum(TicketPriority), nullable=False, default=TicketPriority.medium)

    user = relationship("User")
    messages = relationship(
        "SupportTicketMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="SupportTicketMessage.id",
    )

class SupportTicketMessage(Base, TimestampMixin):
    __tablename__ = "support_ticket_message"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("support_ticket.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=False)
    attachments = Column(JSONType, nullable=True, default=list)
    is_staff = Column(Boolean, nullable=False, default=False)  # written by the store, not the customer

    ticket = relationship("SupportTicket", back_populates="messages")

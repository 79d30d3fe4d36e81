import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin, JSONType
from app.models.support_ticket import TicketStatus, TicketPriority

class TicketCategory(str, enum.Enum):
    billing = "billing"
    technical = "technical"
    feature_request = "feature_request"
    bug_report = "bug_report"
    account = "account"
    other = "other"

class LandlordSupportTicket(Base, TimestampMixin):
    """Tenant -> platform ticket."""
    __tablename__ = "landlord_support_ticket"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Enum(TicketCategory), nullable=False, default=TicketCategory.other)
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.open)
    priority = Column(Enum(TicketPriority), nullable=False, default=TicketPriority.medium)

    tenant = relationship("Tenant")
    messages = relationship(
        "LandlordSupportTicketMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="LandlordSupportTicketMessage.id",
    )

class LandlordSupportTicketMessage(Base, TimestampMixin):
    __tablename__ = "landlord_support_ticket_message"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("landlord_support_ticket.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=False)
    attachments = Column(JSONType, nullable=True, default=list)
    is_landlord = Column(Boolean, nullable=False, default=False)

    ticket = relationship("LandlordSupportTicket", back_populates="messages")

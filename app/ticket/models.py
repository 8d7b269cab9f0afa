# app/ticket/models.py
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.types import TypeDecorator
from app.core.database import Base


class TicketStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamps stored as UTC and always loaded back as aware UTC.

    SQLite keeps no offset, so naive values read from it are UTC by construction.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    customer_name = Column(String, index=True, nullable=False)
    customer_phone = Column(String, index=True, nullable=False)
    status = Column(String, default=TicketStatus.OPEN.value, server_default=TicketStatus.OPEN.value, nullable=False)
    notes = Column(Text, default="", server_default="", nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} status={self.status!r}>"

# app/ticket/services.py
import logging

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import NotFoundError, StorageError, ValidationError
from app.ticket.models import Ticket, TicketStatus, utcnow

logger = logging.getLogger(__name__)

# ids are SQL INTEGER primary keys; anything outside that range cannot exist
MAX_TICKET_ID = 2**63 - 1


def _contains(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TicketStore:
    """Owns every read and write of the ``tickets`` table.

    One instance per request, wrapping that request's session. Each public
    method issues a single statement and commits it.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, title: str, description: str, customer_name: str, customer_phone: str) -> Ticket:
        db_ticket = Ticket(
            title=title,
            description=description,
            customer_name=customer_name,
            customer_phone=customer_phone,
            status=TicketStatus.OPEN.value,
            notes="",
        )
        try:
            self.db.add(db_ticket)
            self.db.commit()
            self.db.refresh(db_ticket)
        except SQLAlchemyError as exc:
            self._fail(exc, "Failed to create ticket")
        logger.info("Created ticket %s", db_ticket.id)
        return db_ticket

    def get_by_id(self, ticket_id: int) -> Ticket:
        if not 1 <= ticket_id <= MAX_TICKET_ID:
            raise NotFoundError()
        try:
            db_ticket = self.db.get(Ticket, ticket_id)
        except SQLAlchemyError as exc:
            self._fail(exc, "Failed to fetch ticket")
        if db_ticket is None:
            raise NotFoundError()
        return db_ticket

    def list(self, name: str | None = None, phone: str | None = None) -> list[Ticket]:
        query = self.db.query(Ticket)
        if name:
            query = query.filter(Ticket.customer_name.ilike(_contains(name), escape="\\"))
        if phone:
            query = query.filter(Ticket.customer_phone.ilike(_contains(phone), escape="\\"))
        try:
            return query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()
        except SQLAlchemyError as exc:
            self._fail(exc, "Failed to fetch tickets")

    def update_status(self, ticket_id: int, status: TicketStatus | str) -> Ticket:
        try:
            status = TicketStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in TicketStatus)
            raise ValidationError(f"Invalid status '{status}'. Allowed values are: {allowed}.")
        return self._update(ticket_id, status=status.value)

    def update_notes(self, ticket_id: int, notes: str) -> Ticket:
        return self._update(ticket_id, notes=notes)

    def _update(self, ticket_id: int, **values) -> Ticket:
        db_ticket = self.get_by_id(ticket_id)
        for field, value in values.items():
            setattr(db_ticket, field, value)
        db_ticket.updated_at = utcnow()
        try:
            self.db.commit()
            self.db.refresh(db_ticket)
        except SQLAlchemyError as exc:
            self._fail(exc, "Failed to update ticket")
        logger.info("Updated ticket %s: %s", ticket_id, ", ".join(values))
        return db_ticket

    def _fail(self, exc: SQLAlchemyError, message: str):
        self.db.rollback()
        logger.exception("%s", message)
        raise StorageError(message) from exc


def get_ticket_store(db: Session = Depends(get_db)) -> TicketStore:
    return TicketStore(db)

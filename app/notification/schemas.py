# app/notification/schemas.py
import json
from typing import Literal

from pydantic import Field

from app.ticket.schemas import CamelModel

Priority = Literal["high", "medium", "low"]


class TicketCreatedEvent(CamelModel):
    """What the task-routing service learns about a newly created ticket."""

    ticket_id: int
    title: str
    description: str
    customer_name: str
    customer_phone: str
    origin: str = "Unknown"
    priority: Priority
    timestamp: str
    channel: str = "support-ticket"

    def to_attributes(self) -> str:
        return json.dumps({"type": "support-ticket", **self.model_dump(by_alias=True)})


class DispatchOutcome(CamelModel):
    success: bool = True
    task_created: bool = False
    task_sid: str | None = None
    task_status: str | None = None
    warning: str | None = None


class WebhookTicket(CamelModel):
    ticket_id: int
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    origin: str | None = None

    @property
    def id(self) -> int:
        return self.ticket_id

# app/ticket/schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.ticket.models import TicketStatus


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketBase(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)


class TicketCreate(TicketBase):
    pass


class TicketUpdate(CamelModel):
    """Either a status change or a notes overwrite, never both in one request."""

    status: TicketStatus | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def exactly_one_change(self) -> "TicketUpdate":
        # a key sent as null still counts as present
        if {"status", "notes"} <= self.model_fields_set:
            raise ValueError("Cannot update both status and notes in one request")
        if self.status is None and self.notes is None:
            raise ValueError("One of status or notes is required")
        return self


class TicketOut(TicketBase):
    id: int
    status: TicketStatus
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

# app/ui/routes.py
from pathlib import Path

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.ticket.models import TicketStatus

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

router = APIRouter(tags=["UI"], include_in_schema=False)

STATUSES = [s.value for s in TicketStatus]


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    name: str | None = Query(default=None),
    phone: str | None = Query(default=None),
):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"name": name or "", "phone": phone or "", "statuses": STATUSES},
    )


@router.get("/task", response_class=HTMLResponse)
def task(
    request: Request,
    ticket_id: str | None = Query(default=None, alias="ticketId"),
    origin: str | None = Query(default=None),
    priority: str | None = Query(default=None),
):
    """Agent view opened from the task-routing service's deep link."""
    return templates.TemplateResponse(
        request,
        "task.html",
        {
            "ticket_id": ticket_id or "",
            "origin": origin or "Not provided",
            "priority": priority or "Not provided",
            "statuses": STATUSES,
        },
    )

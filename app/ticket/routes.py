# app/ticket/routes.py
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from app.notification.services import NotificationDispatcher, get_dispatcher
from app.ticket.schemas import TicketCreate, TicketOut, TicketUpdate
from app.ticket.services import TicketStore, get_ticket_store

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("", response_model=TicketOut, status_code=201)
def create(
    ticket: TicketCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    store: TicketStore = Depends(get_ticket_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    created = store.create(**ticket.model_dump())
    event = dispatcher.build_event(created, referer=request.headers.get("referer"))
    background_tasks.add_task(dispatcher.dispatch, event)
    return created


@router.get("", response_model=list[TicketOut])
def list_all(
    name: str | None = Query(default=None, description="Substring of the customer name"),
    phone: str | None = Query(default=None, description="Substring of the customer phone"),
    store: TicketStore = Depends(get_ticket_store),
):
    return store.list(name=name, phone=phone)


@router.get("/{ticket_id}", response_model=TicketOut)
def get(ticket_id: int, store: TicketStore = Depends(get_ticket_store)):
    return store.get_by_id(ticket_id)


@router.patch("/{ticket_id}", response_model=TicketOut)
def update(ticket_id: int, change: TicketUpdate, store: TicketStore = Depends(get_ticket_store)):
    if change.status is not None:
        return store.update_status(ticket_id, change.status)
    return store.update_notes(ticket_id, change.notes)

# app/notification/routes.py
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.notification.schemas import DispatchOutcome, WebhookTicket
from app.notification.services import NotificationDispatcher, get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["Notifications"])

INVALID_PAYLOAD = "Invalid ticket payload; support team not notified"


@router.post(
    "/taskrouter",
    response_model=DispatchOutcome,
    response_model_exclude_none=True,
    openapi_extra={"requestBody": {"content": {"application/json": {"schema": WebhookTicket.model_json_schema(by_alias=True)}}}},
)
async def taskrouter(request: Request, dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    """Route an already created ticket now and report how it went.

    Always answers 200, even for a payload it cannot read: a ticket that
    exists stays valid whether or not the support team could be notified.
    """
    try:
        ticket = WebhookTicket.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("Rejected task-routing webhook payload: %s", exc)
        return DispatchOutcome(warning=INVALID_PAYLOAD)

    event = dispatcher.build_event(ticket, referer=request.headers.get("referer"), origin=ticket.origin)
    return await run_in_threadpool(dispatcher.dispatch, event)

# app/notification/services.py
import logging
from datetime import datetime, timezone
from typing import Protocol
from urllib.parse import urlparse

import httpx
from fastapi import Request

from app.core.config import Settings
from app.core.errors import NotificationError
from app.notification.schemas import DispatchOutcome, Priority, TicketCreatedEvent

logger = logging.getLogger(__name__)

HIGH_PRIORITY_WORDS = ("urgent", "emergency", "down")
MEDIUM_PRIORITY_WORDS = ("bug", "error", "broken")

NOT_CONFIGURED = "TaskRouter integration not configured"
NOTIFY_FAILED = "Failed to notify support team"


def determine_priority(title: str, description: str) -> Priority:
    content = f"{title} {description}".lower()
    if any(word in content for word in HIGH_PRIORITY_WORDS):
        return "high"
    if any(word in content for word in MEDIUM_PRIORITY_WORDS):
        return "medium"
    return "low"


def derive_origin(referer: str | None, partner_origins: dict[str, str]) -> str:
    """Best-effort guess at which partner site sent the ticket.

    The Referer header is caller-controlled, so the result is provenance
    for routing only and must never be used for authorization.
    """
    if not referer:
        return "Unknown"
    host = (urlparse(referer).hostname or referer).lower()
    for fragment, tag in partner_origins.items():
        if fragment.lower() in host:
            return tag
    return "Unknown"


class TaskSink(Protocol):
    configured: bool

    def create_task(self, event: TicketCreatedEvent) -> dict: ...


class TaskRouterClient:
    """Creates one task per ticket in a TaskRouter workspace."""

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        workspace_sid: str | None,
        workflow_sid: str | None,
        base_url: str = "https://taskrouter.twilio.com/v1",
        task_channel: str = "default",
        transport: httpx.BaseTransport | None = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.workspace_sid = workspace_sid
        self.workflow_sid = workflow_sid
        self.base_url = base_url.rstrip("/")
        self.task_channel = task_channel
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.BaseTransport | None = None) -> "TaskRouterClient":
        return cls(
            account_sid=settings.TASKROUTER_ACCOUNT_SID,
            auth_token=settings.TASKROUTER_AUTH_TOKEN,
            workspace_sid=settings.TASKROUTER_WORKSPACE_SID,
            workflow_sid=settings.TASKROUTER_WORKFLOW_SID,
            base_url=settings.TASKROUTER_BASE_URL,
            task_channel=settings.TASKROUTER_TASK_CHANNEL,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return all((self.account_sid, self.auth_token, self.workspace_sid, self.workflow_sid))

    @property
    def tasks_url(self) -> str:
        return f"{self.base_url}/Workspaces/{self.workspace_sid}/Tasks"

    def create_task(self, event: TicketCreatedEvent) -> dict:
        if not self.configured:
            raise NotificationError(NOT_CONFIGURED)
        form = {
            "WorkflowSid": self.workflow_sid,
            "TaskChannel": self.task_channel,
            "Attributes": event.to_attributes(),
        }
        try:
            with httpx.Client(transport=self._transport) as client:
                response = client.post(self.tasks_url, data=form, auth=(self.account_sid, self.auth_token))
        except httpx.HTTPError as exc:
            raise NotificationError(f"TaskRouter request failed: {exc}") from exc
        if not response.is_success:
            raise NotificationError(f"TaskRouter answered {response.status_code}: {response.text}")
        return response.json()


class NotificationDispatcher:
    """One-way, at-most-once hand-off of created tickets to the task router.

    ``dispatch`` never raises; whatever goes wrong ends up in the log and in
    the returned outcome's warning.
    """

    def __init__(self, sink: TaskSink, partner_origins: dict[str, str] | None = None):
        self.sink = sink
        self.partner_origins = partner_origins or {}

    def build_event(self, ticket, referer: str | None = None, origin: str | None = None) -> TicketCreatedEvent:
        return TicketCreatedEvent(
            ticket_id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            customer_name=ticket.customer_name,
            customer_phone=ticket.customer_phone,
            origin=origin or derive_origin(referer, self.partner_origins),
            priority=determine_priority(ticket.title, ticket.description),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def dispatch(self, event: TicketCreatedEvent) -> DispatchOutcome:
        if not self.sink.configured:
            logger.warning("%s; ticket %s not routed", NOT_CONFIGURED, event.ticket_id)
            return DispatchOutcome(warning=NOT_CONFIGURED)
        try:
            result = self.sink.create_task(event)
        except NotificationError as exc:
            logger.warning("Ticket %s not routed: %s", event.ticket_id, exc.message)
            return DispatchOutcome(warning=NOTIFY_FAILED)
        except Exception:
            logger.exception("Unexpected failure routing ticket %s", event.ticket_id)
            return DispatchOutcome(warning=NOTIFY_FAILED)

        logger.info(
            "Routed ticket %s as task %s (priority=%s, origin=%s)",
            event.ticket_id, result.get("sid"), event.priority, event.origin,
        )
        return DispatchOutcome(
            task_created=True,
            task_sid=result.get("sid"),
            task_status=result.get("assignment_status"),
        )


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    return NotificationDispatcher(TaskRouterClient.from_settings(settings), settings.PARTNER_ORIGINS)


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher

"""
Service de notifications / Notification service.

Envoi "fire-and-forget" : un échec est journalisé, jamais propagé,
et n'annule jamais la transition qui l'a déclenché.
Fire-and-forget: a failure is logged, never raised, and never rolls back
the transition that triggered it.
"""

import enum
import logging
from dataclasses import dataclass, field

import httpx

from staffing.config import settings

log = logging.getLogger(__name__)


class TemplateKind(str, enum.Enum):
    """Types de message / Message kinds."""
    ASSIGNMENT_CREATED = "assignment_created"
    ASSIGNMENT_STATUS_CHANGED = "assignment_status_changed"
    CONFIRMATION_REQUEST = "confirmation_request"
    DAY_REMINDER = "day_reminder"


@dataclass
class NotificationRequest:
    recipient: str
    template_kind: TemplateKind
    parameters: dict = field(default_factory=dict)


class Notifier:
    """Interface du collaborateur de notification / Notification collaborator interface."""

    async def send(self, request: NotificationRequest) -> None:
        try:
            await self._deliver(request)
        except Exception:
            # Pas de retry, pas de rollback / No retry, no rollback
            log.exception("Notification %s to %s failed", request.template_kind.value, request.recipient)

    async def _deliver(self, request: NotificationRequest) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Journalise seulement (dev) / Log only (dev)."""

    async def _deliver(self, request: NotificationRequest) -> None:
        log.info(
            "Notification %s -> %s %s",
            request.template_kind.value,
            request.recipient,
            request.parameters,
        )


class WebhookNotifier(Notifier):
    """POST JSON vers le service d'envoi externe / POST JSON to the external dispatch service."""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    async def _deliver(self, request: NotificationRequest) -> None:
        payload = {
            "recipient": request.recipient,
            "template_kind": request.template_kind.value,
            "parameters": request.parameters,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.url, json=payload)
            resp.raise_for_status()
        log.info("Notification %s dispatched to %s", request.template_kind.value, request.recipient)


class DisabledNotifier(Notifier):
    async def _deliver(self, request: NotificationRequest) -> None:
        log.debug("Notifications disabled, skipping %s to %s", request.template_kind.value, request.recipient)


def get_notifier() -> Notifier:
    """Dependance FastAPI / FastAPI dependency."""
    if not settings.NOTIFICATIONS_ENABLED:
        return DisabledNotifier()
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFICATION_WEBHOOK_URL, settings.NOTIFICATION_TIMEOUT_SECONDS)
    return LoggingNotifier()

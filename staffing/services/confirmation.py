"""
Workflow de confirmation client / Customer confirmation workflow.

tentative -> pending_confirm à l'envoi, puis confirmed (acceptation)
ou tentative (refus). L'expiration est indicative : aucune remise
en tentative automatique.
tentative -> pending_confirm on send, then confirmed (accept) or
tentative (decline). Expiry is advisory: nothing reverts automatically.
"""

import logging
import secrets
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.config import settings
from staffing.models.assignment import Assignment, BookingStatus
from staffing.models.confirmation_request import ConfirmationRequest, ConfirmationStatus
from staffing.models.project import Project
from staffing.services.assignment_manager import AssignmentManager
from staffing.services.booking_status import BookingStatusMachine
from staffing.services.errors import InvalidTransitionError, NotFoundError, SchedulingValidationError
from staffing.services.notifications import NotificationRequest, Notifier, TemplateKind

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_expired(request: ConfirmationRequest, now: datetime | None = None) -> bool:
    return (now or _utcnow()) > request.expires_at


def confirm_url(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/confirm/{token}"


@dataclass
class PendingConfirmation:
    request: ConfirmationRequest
    is_expired: bool


class ConfirmationWorkflow:

    def __init__(self, db: AsyncSession, notifier: Notifier | None = None):
        self.manager = AssignmentManager(db, notifier)
        self.store = self.manager.store
        self.notifier = self.manager.notifier

    @property
    def db(self) -> AsyncSession:
        return self.store.db

    async def create(
        self,
        project_id: int,
        assignment_ids: Iterable[int],
        email: str,
        name: str | None = None,
        created_by: int | None = None,
    ) -> ConfirmationRequest:
        """
        Envoyer une demande de confirmation / Send a confirmation request.
        Toutes les affectations doivent être tentative, sinon rien n'est écrit.
        Every assignment must be tentative, otherwise nothing is written.
        """
        project = await self.store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)

        ids = list(dict.fromkeys(assignment_ids))
        if not ids:
            raise SchedulingValidationError("At least one assignment is required")
        try:
            email = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise SchedulingValidationError(f"Invalid email address: {e}")

        found = await self.store.assignments_by_ids(ids)
        offenders = [
            i for i in ids
            if i not in found
            or found[i].project_id != project_id
            or not BookingStatusMachine.can_send_for_confirmation(found[i].booking_status)
        ]
        if offenders:
            raise InvalidTransitionError(
                "Only tentative assignments of this project can be sent for confirmation "
                f"(ineligible: {', '.join(str(i) for i in offenders)})"
            )

        assignments = [found[i] for i in ids]
        for assignment in assignments:
            new_status = BookingStatusMachine.send_for_confirmation(assignment.booking_status)
            await self.manager.set_status(assignment, new_status, created_by, f"Sent for confirmation to {email}")

        sent_at = _utcnow()
        request = ConfirmationRequest(
            project_id=project_id,
            token=secrets.token_urlsafe(32),
            sent_to_email=email,
            sent_to_name=name,
            status=ConfirmationStatus.PENDING,
            created_by=created_by,
            sent_at=sent_at,
            expires_at=sent_at + timedelta(days=settings.CONFIRMATION_EXPIRY_DAYS),
            responded_at=None,
            decline_reason=None,
            assignments=assignments,
        )
        self.db.add(request)
        await self.db.flush()
        log.info(
            "Confirmation request %s sent for project %s (%d assignment(s))",
            request.id, project_id, len(assignments),
        )

        await self._notify(request, project, assignments)
        return request

    async def get_by_token(self, token: str) -> ConfirmationRequest:
        request = await self.store.get_confirmation_by_token(token)
        if request is None:
            raise NotFoundError("Confirmation request", token)
        return request

    async def respond(self, token: str, accept: bool, decline_reason: str | None = None) -> ConfirmationRequest:
        """
        Réponse du client / Customer response.

        Passé l'expiration, la demande est marquée expired et renvoyée telle
        quelle, sans toucher aux affectations ; l'appelant refuse la réponse.
        Past expiry the request is marked expired and returned as is, with
        assignments untouched; the caller rejects the response.
        """
        request = await self.get_by_token(token)
        if request.status != ConfirmationStatus.PENDING:
            raise InvalidTransitionError(f"Confirmation request already {request.status.value}")

        now = _utcnow()
        if is_expired(request, now):
            request.status = ConfirmationStatus.EXPIRED
            await self.db.flush()
            log.info("Confirmation request %s answered after expiry", request.id)
            return request

        note = "Accepted by customer" if accept else f"Declined by customer: {decline_reason or 'no reason given'}"
        for assignment in request.assignments:
            if assignment.booking_status != BookingStatus.PENDING_CONFIRM:
                log.warning(
                    "Assignment %s no longer pending confirmation (%s), skipped",
                    assignment.id, assignment.booking_status.value,
                )
                continue
            new_status = BookingStatusMachine.customer_response(assignment.booking_status, accept)
            await self.manager.set_status(assignment, new_status, None, note)

        request.status = ConfirmationStatus.CONFIRMED if accept else ConfirmationStatus.DECLINED
        request.responded_at = now
        if not accept:
            request.decline_reason = decline_reason
        await self.db.flush()
        log.info("Confirmation request %s %s", request.id, request.status.value)
        return request

    async def list_pending(self, project_id: int | None = None) -> list[PendingConfirmation]:
        now = _utcnow()
        requests = await self.store.pending_confirmations(project_id)
        return [PendingConfirmation(request=r, is_expired=is_expired(r, now)) for r in requests]

    async def resend(self, request_id: int) -> ConfirmationRequest:
        """Renvoyer et prolonger l'échéance (même lien) / Resend and extend the deadline (same link)."""
        request = await self._require_pending(request_id)
        request.sent_at = _utcnow()
        request.expires_at = request.sent_at + timedelta(days=settings.CONFIRMATION_EXPIRY_DAYS)
        await self.db.flush()
        await self._notify(request, request.project, request.assignments)
        return request

    async def cancel(self, request_id: int, changed_by: int | None = None) -> list[int]:
        """Annuler : affectations remises en tentative / Cancel: assignments back to tentative."""
        request = await self._require_pending(request_id)
        reverted: list[int] = []
        for assignment in request.assignments:
            if assignment.booking_status != BookingStatus.PENDING_CONFIRM:
                continue
            new_status = BookingStatusMachine.cancel_confirmation(assignment.booking_status)
            await self.manager.set_status(assignment, new_status, changed_by, "Confirmation request cancelled")
            reverted.append(assignment.id)
        await self.store.delete_confirmation(request)
        log.info("Confirmation request %s cancelled, %d assignment(s) reverted", request_id, len(reverted))
        return reverted

    async def _require_pending(self, request_id: int) -> ConfirmationRequest:
        request = await self.store.get_confirmation(request_id)
        if request is None:
            raise NotFoundError("Confirmation request", request_id)
        if request.status != ConfirmationStatus.PENDING:
            raise InvalidTransitionError(f"Confirmation request already {request.status.value}")
        return request

    async def _notify(self, request: ConfirmationRequest, project: Project, assignments: list[Assignment]) -> None:
        users = [await self.store.get_user(a.user_id) for a in assignments]
        await self.notifier.send(NotificationRequest(
            recipient=request.sent_to_email,
            template_kind=TemplateKind.CONFIRMATION_REQUEST,
            parameters={
                "recipient_name": request.sent_to_name,
                "project_name": project.client_name,
                "start_date": project.start_date.isoformat() if project.start_date else None,
                "end_date": project.end_date.isoformat() if project.end_date else None,
                "assignees": [u.display_name for u in users if u is not None],
                "confirm_url": confirm_url(request.token),
                "expires_at": request.expires_at.isoformat(),
            },
        ))

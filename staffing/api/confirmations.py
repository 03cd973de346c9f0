"""
Routes Confirmations client / Customer confirmation routes.

Les routes /public/{token} ne demandent pas d'authentification : le token
fait office de secret. Elles sont limitées en débit.
The /public/{token} routes need no authentication: the token is the
secret. They are rate limited.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.api.deps import require_permission
from staffing.config import settings
from staffing.database import get_db
from staffing.models.confirmation_request import ConfirmationRequest, ConfirmationStatus
from staffing.models.user import User
from staffing.rate_limit import limiter
from staffing.schemas.confirmation import (
    CancelConfirmationResponse,
    ConfirmationAnswer,
    ConfirmationAssignment,
    ConfirmationCreate,
    ConfirmationPublicView,
    ConfirmationRead,
)
from staffing.services.confirmation import ConfirmationWorkflow, confirm_url, is_expired
from staffing.services.notifications import Notifier, get_notifier

router = APIRouter()


def _to_read(request: ConfirmationRequest) -> ConfirmationRead:
    return ConfirmationRead(
        id=request.id,
        project_id=request.project_id,
        token=request.token,
        sent_to_email=request.sent_to_email,
        sent_to_name=request.sent_to_name,
        status=request.status,
        sent_at=request.sent_at,
        expires_at=request.expires_at,
        responded_at=request.responded_at,
        decline_reason=request.decline_reason,
        assignment_ids=[a.id for a in request.assignments],
        confirm_url=confirm_url(request.token),
        is_expired=is_expired(request),
    )


def _to_public(request: ConfirmationRequest) -> ConfirmationPublicView:
    return ConfirmationPublicView(
        project_name=request.project.client_name,
        start_date=request.project.start_date,
        end_date=request.project.end_date,
        sent_to_name=request.sent_to_name,
        status=request.status,
        expires_at=request.expires_at,
        is_expired=is_expired(request),
        assignments=[
            ConfirmationAssignment(
                assignment_id=a.id,
                user_name=a.user.display_name,
                booking_status=a.booking_status,
            )
            for a in request.assignments
        ],
    )


@router.post("/", response_model=ConfirmationRead, status_code=201)
async def create_confirmation(
    data: ConfirmationCreate,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("confirmations", "create")),
):
    """Envoyer des affectations tentative au client / Send tentative assignments to the customer."""
    request = await ConfirmationWorkflow(db, notifier).create(
        data.project_id, data.assignment_ids, data.email, data.name, created_by=user.id
    )
    return _to_read(request)


@router.get("/pending", response_model=list[ConfirmationRead])
async def list_pending_confirmations(
    project_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("confirmations", "read")),
):
    """Demandes en attente, expirées signalées / Pending requests, expired ones flagged."""
    pending = await ConfirmationWorkflow(db).list_pending(project_id)
    return [_to_read(item.request) for item in pending]


@router.post("/{request_id}/resend", response_model=ConfirmationRead)
async def resend_confirmation(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("confirmations", "update")),
):
    return _to_read(await ConfirmationWorkflow(db, notifier).resend(request_id))


@router.delete("/{request_id}", response_model=CancelConfirmationResponse)
async def cancel_confirmation(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("confirmations", "delete")),
):
    """Annuler la demande ; affectations remises en tentative / Cancel; assignments back to tentative."""
    reverted = await ConfirmationWorkflow(db, notifier).cancel(request_id, changed_by=user.id)
    return CancelConfirmationResponse(reverted_assignment_ids=reverted)


# --- Public (client) ---

@router.get("/public/{token}", response_model=ConfirmationPublicView)
@limiter.limit(settings.RATE_LIMIT_CONFIRM)
async def view_confirmation(request: Request, token: str, db: AsyncSession = Depends(get_db)):
    return _to_public(await ConfirmationWorkflow(db).get_by_token(token))


@router.post("/public/{token}", response_model=ConfirmationPublicView)
@limiter.limit(settings.RATE_LIMIT_CONFIRM)
async def respond_to_confirmation(
    request: Request,
    token: str,
    data: ConfirmationAnswer,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Accepter ou refuser / Accept or decline. 410 si le lien a expiré / 410 if the link expired."""
    confirmation = await ConfirmationWorkflow(db, notifier).respond(token, data.accept, data.decline_reason)
    if confirmation.status == ConfirmationStatus.EXPIRED:
        # Pas d'exception : le statut expired doit être enregistré / No raise: the expired status must be committed
        return JSONResponse(status_code=410, content={"detail": "This confirmation link has expired"})
    return _to_public(confirmation)

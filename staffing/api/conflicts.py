"""
Routes Conflits / Conflict routes.
Doubles réservations non résolues et dérogation motivée.
Unresolved double bookings and reasoned override.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.api.deps import require_permission
from staffing.database import get_db
from staffing.models.user import User
from staffing.schemas.conflict import ConflictOverride, ConflictRead
from staffing.services.conflict_detector import ConflictDetector
from staffing.services.scheduling_store import SchedulingStore

router = APIRouter()


@router.get("/", response_model=list[ConflictRead])
async def list_unresolved_conflicts(
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("conflicts", "read")),
):
    """Conflits non résolus, par date / Unresolved conflicts, by date."""
    return await ConflictDetector(SchedulingStore(db)).list_unresolved(user_id)


@router.post("/{conflict_id}/override", response_model=ConflictRead)
async def override_conflict(
    conflict_id: int,
    data: ConflictOverride,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("conflicts", "update")),
):
    """Accepter la double réservation avec un motif / Accept the double booking with a reason."""
    return await ConflictDetector(SchedulingStore(db)).override(conflict_id, data.reason, user.id)

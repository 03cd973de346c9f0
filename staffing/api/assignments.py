"""
Routes Affectations / Assignment routes.
Affectations, statut, jours planifiés et dates exclues.
Assignments, status, scheduled days and excluded dates.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.api.deps import require_permission
from staffing.database import get_db
from staffing.models.user import User
from staffing.schemas.assignment import (
    AddDaysRequest,
    AddDaysResponse,
    AssignmentCreate,
    AssignmentRead,
    CreateAssignmentResponse,
    DayMoveRequest,
    DayRead,
    DayTimeUpdate,
    DayWriteResultRead,
    ExcludeDatesRequest,
    ExclusionResultRead,
    IdsRequest,
    MoveDayResponse,
    ReminderRequest,
    ReminderResponse,
    RemovedResponse,
    StatusChangeRequest,
    StatusHistoryRead,
)
from staffing.schemas.conflict import ConflictRead
from staffing.services.assignment_manager import AssignmentManager, DayEntry
from staffing.services.errors import NotFoundError
from staffing.services.notifications import Notifier, get_notifier

router = APIRouter()


async def _read(manager: AssignmentManager, assignment_id: int):
    """Recharger avec jours et exclusions / Reload with days and exclusions."""
    assignment = await manager.store.get_assignment(assignment_id, with_children=True)
    if assignment is None:
        raise NotFoundError("Assignment", assignment_id)
    return assignment


@router.post("/", response_model=CreateAssignmentResponse, status_code=201)
async def create_assignment(
    data: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("assignments", "create")),
):
    """Affecter une personne à un projet / Assign a person to a project (409 si déjà affectée / if already assigned)."""
    manager = AssignmentManager(db, notifier)
    result = await manager.create_assignment(
        data.project_id, data.user_id, data.initial_status, data.notes, created_by=user.id
    )
    return CreateAssignmentResponse(
        assignment=AssignmentRead.model_validate(await _read(manager, result.assignment.id)),
        conflicts=[ConflictRead.model_validate(c) for c in result.conflicts],
    )


@router.get("/{assignment_id}", response_model=AssignmentRead)
async def get_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "read")),
):
    return await _read(AssignmentManager(db), assignment_id)


@router.delete("/{assignment_id}", status_code=204)
async def remove_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "delete")),
):
    """Annuler l'affectation (jours et exclusions supprimés) / Cancel the assignment (days and exclusions removed)."""
    await AssignmentManager(db).remove_assignment(assignment_id)


@router.get("/{assignment_id}/history", response_model=list[StatusHistoryRead])
async def get_status_history(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "read")),
):
    manager = AssignmentManager(db)
    await _read(manager, assignment_id)
    return await manager.store.status_history(assignment_id)


@router.get("/{assignment_id}/conflicts", response_model=list[ConflictRead])
async def get_assignment_conflicts(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("conflicts", "read")),
):
    """Tous les conflits de l'affectation, résolus inclus / All conflicts of the assignment, resolved included."""
    manager = AssignmentManager(db)
    await _read(manager, assignment_id)
    return await manager.store.list_conflicts(assignment_id=assignment_id, unresolved_only=False)


# --- Statut / Status ---

@router.post("/{assignment_id}/cycle", response_model=AssignmentRead)
async def cycle_status(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("assignments", "update")),
):
    """Clic sur l'indicateur : draft -> pending_confirm -> confirmed -> draft / Indicator click."""
    manager = AssignmentManager(db, notifier)
    await manager.cycle_status(assignment_id, changed_by=user.id)
    return await _read(manager, assignment_id)


@router.post("/{assignment_id}/release", response_model=AssignmentRead)
async def release_assignment(
    assignment_id: int,
    data: StatusChangeRequest | None = None,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("assignments", "update")),
):
    """draft -> tentative."""
    manager = AssignmentManager(db, notifier)
    await manager.release(assignment_id, changed_by=user.id, note=data.note if data else None)
    return await _read(manager, assignment_id)


@router.post("/{assignment_id}/complete", response_model=AssignmentRead)
async def complete_assignment(
    assignment_id: int,
    data: StatusChangeRequest | None = None,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("assignments", "update")),
):
    """confirmed -> complete."""
    manager = AssignmentManager(db, notifier)
    await manager.complete(assignment_id, changed_by=user.id, note=data.note if data else None)
    return await _read(manager, assignment_id)


# --- Jours / Days ---

@router.post("/{assignment_id}/days", response_model=AddDaysResponse)
async def add_days(
    assignment_id: int,
    data: AddDaysRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    """
    Ajouter ou modifier des jours / Add or overwrite days.
    Résultat par date ; les conflits sont signalés, jamais bloquants.
    Per-date result; conflicts are flagged, never blocking.
    """
    result = await AssignmentManager(db).add_days(
        assignment_id,
        [DayEntry(date=d.date, start_time=d.start_time, end_time=d.end_time) for d in data.days],
    )
    return AddDaysResponse(
        written=result.written,
        rejected=result.rejected,
        results=[DayWriteResultRead.model_validate(r) for r in result.results],
        conflicts=[ConflictRead.model_validate(c) for c in result.conflicts],
    )


@router.post("/{assignment_id}/days/remove", response_model=RemovedResponse)
async def remove_days(
    assignment_id: int,
    data: IdsRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    manager = AssignmentManager(db)
    assignment = await _read(manager, assignment_id)
    own_ids = {day.id for day in assignment.days}
    return RemovedResponse(removed=await manager.remove_days(i for i in data.ids if i in own_ids))


@router.put("/days/{day_id}", response_model=DayRead)
async def adjust_day_time(
    day_id: int,
    data: DayTimeUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    return await AssignmentManager(db).adjust_day_time(day_id, data.start_time, data.end_time)


@router.post("/days/{day_id}/move", response_model=MoveDayResponse)
async def move_day(
    day_id: int,
    data: DayMoveRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    """Glisser-déposer d'un jour / Drag and drop of a day."""
    result = await AssignmentManager(db).move_day(day_id, data.new_date)
    return MoveDayResponse(
        day=DayRead.model_validate(result.day),
        conflicts=[ConflictRead.model_validate(c) for c in result.conflicts],
    )


# --- Dates exclues / Excluded dates ---

@router.post("/{assignment_id}/exclusions", response_model=list[ExclusionResultRead])
async def exclude_dates(
    assignment_id: int,
    data: ExcludeDatesRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    """Exclure des dates (idempotent) / Exclude dates (idempotent)."""
    return await AssignmentManager(db).exclude_dates(assignment_id, data.dates, data.reason, created_by=user.id)


@router.post("/{assignment_id}/exclusions/remove", response_model=RemovedResponse)
async def remove_excluded_dates(
    assignment_id: int,
    data: IdsRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    manager = AssignmentManager(db)
    assignment = await _read(manager, assignment_id)
    own_ids = {row.id for row in assignment.excluded_dates}
    return RemovedResponse(removed=await manager.remove_excluded_dates(i for i in data.ids if i in own_ids))


# --- Rappels / Reminders ---

@router.post("/reminders", response_model=ReminderResponse)
async def send_day_reminders(
    data: ReminderRequest,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("assignments", "update")),
):
    """Rappel aux personnes planifiées ce jour-là / Remind everyone scheduled that day."""
    sent = await AssignmentManager(db, notifier).send_day_reminders(data.work_date)
    return ReminderResponse(work_date=data.work_date, sent=sent)

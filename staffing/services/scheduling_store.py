"""
Accès aux données du planning / Scheduling data access.

Seul point de contact du moteur avec SQLAlchemy : requêtes explicites,
aucun état global en cache.
The engine's only contact with SQLAlchemy: explicit queries, no cached global state.
"""

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staffing.models.assignment import Assignment, BookingStatus
from staffing.models.assignment_day import AssignmentDay
from staffing.models.booking_conflict import BookingConflict
from staffing.models.booking_status_history import BookingStatusHistory
from staffing.models.confirmation_request import ConfirmationRequest, ConfirmationStatus
from staffing.models.excluded_date import ExcludedDate
from staffing.models.project import Project
from staffing.models.user import User
from staffing.services.errors import AlreadyAssignedError

log = logging.getLogger(__name__)

_CONFIRMATION_LOAD = (
    selectinload(ConfirmationRequest.project),
    selectinload(ConfirmationRequest.assignments).selectinload(Assignment.user),
)


class SchedulingStore:
    """Collaborateur de persistance / Persistence collaborator."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Projets / Projects ---

    async def get_project(self, project_id: int) -> Project | None:
        return await self.db.get(Project, project_id)

    async def get_user(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    # --- Affectations / Assignments ---

    async def get_assignment(self, assignment_id: int, with_children: bool = False) -> Assignment | None:
        query = select(Assignment).where(Assignment.id == assignment_id)
        if with_children:
            query = query.options(
                selectinload(Assignment.days),
                selectinload(Assignment.excluded_dates),
                selectinload(Assignment.user),
                selectinload(Assignment.project),
            ).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_assignment(self, project_id: int, user_id: int) -> Assignment | None:
        result = await self.db.execute(
            select(Assignment).where(Assignment.project_id == project_id, Assignment.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def insert_assignment(self, assignment: Assignment) -> Assignment:
        """
        Insertion atomique via la contrainte unique (projet, personne) /
        Atomic insert guarded by the (project, user) unique constraint.
        Le perdant d'une course reçoit AlreadyAssignedError / A race loser gets AlreadyAssignedError.
        """
        self.db.add(assignment)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            log.info("Duplicate assignment rejected for project=%s user=%s", assignment.project_id, assignment.user_id)
            existing = await self.find_assignment(assignment.project_id, assignment.user_id)
            raise AlreadyAssignedError(
                assignment.project_id, assignment.user_id, existing.id if existing else None
            )
        return assignment

    async def project_assignments(self, project_id: int) -> list[Assignment]:
        result = await self.db.execute(
            select(Assignment)
            .where(Assignment.project_id == project_id)
            .options(selectinload(Assignment.user))
            .order_by(Assignment.id)
        )
        return list(result.scalars().all())

    async def assignments_by_ids(self, assignment_ids: Iterable[int]) -> dict[int, Assignment]:
        ids = list(assignment_ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(Assignment).where(Assignment.id.in_(ids)).options(selectinload(Assignment.user))
        )
        return {a.id: a for a in result.scalars().all()}

    async def lock_user_schedule(self, user_id: int) -> None:
        """
        Sérialise les écritures de jours d'une personne (SELECT ... FOR UPDATE) /
        Serialize a user's day writes (SELECT ... FOR UPDATE).
        Ignoré par SQLite / Ignored by SQLite.
        """
        await self.db.execute(select(User.id).where(User.id == user_id).with_for_update())

    def record_status_change(
        self,
        assignment: Assignment,
        new_status: BookingStatus,
        changed_by: int | None,
        note: str | None = None,
    ) -> BookingStatus | None:
        """Changer le statut + historique / Change status + history row. Returns the old status."""
        old_status = assignment.booking_status
        assignment.booking_status = new_status
        self.add_history(assignment.id, old_status, new_status, changed_by, note)
        return old_status

    def add_history(
        self,
        assignment_id: int,
        old_status: BookingStatus | None,
        new_status: BookingStatus,
        changed_by: int | None,
        note: str | None = None,
    ) -> None:
        self.db.add(BookingStatusHistory(
            assignment_id=assignment_id,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            changed_by=changed_by,
            note=note,
        ))

    async def status_history(self, assignment_id: int) -> list[BookingStatusHistory]:
        result = await self.db.execute(
            select(BookingStatusHistory)
            .where(BookingStatusHistory.assignment_id == assignment_id)
            .order_by(BookingStatusHistory.id)
        )
        return list(result.scalars().all())

    # --- Jours / Days ---

    async def get_day(self, day_id: int) -> AssignmentDay | None:
        return await self.db.get(AssignmentDay, day_id)

    async def days_by_ids(self, day_ids: Iterable[int]) -> list[AssignmentDay]:
        ids = list(day_ids)
        if not ids:
            return []
        result = await self.db.execute(select(AssignmentDay).where(AssignmentDay.id.in_(ids)))
        return list(result.scalars().all())

    async def day_on_date(self, assignment_id: int, work_date: date) -> AssignmentDay | None:
        result = await self.db.execute(
            select(AssignmentDay).where(
                AssignmentDay.assignment_id == assignment_id,
                AssignmentDay.work_date == work_date,
            )
        )
        return result.scalar_one_or_none()

    async def days_for_user_on_date(
        self,
        user_id: int,
        work_date: date,
        exclude_assignment_id: int | None = None,
    ) -> list[AssignmentDay]:
        """Jours d'une personne à une date, hors une affectation / A user's days on a date, minus one assignment."""
        query = (
            select(AssignmentDay)
            .join(Assignment, AssignmentDay.assignment_id == Assignment.id)
            .where(Assignment.user_id == user_id, AssignmentDay.work_date == work_date)
            .order_by(AssignmentDay.assignment_id)
        )
        if exclude_assignment_id is not None:
            query = query.where(AssignmentDay.assignment_id != exclude_assignment_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def days_for_user_between(self, user_id: int, start: date, end: date) -> list[AssignmentDay]:
        result = await self.db.execute(
            select(AssignmentDay)
            .join(Assignment, AssignmentDay.assignment_id == Assignment.id)
            .where(
                Assignment.user_id == user_id,
                AssignmentDay.work_date >= start,
                AssignmentDay.work_date <= end,
            )
            .options(selectinload(AssignmentDay.assignment).selectinload(Assignment.project))
            .order_by(AssignmentDay.work_date, AssignmentDay.start_time)
        )
        return list(result.scalars().all())

    async def days_on_date(self, work_date: date) -> list[AssignmentDay]:
        result = await self.db.execute(
            select(AssignmentDay)
            .where(AssignmentDay.work_date == work_date)
            .options(
                selectinload(AssignmentDay.assignment).selectinload(Assignment.user),
                selectinload(AssignmentDay.assignment).selectinload(Assignment.project),
            )
            .order_by(AssignmentDay.start_time)
        )
        return list(result.scalars().all())

    async def delete_days(self, days: Iterable[AssignmentDay]) -> None:
        for day in days:
            await self.db.delete(day)
        await self.db.flush()

    # --- Dates exclues / Excluded dates ---

    async def excluded_dates(self, assignment_id: int) -> set[date]:
        result = await self.db.execute(
            select(ExcludedDate.excluded_date).where(ExcludedDate.assignment_id == assignment_id)
        )
        return set(result.scalars().all())

    async def excluded_by_ids(self, excluded_ids: Iterable[int]) -> list[ExcludedDate]:
        ids = list(excluded_ids)
        if not ids:
            return []
        result = await self.db.execute(select(ExcludedDate).where(ExcludedDate.id.in_(ids)))
        return list(result.scalars().all())

    # --- Conflits / Conflicts ---

    async def find_conflict(
        self, user_id: int, conflict_date: date, assignment_a: int, assignment_b: int
    ) -> BookingConflict | None:
        """Conflit ouvert pour la même paire (non ordonnée) / Open conflict for the same unordered pair."""
        result = await self.db.execute(
            select(BookingConflict).where(
                BookingConflict.user_id == user_id,
                BookingConflict.conflict_date == conflict_date,
                BookingConflict.is_resolved.is_(False),
                or_(
                    and_(
                        BookingConflict.assignment_id_1 == assignment_a,
                        BookingConflict.assignment_id_2 == assignment_b,
                    ),
                    and_(
                        BookingConflict.assignment_id_1 == assignment_b,
                        BookingConflict.assignment_id_2 == assignment_a,
                    ),
                ),
            ).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_conflict(self, conflict_id: int) -> BookingConflict | None:
        return await self.db.get(BookingConflict, conflict_id)

    async def list_conflicts(
        self,
        user_id: int | None = None,
        assignment_id: int | None = None,
        unresolved_only: bool = True,
    ) -> list[BookingConflict]:
        query = select(BookingConflict).order_by(BookingConflict.conflict_date, BookingConflict.id)
        if unresolved_only:
            query = query.where(BookingConflict.is_resolved.is_(False))
        if user_id is not None:
            query = query.where(BookingConflict.user_id == user_id)
        if assignment_id is not None:
            query = query.where(
                or_(
                    BookingConflict.assignment_id_1 == assignment_id,
                    BookingConflict.assignment_id_2 == assignment_id,
                )
            )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # --- Demandes de confirmation / Confirmation requests ---

    async def get_confirmation(self, request_id: int) -> ConfirmationRequest | None:
        result = await self.db.execute(
            select(ConfirmationRequest)
            .where(ConfirmationRequest.id == request_id)
            .options(*_CONFIRMATION_LOAD)
        )
        return result.scalar_one_or_none()

    async def get_confirmation_by_token(self, token: str) -> ConfirmationRequest | None:
        result = await self.db.execute(
            select(ConfirmationRequest)
            .where(ConfirmationRequest.token == token)
            .options(*_CONFIRMATION_LOAD)
        )
        return result.scalar_one_or_none()

    async def pending_confirmations(self, project_id: int | None = None) -> list[ConfirmationRequest]:
        query = (
            select(ConfirmationRequest)
            .where(ConfirmationRequest.status == ConfirmationStatus.PENDING)
            .options(*_CONFIRMATION_LOAD)
            .order_by(ConfirmationRequest.expires_at)
        )
        if project_id is not None:
            query = query.where(ConfirmationRequest.project_id == project_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_confirmation(self, request: ConfirmationRequest) -> None:
        await self.db.delete(request)
        await self.db.flush()

    async def detach_conflicts(self, assignment_id: int) -> None:
        """Conserver les conflits d'une affectation annulée / Keep conflicts of a cancelled assignment."""
        await self.db.execute(
            update(BookingConflict)
            .where(BookingConflict.assignment_id_1 == assignment_id)
            .values(assignment_id_1=None)
        )
        await self.db.execute(
            update(BookingConflict)
            .where(BookingConflict.assignment_id_2 == assignment_id)
            .values(assignment_id_2=None)
        )

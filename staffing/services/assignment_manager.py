"""
Service de gestion des affectations / Assignment management service.

Seul écrivain des Assignment, AssignmentDay et ExcludedDate.
Sole writer of Assignment, AssignmentDay and ExcludedDate rows.

Les opérations en lot traitent chaque élément indépendamment et renvoient
un résultat par élément (jamais un simple booléen).
Bulk operations process each item independently and return a per-item
result (never a single boolean).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, time

from sqlalchemy.ext.asyncio import AsyncSession

from staffing.config import settings
from staffing.models.assignment import Assignment, BookingStatus
from staffing.models.assignment_day import AssignmentDay
from staffing.models.booking_conflict import BookingConflict
from staffing.models.excluded_date import ExcludedDate
from staffing.models.project import Project
from staffing.services.booking_status import BookingStatusMachine
from staffing.services.conflict_detector import ConflictDetector
from staffing.services.day_generator import DayGeneratorService
from staffing.services.errors import AlreadyAssignedError, NotFoundError, SchedulingValidationError
from staffing.services.notifications import NotificationRequest, Notifier, TemplateKind, get_notifier
from staffing.services.scheduling_store import SchedulingStore

log = logging.getLogger(__name__)

# Codes d'échec par élément / Per-item failure codes
OUT_OF_RANGE = "out_of_range"
EXCLUDED = "excluded"
INVALID_TIME = "invalid_time"


def parse_hhmm(value: str) -> time:
    hours, mins = map(int, value.split(":"))
    return time(hours, mins)


@dataclass
class DayEntry:
    date: date
    start_time: time | None = None
    end_time: time | None = None


@dataclass
class DayWriteResult:
    date: date
    success: bool
    day_id: int | None = None
    error: str | None = None
    message: str | None = None
    conflict_ids: list[int] = field(default_factory=list)


@dataclass
class AddDaysResult:
    written: int
    results: list[DayWriteResult]
    conflicts: list[BookingConflict]

    @property
    def rejected(self) -> int:
        return sum(1 for r in self.results if not r.success)


@dataclass
class ExclusionResult:
    date: date
    success: bool
    excluded_date_id: int | None = None
    already_excluded: bool = False
    # Un jour existe encore à cette date (à retirer par l'appelant) /
    # A day still exists on that date (caller should remove it)
    day_exists: bool = False
    error: str | None = None


@dataclass
class CreateAssignmentResult:
    assignment: Assignment
    conflicts: list[BookingConflict]


@dataclass
class MoveDayResult:
    day: AssignmentDay
    conflicts: list[BookingConflict]


class AssignmentManager:
    """Orchestration des affectations et de leurs jours / Orchestrates assignments and their days."""

    def __init__(self, db: AsyncSession, notifier: Notifier | None = None):
        self.store = SchedulingStore(db)
        self.detector = ConflictDetector(self.store)
        self.notifier = notifier or get_notifier()

    @property
    def db(self) -> AsyncSession:
        return self.store.db

    # =========================================================================
    # Affectations / Assignments
    # =========================================================================

    async def create_assignment(
        self,
        project_id: int,
        user_id: int,
        initial_status: BookingStatus = BookingStatus.DRAFT,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> CreateAssignmentResult:
        """Créer une affectation (échoue si déjà affecté) / Create an assignment (fails if already assigned)."""
        project = await self._require_project(project_id)
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        existing = await self.store.find_assignment(project_id, user_id)
        if existing is not None:
            raise AlreadyAssignedError(project_id, user_id, existing.id)

        assignment = Assignment(
            project_id=project_id,
            user_id=user_id,
            booking_status=initial_status,
            notes=notes,
            created_by=created_by,
        )
        await self.store.insert_assignment(assignment)
        self.store.add_history(assignment.id, None, initial_status, created_by, "Initial assignment")

        # Base de référence pour les ajouts de jours / Baseline for later day additions
        conflicts = await self.detector.detect(
            user_id,
            assignment.id,
            DayGeneratorService.generate_days(project.start_date, project.end_date),
        )
        await self.db.flush()
        log.info("Assignment %s created: project=%s user=%s", assignment.id, project_id, user_id)

        await self.notifier.send(NotificationRequest(
            recipient=user.email,
            template_kind=TemplateKind.ASSIGNMENT_CREATED,
            parameters={
                "assignment_id": assignment.id,
                "project_name": project.client_name,
                "start_date": project.start_date.isoformat() if project.start_date else None,
                "end_date": project.end_date.isoformat() if project.end_date else None,
                "booking_status": initial_status.value,
            },
        ))
        return CreateAssignmentResult(assignment=assignment, conflicts=conflicts)

    async def remove_assignment(self, assignment_id: int) -> None:
        """Annuler une affectation ; les conflits restent enregistrés / Cancel an assignment; conflicts stay recorded."""
        assignment = await self._require_assignment(assignment_id)
        await self.store.detach_conflicts(assignment.id)
        await self.db.delete(assignment)
        await self.db.flush()
        log.info("Assignment %s removed", assignment_id)

    async def cycle_status(self, assignment_id: int, changed_by: int | None = None) -> Assignment:
        """Clic sur l'indicateur de statut / Status indicator click."""
        assignment = await self._require_assignment(assignment_id)
        new_status = BookingStatusMachine.cycle(assignment.booking_status)
        await self._change_status(assignment, new_status, changed_by, "Manual cycle")
        return assignment

    async def release(self, assignment_id: int, changed_by: int | None = None, note: str | None = None) -> Assignment:
        """draft -> tentative : rend l'affectation visible au client / makes it customer-visible."""
        assignment = await self._require_assignment(assignment_id)
        new_status = BookingStatusMachine.release(assignment.booking_status)
        await self._change_status(assignment, new_status, changed_by, note or "Released as tentative")
        return assignment

    async def complete(self, assignment_id: int, changed_by: int | None = None, note: str | None = None) -> Assignment:
        assignment = await self._require_assignment(assignment_id)
        new_status = BookingStatusMachine.complete(assignment.booking_status)
        await self._change_status(assignment, new_status, changed_by, note or "Work complete")
        return assignment

    async def set_status(
        self,
        assignment: Assignment,
        target: BookingStatus,
        changed_by: int | None = None,
        note: str | None = None,
    ) -> bool:
        """
        Affectation directe (cascade) / Direct set (cascade).
        Retourne False si le statut était déjà la cible / Returns False when already at target.
        """
        new_status = BookingStatusMachine.direct_set(assignment.booking_status, target)
        if new_status == assignment.booking_status:
            return False
        await self._change_status(assignment, new_status, changed_by, note)
        return True

    async def _change_status(
        self,
        assignment: Assignment,
        new_status: BookingStatus,
        changed_by: int | None,
        note: str | None,
    ) -> None:
        old_status = self.store.record_status_change(assignment, new_status, changed_by, note)
        await self.db.flush()
        log.info("Assignment %s: %s -> %s", assignment.id, old_status.value, new_status.value)

        user = await self.store.get_user(assignment.user_id)
        if user is not None:
            await self.notifier.send(NotificationRequest(
                recipient=user.email,
                template_kind=TemplateKind.ASSIGNMENT_STATUS_CHANGED,
                parameters={
                    "assignment_id": assignment.id,
                    "old_status": old_status.value,
                    "new_status": new_status.value,
                },
            ))

    # =========================================================================
    # Jours / Days
    # =========================================================================

    async def add_days(self, assignment_id: int, entries: Iterable[DayEntry]) -> AddDaysResult:
        """
        Ajouter/écraser des jours, date par date / Upsert days, date by date.
        Rejets : hors plage, date exclue, fin <= début / Rejections: out of range, excluded, end <= start.
        """
        assignment = await self._require_assignment(assignment_id)
        project = await self._require_project(assignment.project_id)

        # Détection + écriture sérialisées par personne / Detection + write serialized per user
        await self.store.lock_user_schedule(assignment.user_id)
        excluded = await self.store.excluded_dates(assignment.id)

        results: list[DayWriteResult] = []
        new_conflicts: list[BookingConflict] = []
        for entry in entries:
            start_time = entry.start_time or parse_hhmm(settings.DEFAULT_START_TIME)
            end_time = entry.end_time or parse_hhmm(settings.DEFAULT_END_TIME)

            failure = self._validate_day(project, excluded, entry.date, start_time, end_time)
            if failure is not None:
                code, message = failure
                results.append(DayWriteResult(date=entry.date, success=False, error=code, message=message))
                continue

            day = await self.store.day_on_date(assignment.id, entry.date)
            if day is None:
                day = AssignmentDay(
                    assignment_id=assignment.id,
                    work_date=entry.date,
                    start_time=start_time,
                    end_time=end_time,
                )
                self.db.add(day)
            else:
                day.start_time = start_time
                day.end_time = end_time
            await self.db.flush()

            conflicts = await self.detector.detect(assignment.user_id, assignment.id, [entry.date])
            new_conflicts.extend(conflicts)
            results.append(DayWriteResult(
                date=entry.date,
                success=True,
                day_id=day.id,
                conflict_ids=[c.id for c in conflicts],
            ))

        written = sum(1 for r in results if r.success)
        log.info(
            "Assignment %s: %d day(s) written, %d rejected, %d conflict(s)",
            assignment.id, written, len(results) - written, len(new_conflicts),
        )
        return AddDaysResult(written=written, results=results, conflicts=new_conflicts)

    async def remove_days(self, day_ids: Iterable[int]) -> list[int]:
        """Supprimer des jours ; ids inconnus ignorés (idempotent) / Delete days; unknown ids skipped (idempotent)."""
        days = await self.store.days_by_ids(day_ids)
        removed = sorted(day.id for day in days)
        await self.store.delete_days(days)
        return removed

    async def adjust_day_time(self, day_id: int, start_time: time, end_time: time) -> AssignmentDay:
        if end_time <= start_time:
            raise SchedulingValidationError("End time must be after start time")
        day = await self.store.get_day(day_id)
        if day is None:
            raise NotFoundError("Assignment day", day_id)
        day.start_time = start_time
        day.end_time = end_time
        await self.db.flush()
        return day

    async def move_day(self, day_id: int, new_date: date) -> MoveDayResult:
        """
        Déplacer un jour (glisser-déposer) / Move a day (drag and drop).
        Mêmes validations qu'un ajout ; en cas de rejet le jour reste intact.
        Same checks as add; on rejection the day is left untouched.
        Les conflits de l'ancienne date restent enregistrés / Old-date conflicts stay recorded.
        """
        day = await self.store.get_day(day_id)
        if day is None:
            raise NotFoundError("Assignment day", day_id)
        if day.work_date == new_date:
            return MoveDayResult(day=day, conflicts=[])

        assignment = await self._require_assignment(day.assignment_id)
        project = await self._require_project(assignment.project_id)

        await self.store.lock_user_schedule(assignment.user_id)
        excluded = await self.store.excluded_dates(assignment.id)
        failure = self._validate_day(project, excluded, new_date, day.start_time, day.end_time)
        if failure is not None:
            raise SchedulingValidationError(failure[1])
        if await self.store.day_on_date(assignment.id, new_date) is not None:
            raise SchedulingValidationError(f"Assignment already has a day on {new_date.isoformat()}")

        day.work_date = new_date
        await self.db.flush()
        conflicts = await self.detector.detect(assignment.user_id, assignment.id, [new_date])
        return MoveDayResult(day=day, conflicts=conflicts)

    # =========================================================================
    # Dates exclues / Excluded dates
    # =========================================================================

    async def exclude_dates(
        self,
        assignment_id: int,
        dates: Iterable[date],
        reason: str | None = None,
        created_by: int | None = None,
    ) -> list[ExclusionResult]:
        """
        Exclure des dates (idempotent) / Exclude dates (idempotent).
        Un jour existant n'est jamais supprimé ici ; il est signalé (day_exists).
        An existing day is never deleted here; it is flagged (day_exists).
        """
        assignment = await self._require_assignment(assignment_id)
        project = await self._require_project(assignment.project_id)
        already = await self.store.excluded_dates(assignment.id)

        results: list[ExclusionResult] = []
        for excluded_date in dates:
            if not DayGeneratorService.is_within_range(excluded_date, project.start_date, project.end_date):
                results.append(ExclusionResult(date=excluded_date, success=False, error=OUT_OF_RANGE))
                continue
            day_exists = await self.store.day_on_date(assignment.id, excluded_date) is not None
            if excluded_date in already:
                results.append(ExclusionResult(
                    date=excluded_date, success=True, already_excluded=True, day_exists=day_exists
                ))
                continue
            row = ExcludedDate(
                assignment_id=assignment.id,
                excluded_date=excluded_date,
                reason=reason,
                created_by=created_by,
            )
            self.db.add(row)
            await self.db.flush()
            already.add(excluded_date)
            if day_exists:
                log.warning("Assignment %s: %s excluded while a day is still scheduled", assignment.id, excluded_date)
            results.append(ExclusionResult(
                date=excluded_date, success=True, excluded_date_id=row.id, day_exists=day_exists
            ))
        return results

    async def remove_excluded_dates(self, excluded_ids: Iterable[int]) -> list[int]:
        rows = await self.store.excluded_by_ids(excluded_ids)
        removed = sorted(row.id for row in rows)
        for row in rows:
            await self.db.delete(row)
        await self.db.flush()
        return removed

    # =========================================================================
    # Rappels / Reminders
    # =========================================================================

    async def send_day_reminders(self, work_date: date) -> int:
        """Un rappel par jour planifié à cette date / One reminder per day scheduled on that date."""
        days = await self.store.days_on_date(work_date)
        for day in days:
            assignment = day.assignment
            await self.notifier.send(NotificationRequest(
                recipient=assignment.user.email,
                template_kind=TemplateKind.DAY_REMINDER,
                parameters={
                    "project_name": assignment.project.client_name,
                    "work_date": day.work_date.isoformat(),
                    "start_time": day.start_time.strftime("%H:%M"),
                    "end_time": day.end_time.strftime("%H:%M"),
                },
            ))
        return len(days)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _validate_day(
        project: Project,
        excluded: set[date],
        work_date: date,
        start_time: time,
        end_time: time,
    ) -> tuple[str, str] | None:
        if not DayGeneratorService.is_within_range(work_date, project.start_date, project.end_date):
            return OUT_OF_RANGE, f"{work_date.isoformat()} is outside the project dates"
        if work_date in excluded:
            return EXCLUDED, f"{work_date.isoformat()} is excluded for this assignment"
        if end_time <= start_time:
            return INVALID_TIME, "End time must be after start time"
        return None

    async def _require_assignment(self, assignment_id: int) -> Assignment:
        assignment = await self.store.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)
        return assignment

    async def _require_project(self, project_id: int) -> Project:
        project = await self.store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

"""
Cascade du statut projet vers les affectations / Project status cascade to assignments.

Le statut du projet est toujours écrit ; le statut cible n'est appliqué
qu'au sous-ensemble sélectionné par l'utilisateur.
The project status is always written; the target status is applied only
to the subset the user selected.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from staffing.models.assignment import BookingStatus
from staffing.services.assignment_manager import AssignmentManager
from staffing.services.errors import NotFoundError
from staffing.services.notifications import Notifier

log = logging.getLogger(__name__)


@dataclass
class CascadeCandidate:
    assignment_id: int
    user_id: int
    user_name: str
    current_status: BookingStatus
    selected: bool = True


@dataclass
class CascadeItemResult:
    assignment_id: int
    success: bool
    old_status: BookingStatus | None = None
    new_status: BookingStatus | None = None
    error: str | None = None


@dataclass
class CascadeResult:
    project_id: int
    schedule_status: str | None
    target_status: BookingStatus
    items: list[CascadeItemResult] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return sum(1 for item in self.items if item.success and item.old_status != item.new_status)


class CascadeCoordinator:

    def __init__(self, db: AsyncSession, notifier: Notifier | None = None):
        self.manager = AssignmentManager(db, notifier)
        self.store = self.manager.store

    async def candidates(self, project_id: int) -> list[CascadeCandidate]:
        """Toutes les affectations du projet, présélectionnées / All project assignments, preselected."""
        if await self.store.get_project(project_id) is None:
            raise NotFoundError("Project", project_id)
        assignments = await self.store.project_assignments(project_id)
        return [
            CascadeCandidate(
                assignment_id=a.id,
                user_id=a.user_id,
                user_name=a.user.display_name,
                current_status=a.booking_status,
            )
            for a in assignments
        ]

    async def apply(
        self,
        project_id: int,
        schedule_status: str | None,
        target_status: BookingStatus,
        selected_ids: Iterable[int] | None = None,
        changed_by: int | None = None,
    ) -> CascadeResult:
        """
        selected_ids=None : toutes les affectations / all assignments.
        selected_ids=[] : aucune (seul le statut projet change) / none (project status only).
        """
        project = await self.store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)

        project.schedule_status = schedule_status
        await self.manager.db.flush()

        assignments = {a.id: a for a in await self.store.project_assignments(project_id)}
        if selected_ids is None:
            ids = list(assignments)
        else:
            # Ordre conservé, doublons ignorés / Order kept, duplicates ignored
            ids = list(dict.fromkeys(selected_ids))

        result = CascadeResult(project_id=project_id, schedule_status=schedule_status, target_status=target_status)
        note = f"Project status cascade: {schedule_status}" if schedule_status else "Project status cascade"
        for assignment_id in ids:
            assignment = assignments.get(assignment_id)
            if assignment is None:
                result.items.append(CascadeItemResult(assignment_id=assignment_id, success=False, error="not_found"))
                continue
            old_status = assignment.booking_status
            await self.manager.set_status(assignment, target_status, changed_by, note)
            result.items.append(CascadeItemResult(
                assignment_id=assignment_id,
                success=True,
                old_status=old_status,
                new_status=assignment.booking_status,
            ))

        log.info(
            "Project %s cascade to %s: %d/%d assignment(s) updated",
            project_id, target_status.value, result.updated, len(assignments),
        )
        return result

"""
Routes Projets / Project routes.
CRUD, jours ouvrés de la plage et cascade du statut planning.
CRUD, working days of the range and schedule status cascade.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.api.deps import require_permission
from staffing.database import get_db
from staffing.models.project import Project
from staffing.models.user import User
from staffing.schemas.assignment import AssignmentBrief
from staffing.schemas.cascade import CascadeApplyRequest, CascadeCandidateRead, CascadeResultRead
from staffing.schemas.project import ProjectCreate, ProjectDays, ProjectRead, ProjectUpdate
from staffing.services.cascade import CascadeCoordinator
from staffing.services.day_generator import WORKDAYS, DayGeneratorService
from staffing.services.notifications import Notifier, get_notifier
from staffing.services.scheduling_store import SchedulingStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_project(db: AsyncSession, project_id: int) -> Project:
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/", response_model=list[ProjectRead])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("projects", "read")),
):
    result = await db.execute(select(Project).order_by(Project.start_date, Project.id))
    return result.scalars().all()


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("projects", "read")),
):
    return await _get_project(db, project_id)


@router.post("/", response_model=ProjectRead, status_code=201)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("projects", "create")),
):
    project = Project(**data.model_dump())
    db.add(project)
    await db.flush()
    await db.refresh(project)
    logger.info("Project %s created by %s", project.id, user.username)
    return project


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("projects", "update")),
):
    """
    Modifier un projet / Update a project.
    Les jours existants hors nouvelle plage sont conservés / Existing days outside a new range are kept.
    """
    project = await _get_project(db, project_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(project, key, value)
    if project.start_date and project.end_date and project.end_date < project.start_date:
        raise HTTPException(status_code=422, detail="end_date must be on or after start_date")
    await db.flush()
    await db.refresh(project)
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("projects", "delete")),
):
    project = await _get_project(db, project_id)
    store = SchedulingStore(db)
    for assignment in await store.project_assignments(project_id):
        await store.detach_conflicts(assignment.id)
    await db.delete(project)
    logger.info("Project %s deleted by %s", project_id, user.username)


@router.get("/{project_id}/days", response_model=ProjectDays)
async def get_project_days(
    project_id: int,
    workdays_only: bool = False,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("projects", "read")),
):
    """Jours planifiables de la plage (lun-ven si workdays_only) / Schedulable days of the range (Mon-Fri if workdays_only)."""
    project = await _get_project(db, project_id)
    days = DayGeneratorService.generate_days(
        project.start_date, project.end_date, WORKDAYS if workdays_only else None
    )
    return ProjectDays(
        project_id=project.id,
        duration_days=DayGeneratorService.count_days(project.start_date, project.end_date),
        count=len(days),
        days=days,
    )


@router.get("/{project_id}/assignments", response_model=list[AssignmentBrief])
async def list_project_assignments(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "read")),
):
    await _get_project(db, project_id)
    return await SchedulingStore(db).project_assignments(project_id)


@router.get("/{project_id}/cascade", response_model=list[CascadeCandidateRead])
async def get_cascade_candidates(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "update")),
):
    """Affectations proposées à la cascade / Assignments offered for the cascade."""
    return await CascadeCoordinator(db).candidates(project_id)


@router.post("/{project_id}/cascade", response_model=CascadeResultRead)
async def apply_cascade(
    project_id: int,
    data: CascadeApplyRequest,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    user: User = Depends(require_permission("assignments", "update")),
):
    """Appliquer le statut projet et le statut cible à la sélection / Apply project status and target to the selection."""
    result = await CascadeCoordinator(db, notifier).apply(
        project_id,
        data.schedule_status,
        data.target_status,
        selected_ids=data.selected_ids,
        changed_by=user.id,
    )
    return CascadeResultRead.model_validate(result)

"""
Routes Utilisateurs / User routes.
Comptes, personnes affectables et planning personnel.
Accounts, assignable people and personal schedule.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.api.deps import require_permission
from staffing.database import get_db
from staffing.models.user import Role, User
from staffing.schemas.user import ScheduleEntry, UserBrief, UserCreate, UserRead
from staffing.services.scheduling_store import SchedulingStore
from staffing.utils.auth import hash_password

router = APIRouter()


@router.get("/", response_model=list[UserRead])
async def list_users(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("users", "read")),
):
    result = await db.execute(select(User).order_by(User.username))
    return result.scalars().all()


@router.get("/assignable", response_model=list[UserBrief])
async def list_assignable_users(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("users", "read")),
):
    """Personnes affectables actives / Active assignable people."""
    result = await db.execute(
        select(User)
        .where(User.is_assignable.is_(True), User.is_active.is_(True))
        .order_by(User.full_name, User.username)
    )
    return result.scalars().all()


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("users", "read")),
):
    target = await db.get(User, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    return target


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("users", "create")),
):
    """Créer un utilisateur / Create a user."""
    existing = await db.execute(
        select(User).where((User.username == data.username) | (User.email == data.email))
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Username or email already exists")

    new_user = User(
        username=data.username,
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        is_active=data.is_active,
        is_assignable=data.is_assignable,
    )
    if data.role_ids:
        roles_result = await db.execute(select(Role).where(Role.id.in_(data.role_ids)))
        new_user.roles = list(roles_result.scalars().all())
    else:
        new_user.roles = []

    db.add(new_user)
    await db.flush()
    await db.refresh(new_user)
    return new_user


@router.get("/{user_id}/schedule", response_model=list[ScheduleEntry])
async def get_user_schedule(
    user_id: int,
    start: date = Query(...),
    end: date = Query(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("assignments", "read")),
):
    """Jours planifiés d'une personne sur une période / A person's scheduled days over a period."""
    if end < start:
        raise HTTPException(status_code=422, detail="end must be on or after start")
    store = SchedulingStore(db)
    if await store.get_user(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    days = await store.days_for_user_between(user_id, start, end)
    return [
        ScheduleEntry(
            day_id=day.id,
            work_date=day.work_date,
            start_time=day.start_time,
            end_time=day.end_time,
            assignment_id=day.assignment_id,
            project_id=day.assignment.project_id,
            project_name=day.assignment.project.client_name,
            booking_status=day.assignment.booking_status,
        )
        for day in days
    ]

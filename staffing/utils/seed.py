"""
Seed initial / Initial seeding.
Crée le superadmin et les rôles par défaut au premier démarrage.
Creates the superadmin and default roles on first startup.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.models.user import Permission, Role, User
from staffing.utils.auth import ACTIONS, RESOURCES, hash_password

logger = logging.getLogger(__name__)

# Rôles par défaut / Default roles: name -> (description, {resource: actions})
DEFAULT_ROLES = {
    "scheduler": (
        "Planifie les affectations / Schedules assignments",
        {resource: ACTIONS for resource in RESOURCES},
    ),
    "engineer": (
        "Consulte son planning / Views own schedule",
        {"projects": ["read"], "assignments": ["read"], "users": ["read"]},
    ),
}


async def seed_roles(session: AsyncSession) -> None:
    existing = set((await session.execute(select(Role.name))).scalars().all())
    for name, (description, grants) in DEFAULT_ROLES.items():
        if name in existing:
            continue
        role = Role(name=name, description=description)
        role.permissions = [
            Permission(resource=resource, action=action)
            for resource, actions in grants.items()
            for action in actions
        ]
        session.add(role)
        logger.info("[seed] Role %s created", name)
    await session.commit()


async def seed_superadmin(session: AsyncSession) -> None:
    """Créer le superadmin si aucun utilisateur n'existe / Create superadmin if no users exist."""
    count = (await session.execute(select(func.count(User.id)))).scalar()
    if count:
        logger.info("[seed] %s existing user(s), superadmin seed skipped", count)
        return

    session.add(User(
        username="admin",
        email="admin@staffing.local",
        full_name="Administrator",
        hashed_password=hash_password("admin"),
        is_active=True,
        is_superadmin=True,
    ))
    await session.commit()
    logger.info("[seed] Superadmin created: admin / admin")

"""
Dépendances d'authentification et d'autorisation / Authentication and authorization dependencies.
Injectées dans les routes via Depends().
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing.database import get_db
from staffing.models.user import User
from staffing.utils.auth import decode_token

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extraire et valider l'utilisateur depuis le JWT / Extract and validate user from JWT."""
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


def user_permissions(user: User) -> list[str]:
    if user.is_superadmin:
        return ["*:*"]
    return sorted({f"{p.resource}:{p.action}" for role in user.roles for p in role.permissions})


def require_permission(resource: str, action: str):
    """Factory de dépendance qui vérifie une permission / Dependency factory that checks a permission.

    Superadmin bypass toutes les permissions / Superadmin bypasses all permissions.
    """

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.is_superadmin or f"{resource}:{action}" in user_permissions(user):
            return user
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission required: {resource}:{action}",
        )

    return _check

"""Routes API / API routes."""

from fastapi import APIRouter

from staffing.api import assignments, auth, confirmations, conflicts, projects, users

api_router = APIRouter(prefix="/api")

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
api_router.include_router(conflicts.router, prefix="/conflicts", tags=["conflicts"])
api_router.include_router(confirmations.router, prefix="/confirmations", tags=["confirmations"])

"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que Base.metadata les connaisse.
Import all models here so Base.metadata knows about them.
"""

from staffing.models.user import User, Role, Permission, user_roles
from staffing.models.project import Project
from staffing.models.assignment import Assignment, BookingStatus
from staffing.models.assignment_day import AssignmentDay
from staffing.models.excluded_date import ExcludedDate
from staffing.models.booking_conflict import BookingConflict
from staffing.models.booking_status_history import BookingStatusHistory
from staffing.models.confirmation_request import (
    ConfirmationRequest,
    ConfirmationStatus,
    confirmation_request_assignments,
)

__all__ = [
    "User",
    "Role",
    "Permission",
    "user_roles",
    "Project",
    "Assignment",
    "BookingStatus",
    "AssignmentDay",
    "ExcludedDate",
    "BookingConflict",
    "BookingStatusHistory",
    "ConfirmationRequest",
    "ConfirmationStatus",
    "confirmation_request_assignments",
]

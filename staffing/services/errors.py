"""
Erreurs métier du moteur de planning / Scheduling engine domain errors.
Traduites en réponses HTTP par les handlers de main.py.
Translated to HTTP responses by the handlers in main.py.
"""


class SchedulingError(Exception):
    """Erreur de base / Base error."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SchedulingValidationError(SchedulingError):
    """Entrée invalide (dates, horaires, email) / Invalid input (dates, times, email)."""

    status_code = 422


class InvalidTransitionError(SchedulingValidationError):
    """Transition de statut interdite / Ineligible status transition."""


class AlreadyAssignedError(SchedulingError):
    """Affectation déjà existante pour (projet, personne) / Assignment already exists for (project, user)."""

    status_code = 409

    def __init__(self, project_id: int, user_id: int, assignment_id: int | None = None):
        super().__init__("User is already assigned to this project")
        self.project_id = project_id
        self.user_id = user_id
        self.assignment_id = assignment_id


class NotFoundError(SchedulingError):
    """Entité introuvable / Entity not found."""

    status_code = 404

    def __init__(self, entity: str, entity_id: int | str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id

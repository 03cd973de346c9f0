"""
Service de génération des jours / Day generation service.
Transforme la plage [start_date, end_date] d'un projet en jours planifiables.
"""

from collections.abc import Iterable
from datetime import date, timedelta

# Lundi=0 ... Dimanche=6 / Monday=0 ... Sunday=6
WORKDAYS = frozenset({0, 1, 2, 3, 4})


class DayGeneratorService:
    """Jours planifiables d'une plage de dates / Schedulable days of a date range."""

    @staticmethod
    def generate_days(
        start_date: date | None,
        end_date: date | None,
        weekdays: Iterable[int] | None = None,
    ) -> list[date]:
        """
        Jours de la plage inclusive, triés, sans doublon / Inclusive range days, sorted, no duplicates.
        Une borne absente ou une plage inversée donne une liste vide.
        A missing bound or an inverted range yields an empty list.
        """
        if start_date is None or end_date is None or end_date < start_date:
            return []
        allowed = frozenset(weekdays) if weekdays is not None else None
        total = (end_date - start_date).days + 1
        days = (start_date + timedelta(days=offset) for offset in range(total))
        return [d for d in days if allowed is None or d.weekday() in allowed]

    @staticmethod
    def is_within_range(day: date, start_date: date | None, end_date: date | None) -> bool:
        """Date dans les bornes du projet / Date inside project bounds."""
        if start_date is None or end_date is None:
            return False
        return start_date <= day <= end_date

    @staticmethod
    def count_days(start_date: date | None, end_date: date | None) -> int:
        """Durée inclusive en jours / Inclusive duration in days."""
        if start_date is None or end_date is None or end_date < start_date:
            return 0
        return (end_date - start_date).days + 1

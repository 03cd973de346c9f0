"""
Détection des doubles réservations / Double-booking detection.

Détecter et signaler, jamais bloquer : un conflit est un résultat, pas une erreur.
Detect and flag, never prevent: a conflict is a result, not an error.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timezone

from staffing.models.booking_conflict import BookingConflict
from staffing.services.errors import NotFoundError, SchedulingValidationError
from staffing.services.scheduling_store import SchedulingStore

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ConflictDetector:
    """Seul écrivain des BookingConflict / Sole writer of BookingConflict rows."""

    def __init__(self, store: SchedulingStore):
        self.store = store

    async def detect(self, user_id: int, assignment_id: int, dates: Iterable[date]) -> list[BookingConflict]:
        """
        Pour chaque date candidate (dans l'ordre fourni), un conflit par autre affectation
        ayant déjà un jour à cette date. Retourne seulement les nouveaux conflits.
        For each candidate date (in supplied order), one conflict per other assignment
        that already has a day on that date. Returns only newly recorded conflicts.
        """
        conflicts: list[BookingConflict] = []
        seen: set[date] = set()
        for work_date in dates:
            if work_date in seen:
                continue
            seen.add(work_date)
            # Un conflit exige un jour des deux côtés / A conflict needs a day on both sides
            if await self.store.day_on_date(assignment_id, work_date) is None:
                continue
            existing_days = await self.store.days_for_user_on_date(
                user_id, work_date, exclude_assignment_id=assignment_id
            )
            other_ids = sorted({day.assignment_id for day in existing_days})
            for other_id in other_ids:
                recorded = await self.store.find_conflict(user_id, work_date, assignment_id, other_id)
                if recorded is not None:
                    continue
                conflict = BookingConflict(
                    user_id=user_id,
                    conflict_date=work_date,
                    assignment_id_1=assignment_id,
                    assignment_id_2=other_id,
                    is_resolved=False,
                    override_reason=None,
                    overridden_by=None,
                    overridden_at=None,
                )
                self.store.db.add(conflict)
                conflicts.append(conflict)
                log.warning(
                    "Double booking: user=%s date=%s assignments %s/%s",
                    user_id, work_date, assignment_id, other_id,
                )
        if conflicts:
            await self.store.db.flush()
        return conflicts

    async def override(self, conflict_id: int, reason: str, user_id: int | None) -> BookingConflict:
        """
        Résoudre par dérogation motivée / Resolve with a mandatory reason.
        Les deux réservations restent valides / Both bookings stay valid.
        """
        reason = (reason or "").strip()
        if not reason:
            raise SchedulingValidationError("A reason is required to override a conflict")
        conflict = await self.store.get_conflict(conflict_id)
        if conflict is None:
            raise NotFoundError("Conflict", conflict_id)
        conflict.is_resolved = True
        conflict.override_reason = reason
        conflict.overridden_by = user_id
        conflict.overridden_at = _utcnow()
        await self.store.db.flush()
        log.info("Conflict %s overridden by user=%s", conflict_id, user_id)
        return conflict

    async def list_unresolved(self, user_id: int | None = None) -> list[BookingConflict]:
        return await self.store.list_conflicts(user_id=user_id, unresolved_only=True)

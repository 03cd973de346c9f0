"""
Machine d'états des réservations / Booking status state machine.

draft -> pending_confirm -> confirmed -> draft   (cycle manuel / manual cycle)
draft -> tentative                               (release)
tentative -> pending_confirm                     (envoi confirmation / send for confirmation)
pending_confirm -> confirmed | tentative         (réponse client / customer response)
confirmed -> complete                            (fin de mission / work finished)
* -> *                                           (cascade projet / project cascade)
"""

from staffing.models.assignment import BookingStatus
from staffing.services.errors import InvalidTransitionError

# Ordre du cycle manuel / Manual cycle order
CYCLE_ORDER: tuple[BookingStatus, ...] = (
    BookingStatus.DRAFT,
    BookingStatus.PENDING_CONFIRM,
    BookingStatus.CONFIRMED,
)

_NEXT_IN_CYCLE = {
    status: CYCLE_ORDER[(index + 1) % len(CYCLE_ORDER)] for index, status in enumerate(CYCLE_ORDER)
}

# Transitions hors cycle / Non-cycle transitions: (event, from) -> to
TRANSITIONS: dict[tuple[str, BookingStatus], BookingStatus] = {
    ("release", BookingStatus.DRAFT): BookingStatus.TENTATIVE,
    ("send", BookingStatus.TENTATIVE): BookingStatus.PENDING_CONFIRM,
    ("accept", BookingStatus.PENDING_CONFIRM): BookingStatus.CONFIRMED,
    ("decline", BookingStatus.PENDING_CONFIRM): BookingStatus.TENTATIVE,
    ("cancel_request", BookingStatus.PENDING_CONFIRM): BookingStatus.TENTATIVE,
    ("complete", BookingStatus.CONFIRMED): BookingStatus.COMPLETE,
}


class BookingStatusMachine:
    """Transitions de statut, sans effet de bord / Status transitions, side-effect free."""

    @staticmethod
    def cycle(status: BookingStatus) -> BookingStatus:
        """
        Statut suivant dans le cycle manuel / Next status in the manual cycle.
        tentative et complete ne font pas partie du cycle : on repart de draft.
        tentative and complete are outside the cycle: restart at draft.
        """
        return _NEXT_IN_CYCLE.get(status, BookingStatus.DRAFT)

    @staticmethod
    def apply(event: str, status: BookingStatus) -> BookingStatus:
        target = TRANSITIONS.get((event, status))
        if target is None:
            raise InvalidTransitionError(f"Cannot {event.replace('_', ' ')} an assignment in status '{status.value}'")
        return target

    @classmethod
    def release(cls, status: BookingStatus) -> BookingStatus:
        """draft -> tentative (visible client / customer-visible)."""
        return cls.apply("release", status)

    @classmethod
    def send_for_confirmation(cls, status: BookingStatus) -> BookingStatus:
        """tentative -> pending_confirm."""
        return cls.apply("send", status)

    @classmethod
    def customer_response(cls, status: BookingStatus, accepted: bool) -> BookingStatus:
        """pending_confirm -> confirmed (accepte / accept) | tentative (refus / decline)."""
        return cls.apply("accept" if accepted else "decline", status)

    @classmethod
    def complete(cls, status: BookingStatus) -> BookingStatus:
        """confirmed -> complete (travail terminé, terminal / work finished, terminal)."""
        return cls.apply("complete", status)

    @classmethod
    def cancel_confirmation(cls, status: BookingStatus) -> BookingStatus:
        """pending_confirm -> tentative (demande annulée / request cancelled)."""
        return cls.apply("cancel_request", status)

    @staticmethod
    def direct_set(status: BookingStatus, target: BookingStatus) -> BookingStatus:
        """Affectation directe (cascade projet) / Direct set (project cascade)."""
        return target

    @staticmethod
    def can_send_for_confirmation(status: BookingStatus) -> bool:
        return status == BookingStatus.TENTATIVE

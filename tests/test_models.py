"""Tests des modèles / Model tests."""

from datetime import date

from staffing.models.assignment import Assignment, BookingStatus
from staffing.models.confirmation_request import ConfirmationStatus
from staffing.models.project import Project
from staffing.models.user import User


def test_project_repr():
    p = Project(id=1, client_name="Acme", start_date=date(2024, 6, 1), end_date=date(2024, 6, 30))
    assert "Acme" in repr(p)
    assert "2024-06-01" in repr(p)


def test_assignment_repr():
    a = Assignment(id=1, project_id=2, user_id=3, booking_status=BookingStatus.TENTATIVE)
    assert "tentative" in repr(a)


def test_display_name_falls_back_to_username():
    assert User(username="bob", full_name=None).display_name == "bob"
    assert User(username="bob", full_name="Bob Martin").display_name == "Bob Martin"


def test_enums():
    assert [s.value for s in BookingStatus] == [
        "draft", "tentative", "pending_confirm", "confirmed", "complete",
    ]
    assert ConfirmationStatus.EXPIRED.value == "expired"
    assert BookingStatus("pending_confirm") is BookingStatus.PENDING_CONFIRM

"""Tests des services purs / Pure service tests."""

from datetime import date

import pytest

from staffing.models.assignment import BookingStatus
from staffing.services.booking_status import BookingStatusMachine
from staffing.services.day_generator import WORKDAYS, DayGeneratorService
from staffing.services.errors import InvalidTransitionError, SchedulingValidationError


# --- Générateur de jours / Day generator ---

def test_generate_days_inclusive_and_sorted():
    days = DayGeneratorService.generate_days(date(2024, 6, 1), date(2024, 6, 30))
    assert len(days) == 30
    assert days[0] == date(2024, 6, 1)
    assert days[-1] == date(2024, 6, 30)
    assert days == sorted(set(days))


def test_generate_days_workdays_only():
    # 2024-06-03 est un lundi / is a Monday
    days = DayGeneratorService.generate_days(date(2024, 6, 3), date(2024, 6, 16), WORKDAYS)
    assert len(days) == 10
    assert all(d.weekday() < 5 for d in days)


def test_generate_days_single_day():
    assert DayGeneratorService.generate_days(date(2024, 6, 5), date(2024, 6, 5)) == [date(2024, 6, 5)]


def test_generate_days_missing_bound_is_empty():
    assert DayGeneratorService.generate_days(None, date(2024, 6, 5)) == []
    assert DayGeneratorService.generate_days(date(2024, 6, 5), None) == []


def test_generate_days_inverted_range_is_empty():
    assert DayGeneratorService.generate_days(date(2024, 6, 5), date(2024, 6, 1)) == []


def test_generate_days_is_repeatable():
    first = DayGeneratorService.generate_days(date(2024, 2, 20), date(2024, 3, 5), WORKDAYS)
    assert first == DayGeneratorService.generate_days(date(2024, 2, 20), date(2024, 3, 5), WORKDAYS)


def test_is_within_range():
    start, end = date(2024, 6, 1), date(2024, 6, 30)
    assert DayGeneratorService.is_within_range(date(2024, 6, 1), start, end)
    assert DayGeneratorService.is_within_range(date(2024, 6, 30), start, end)
    assert not DayGeneratorService.is_within_range(date(2024, 7, 1), start, end)
    assert not DayGeneratorService.is_within_range(date(2024, 6, 10), None, end)


def test_count_days():
    assert DayGeneratorService.count_days(date(2024, 2, 1), date(2024, 2, 29)) == 29
    assert DayGeneratorService.count_days(date(2024, 2, 2), date(2024, 2, 1)) == 0


# --- Machine d'états / Status machine ---

def test_three_cycles_return_to_draft():
    status = BookingStatus.DRAFT
    for _ in range(3):
        status = BookingStatusMachine.cycle(status)
    assert status == BookingStatus.DRAFT


def test_cycle_order():
    assert BookingStatusMachine.cycle(BookingStatus.DRAFT) == BookingStatus.PENDING_CONFIRM
    assert BookingStatusMachine.cycle(BookingStatus.PENDING_CONFIRM) == BookingStatus.CONFIRMED
    assert BookingStatusMachine.cycle(BookingStatus.CONFIRMED) == BookingStatus.DRAFT


def test_cycle_outside_states_restart_at_draft():
    assert BookingStatusMachine.cycle(BookingStatus.TENTATIVE) == BookingStatus.DRAFT
    assert BookingStatusMachine.cycle(BookingStatus.COMPLETE) == BookingStatus.DRAFT


def test_release_only_from_draft():
    assert BookingStatusMachine.release(BookingStatus.DRAFT) == BookingStatus.TENTATIVE
    with pytest.raises(InvalidTransitionError):
        BookingStatusMachine.release(BookingStatus.CONFIRMED)


def test_send_for_confirmation_requires_tentative():
    assert BookingStatusMachine.send_for_confirmation(BookingStatus.TENTATIVE) == BookingStatus.PENDING_CONFIRM
    for status in (BookingStatus.DRAFT, BookingStatus.CONFIRMED, BookingStatus.PENDING_CONFIRM):
        with pytest.raises(InvalidTransitionError):
            BookingStatusMachine.send_for_confirmation(status)


def test_customer_response():
    assert BookingStatusMachine.customer_response(BookingStatus.PENDING_CONFIRM, True) == BookingStatus.CONFIRMED
    assert BookingStatusMachine.customer_response(BookingStatus.PENDING_CONFIRM, False) == BookingStatus.TENTATIVE
    with pytest.raises(InvalidTransitionError):
        BookingStatusMachine.customer_response(BookingStatus.TENTATIVE, True)


def test_complete_requires_confirmed():
    assert BookingStatusMachine.complete(BookingStatus.CONFIRMED) == BookingStatus.COMPLETE
    with pytest.raises(InvalidTransitionError):
        BookingStatusMachine.complete(BookingStatus.DRAFT)


def test_cancel_confirmation():
    assert BookingStatusMachine.cancel_confirmation(BookingStatus.PENDING_CONFIRM) == BookingStatus.TENTATIVE


def test_direct_set_allows_any_target():
    for source in BookingStatus:
        for target in BookingStatus:
            assert BookingStatusMachine.direct_set(source, target) == target


def test_invalid_transition_is_a_validation_error():
    with pytest.raises(SchedulingValidationError) as exc:
        BookingStatusMachine.release(BookingStatus.COMPLETE)
    assert exc.value.status_code == 422
    assert "complete" in exc.value.message

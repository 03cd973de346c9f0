"""Tests du gestionnaire d'affectations / Assignment manager tests."""

from datetime import date, time

import pytest

from staffing.models.assignment import Assignment, BookingStatus
from staffing.models.project import Project
from staffing.models.user import User
from staffing.services.assignment_manager import EXCLUDED, INVALID_TIME, OUT_OF_RANGE, AssignmentManager, DayEntry
from staffing.services.errors import AlreadyAssignedError, NotFoundError, SchedulingValidationError
from staffing.services.scheduling_store import SchedulingStore


def _day(day: int, start: int = 9, end: int = 17) -> DayEntry:
    return DayEntry(date=date(2024, 6, day), start_time=time(start), end_time=time(end))


@pytest.fixture
def manager(db, notifier):
    return AssignmentManager(db, notifier)


@pytest.fixture
async def assignment(manager, june_project, engineer):
    return (await manager.create_assignment(june_project.id, engineer.id)).assignment


# --- Création / Creation ---

async def test_create_assignment_defaults_to_draft(manager, june_project, engineer, notifier):
    result = await manager.create_assignment(june_project.id, engineer.id, notes="lead engineer")
    assert result.assignment.booking_status == BookingStatus.DRAFT
    assert result.assignment.notes == "lead engineer"
    assert result.conflicts == []
    assert notifier.kinds() == ["assignment_created"]
    assert notifier.sent[0].recipient == engineer.email
    assert notifier.sent[0].parameters["project_name"] == "Acme Rollout"


async def test_create_assignment_writes_initial_history(manager, assignment):
    history = await manager.store.status_history(assignment.id)
    assert [(h.old_status, h.new_status) for h in history] == [(None, "draft")]


async def test_create_assignment_twice_is_rejected(manager, assignment, june_project, engineer):
    with pytest.raises(AlreadyAssignedError) as exc:
        await manager.create_assignment(june_project.id, engineer.id)
    assert exc.value.assignment_id == assignment.id
    assert exc.value.status_code == 409


async def test_create_assignment_unknown_project(manager, engineer):
    with pytest.raises(NotFoundError):
        await manager.create_assignment(999, engineer.id)


async def test_create_assignment_unknown_user(manager, june_project):
    with pytest.raises(NotFoundError):
        await manager.create_assignment(june_project.id, 999)


async def test_notification_failure_does_not_undo_creation(db, june_project, engineer, failing_notifier):
    manager = AssignmentManager(db, failing_notifier)
    result = await manager.create_assignment(june_project.id, engineer.id)
    assert await manager.store.get_assignment(result.assignment.id) is not None


# --- Jours / Days ---

async def test_add_days_writes_each_date(manager, assignment):
    result = await manager.add_days(assignment.id, [_day(10), _day(11)])
    assert result.written == 2
    assert result.rejected == 0
    assert result.conflicts == []
    assert all(r.success and r.day_id for r in result.results)


async def test_add_days_uses_default_times(manager, assignment):
    result = await manager.add_days(assignment.id, [DayEntry(date=date(2024, 6, 12))])
    day = await manager.store.get_day(result.results[0].day_id)
    assert (day.start_time, day.end_time) == (time(8), time(17))


async def test_add_days_with_one_excluded_date(manager, assignment):
    await manager.exclude_dates(assignment.id, [date(2024, 6, 12)], reason="Site closed")
    result = await manager.add_days(assignment.id, [_day(10), _day(11), _day(12), _day(13), _day(14)])

    assert result.written == 4
    assert result.rejected == 1
    failed = [r for r in result.results if not r.success]
    assert failed[0].date == date(2024, 6, 12)
    assert failed[0].error == EXCLUDED


async def test_add_days_rejects_out_of_range_and_bad_times(manager, assignment):
    result = await manager.add_days(assignment.id, [
        DayEntry(date=date(2024, 7, 1), start_time=time(9), end_time=time(17)),
        _day(10, start=17, end=9),
        _day(11, start=9, end=9),
        _day(12),
    ])
    assert [r.error for r in result.results] == [OUT_OF_RANGE, INVALID_TIME, INVALID_TIME, None]
    assert result.written == 1


async def test_add_days_duplicate_date_last_wins(manager, assignment):
    result = await manager.add_days(assignment.id, [_day(10, 8, 12), _day(10, 13, 18)])
    assert result.written == 2
    assert result.results[0].day_id == result.results[1].day_id
    day = await manager.store.get_day(result.results[1].day_id)
    assert (day.start_time, day.end_time) == (time(13), time(18))


async def test_remove_days_skips_unknown_ids(manager, assignment):
    result = await manager.add_days(assignment.id, [_day(10), _day(11)])
    ids = [r.day_id for r in result.results]
    removed = await manager.remove_days([ids[0], 9999])
    assert removed == [ids[0]]
    assert await manager.store.get_day(ids[0]) is None
    assert await manager.store.get_day(ids[1]) is not None


async def test_adjust_day_time(manager, assignment):
    result = await manager.add_days(assignment.id, [_day(10)])
    day = await manager.adjust_day_time(result.results[0].day_id, time(7, 30), time(15, 30))
    assert (day.start_time, day.end_time) == (time(7, 30), time(15, 30))

    with pytest.raises(SchedulingValidationError):
        await manager.adjust_day_time(day.id, time(15), time(15))
    assert day.end_time == time(15, 30)


async def test_adjust_unknown_day(manager):
    with pytest.raises(NotFoundError):
        await manager.adjust_day_time(12345, time(8), time(9))


async def test_move_day_out_of_range_leaves_day_untouched(manager, assignment):
    day_id = (await manager.add_days(assignment.id, [_day(10)])).results[0].day_id
    with pytest.raises(SchedulingValidationError):
        await manager.move_day(day_id, date(2024, 7, 2))
    day = await manager.store.get_day(day_id)
    assert day.work_date == date(2024, 6, 10)


async def test_move_day_onto_excluded_date_is_rejected(manager, assignment):
    day_id = (await manager.add_days(assignment.id, [_day(10)])).results[0].day_id
    await manager.exclude_dates(assignment.id, [date(2024, 6, 20)])
    with pytest.raises(SchedulingValidationError):
        await manager.move_day(day_id, date(2024, 6, 20))


async def test_move_day_onto_existing_day_is_rejected(manager, assignment):
    result = await manager.add_days(assignment.id, [_day(10), _day(11)])
    with pytest.raises(SchedulingValidationError):
        await manager.move_day(result.results[0].day_id, date(2024, 6, 11))


async def test_move_day(manager, assignment):
    day_id = (await manager.add_days(assignment.id, [_day(10)])).results[0].day_id
    moved = await manager.move_day(day_id, date(2024, 6, 18))
    assert moved.day.work_date == date(2024, 6, 18)
    assert moved.conflicts == []
    assert await manager.store.day_on_date(assignment.id, date(2024, 6, 10)) is None


# --- Dates exclues / Excluded dates ---

async def test_exclude_twice_is_a_noop(manager, assignment):
    first = await manager.exclude_dates(assignment.id, [date(2024, 6, 14)], reason="Holiday")
    second = await manager.exclude_dates(assignment.id, [date(2024, 6, 14)], reason="Holiday")

    assert first[0].success and not first[0].already_excluded
    assert second[0].success and second[0].already_excluded
    assert await manager.store.excluded_dates(assignment.id) == {date(2024, 6, 14)}


async def test_exclude_keeps_existing_day_and_flags_it(manager, assignment):
    await manager.add_days(assignment.id, [_day(14)])
    results = await manager.exclude_dates(assignment.id, [date(2024, 6, 14)])
    assert results[0].day_exists
    assert await manager.store.day_on_date(assignment.id, date(2024, 6, 14)) is not None


async def test_exclude_out_of_range(manager, assignment):
    results = await manager.exclude_dates(assignment.id, [date(2024, 5, 31), date(2024, 6, 3)])
    assert [(r.success, r.error) for r in results] == [(False, OUT_OF_RANGE), (True, None)]


async def test_remove_excluded_date_allows_scheduling_again(manager, assignment):
    results = await manager.exclude_dates(assignment.id, [date(2024, 6, 14)])
    assert await manager.remove_excluded_dates([results[0].excluded_date_id, 4242]) == [results[0].excluded_date_id]
    added = await manager.add_days(assignment.id, [_day(14)])
    assert added.written == 1


# --- Statut / Status ---

async def test_three_cycles_record_history(manager, assignment, notifier):
    for _ in range(3):
        await manager.cycle_status(assignment.id)
    assert assignment.booking_status == BookingStatus.DRAFT

    history = await manager.store.status_history(assignment.id)
    assert [h.new_status for h in history] == ["draft", "pending_confirm", "confirmed", "draft"]
    assert notifier.kinds().count("assignment_status_changed") == 3


async def test_release_then_release_again(manager, assignment):
    await manager.release(assignment.id)
    assert assignment.booking_status == BookingStatus.TENTATIVE
    with pytest.raises(SchedulingValidationError):
        await manager.release(assignment.id)


async def test_complete_requires_confirmed(manager, assignment):
    with pytest.raises(SchedulingValidationError):
        await manager.complete(assignment.id)
    await manager.set_status(assignment, BookingStatus.CONFIRMED)
    await manager.complete(assignment.id)
    assert assignment.booking_status == BookingStatus.COMPLETE


async def test_set_status_to_same_value_is_not_recorded(manager, assignment):
    assert await manager.set_status(assignment, BookingStatus.DRAFT) is False
    assert len(await manager.store.status_history(assignment.id)) == 1


# --- Annulation et rappels / Cancellation and reminders ---

async def test_remove_assignment_keeps_conflict_record(manager, assignment, create_project, engineer):
    await manager.add_days(assignment.id, [_day(10)])
    other_project = await create_project("Globex", date(2024, 6, 1), date(2024, 6, 30))
    other = (await manager.create_assignment(other_project.id, engineer.id)).assignment
    conflict = (await manager.add_days(other.id, [_day(10)])).conflicts[0]

    await manager.remove_assignment(assignment.id)

    assert await manager.store.get_assignment(assignment.id) is None
    remaining = await manager.store.list_conflicts(user_id=engineer.id)
    assert [c.id for c in remaining] == [conflict.id]
    assert assignment.id not in (remaining[0].assignment_id_1, remaining[0].assignment_id_2)
    assert other.id in (remaining[0].assignment_id_1, remaining[0].assignment_id_2)


async def test_remove_unknown_assignment(manager):
    with pytest.raises(NotFoundError):
        await manager.remove_assignment(404)


async def test_send_day_reminders(manager, assignment, notifier, engineer):
    await manager.add_days(assignment.id, [_day(10), _day(11)])
    notifier.sent.clear()

    assert await manager.send_day_reminders(date(2024, 6, 10)) == 1
    assert notifier.kinds() == ["day_reminder"]
    assert notifier.sent[0].recipient == engineer.email
    assert notifier.sent[0].parameters["start_time"] == "09:00"
    assert await manager.send_day_reminders(date(2024, 6, 15)) == 0


async def test_concurrent_insert_loser_gets_existing_id(file_session_factory):
    async with file_session_factory() as setup:
        project = Project(client_name="Acme Rollout", start_date=date(2024, 6, 1), end_date=date(2024, 6, 30))
        user = User(username="alice", email="alice@example.com", hashed_password="x", is_assignable=True)
        user.roles = []
        setup.add_all([project, user])
        await setup.commit()

    # Les deux sessions ont passé la vérification préalable / Both sessions passed the pre-check
    async with file_session_factory() as loser, file_session_factory() as winner:
        store = SchedulingStore(loser)
        assert await store.find_assignment(project.id, user.id) is None

        won = Assignment(project_id=project.id, user_id=user.id, booking_status=BookingStatus.DRAFT)
        winner.add(won)
        await winner.commit()

        with pytest.raises(AlreadyAssignedError) as exc:
            await store.insert_assignment(
                Assignment(project_id=project.id, user_id=user.id, booking_status=BookingStatus.DRAFT)
            )
        assert exc.value.assignment_id == won.id

from datetime import date, datetime, time

import pytest

from clinic_scheduler.core.errors import NotFoundError, ValidationError
from clinic_scheduler.models.appointment import AppointmentStatus
from clinic_scheduler.scheduling.availability import (
    FULLY_BOOKED_REASON,
    NO_SLOTS_REASON,
    build_day_view,
    resolve_availability,
)
from clinic_scheduler.scheduling.intervals import TimeOfDay
from clinic_scheduler.scheduling.lifecycle import transition
from clinic_scheduler.stores.practitioner_directory import create_practitioner, get_practitioner

MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 18)


def test_empty_day_lists_every_half_hour_slot(scheduling_db, doctor) -> None:
    result = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)

    assert result.available is True
    assert result.working_hours == '09:00 - 17:00'
    assert len(result.free_slots) == 16
    assert result.free_slots[0] == '09:00'
    assert result.free_slots[-1] == '16:30'
    assert result.practitioner_name == 'Dr. Ada Okafor'
    assert result.department == 'Cardiology'
    assert result.reason is None


def test_booked_start_is_removed_from_free_slots(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(9, 0), time(9, 30))

    result = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)

    assert '09:00' not in result.free_slots
    assert '09:30' in result.free_slots
    assert len(result.free_slots) == 15


def test_non_working_weekday_is_unavailable(scheduling_db, doctor) -> None:
    result = resolve_availability(scheduling_db, doctor.practitioner_id, SUNDAY)

    assert result.available is False
    assert result.free_slots == []
    assert result.working_hours is None
    assert result.reason == 'Dr. Ada Okafor does not work on Sundays.'


def test_unknown_practitioner_raises_not_found(scheduling_db) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        resolve_availability(scheduling_db, 'DR-00-00-0000', MONDAY)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Doctor not found.'


def test_cancelled_and_other_day_bookings_do_not_hide_slots(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(10, 0), time(10, 30), status=AppointmentStatus.CANCELLED)
    make_booking(doctor.practitioner_id, time(11, 0), time(11, 30), day=date(2026, 10, 20))

    result = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)

    assert '10:00' in result.free_slots
    assert '11:00' in result.free_slots


def test_completed_and_no_show_bookings_still_occupy_their_slot(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(10, 0), time(10, 30), status=AppointmentStatus.COMPLETED)
    make_booking(doctor.practitioner_id, time(11, 0), time(11, 30), status=AppointmentStatus.NO_SHOW)

    result = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)

    assert '10:00' not in result.free_slots
    assert '11:00' not in result.free_slots


def test_other_practitioners_bookings_are_ignored(scheduling_db, doctor, make_booking) -> None:
    make_booking('DR-26-10-9999', time(9, 0), time(9, 30))

    result = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)

    assert '09:00' in result.free_slots


def test_cancelling_reopens_the_exact_slot(scheduling_db, doctor, make_booking) -> None:
    booking = make_booking(doctor.practitioner_id, time(14, 0), time(14, 30))
    assert '14:00' not in resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY).free_slots

    transition(scheduling_db, booking.id, AppointmentStatus.CANCELLED)

    assert '14:00' in resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY).free_slots


def test_repeated_queries_without_writes_are_identical(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(9, 30), time(10, 0))

    first = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)
    second = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)

    assert first == second


def test_datetime_input_is_bucketed_to_its_calendar_day(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(9, 0), time(9, 30))

    result = resolve_availability(scheduling_db, doctor.practitioner_id, datetime(2026, 10, 19, 18, 45))

    assert result.date == MONDAY
    assert '09:00' not in result.free_slots


def test_off_grid_booking_only_hides_slots_when_overlap_mode_requested(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(9, 15), time(9, 45))

    aligned = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY)
    strict = resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY, hide_overlapping=True)

    assert '09:00' in aligned.free_slots
    assert '09:30' in aligned.free_slots
    assert '09:00' not in strict.free_slots
    assert '09:30' not in strict.free_slots
    assert '10:00' in strict.free_slots


def test_fully_booked_day_reports_no_free_slots(scheduling_db, make_booking) -> None:
    short_day = create_practitioner(
        scheduling_db,
        first_name='Lee',
        last_name='Park',
        working_days=['Monday'],
        work_start='09:00',
        work_end='10:00',
        now=datetime(2026, 10, 2, 8, 0),
    )
    make_booking(short_day.practitioner_id, time(9, 0), time(9, 30))
    make_booking(short_day.practitioner_id, time(9, 30), time(10, 0))

    result = resolve_availability(scheduling_db, short_day.practitioner_id, MONDAY)

    assert result.available is False
    assert result.free_slots == []
    assert result.working_hours == '09:00 - 10:00'
    assert result.reason == FULLY_BOOKED_REASON


def test_day_view_exposes_booked_starts(scheduling_db, doctor, make_booking) -> None:
    make_booking(doctor.practitioner_id, time(13, 0), time(14, 0))

    view = build_day_view(scheduling_db, get_practitioner(scheduling_db, doctor.practitioner_id), MONDAY, slot_minutes=60)

    assert view.booked_starts == frozenset({TimeOfDay.parse('13:00')})
    assert [str(slot.start) for slot in view.free_slots] == [
        '09:00', '10:00', '11:00', '12:00', '14:00', '15:00', '16:00',
    ]


def test_zero_slot_length_is_rejected(scheduling_db, doctor) -> None:
    with pytest.raises(ValidationError):
        resolve_availability(scheduling_db, doctor.practitioner_id, MONDAY, slot_minutes=0)


def test_window_shorter_than_one_slot_is_not_reported_as_booked(scheduling_db) -> None:
    brief = create_practitioner(
        scheduling_db,
        first_name='Noor',
        last_name='Haddad',
        working_days=['Monday'],
        work_start='09:00',
        work_end='09:20',
        now=datetime(2026, 10, 3, 8, 0),
    )

    result = resolve_availability(scheduling_db, brief.practitioner_id, MONDAY)

    assert result.available is False
    assert result.free_slots == []
    assert result.working_hours == '09:00 - 09:20'
    assert result.reason == NO_SLOTS_REASON
    assert result.reason != FULLY_BOOKED_REASON
